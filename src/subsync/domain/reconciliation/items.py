"""Resolve provider line items to internal subscription items.

Per line item, the first matching tier wins:

1. ``internal_item_id`` embedded in the line item's metadata
2. a stored subscription-item mapping for the provider item id
3. the internal price mapped from the provider price id, matched against the
   subscription's items on price and quantity, then on price alone

Stored mappings for every line item are fetched in two bulk lookups per call,
whatever the number of items.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .contracts import ItemBinding, ItemResolution, MatchKind, UnresolvedItem

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from subsync.domain.id_store import ProviderIdStore
    from subsync.domain.model import Subscription

    from .events import ProviderLineItem


class ItemResolver:
    def __init__(self, id_store: ProviderIdStore) -> None:
        self.id_store = id_store

    def resolve(
        self,
        line_items: Sequence[ProviderLineItem],
        subscription: Subscription,
    ) -> ItemResolution:
        resolution = ItemResolution()
        if not line_items:
            return resolution

        item_ids_mapping = self.id_store.internal_subscription_item_ids(
            [line_item.id for line_item in line_items]
        )
        price_ids_mapping = self.id_store.internal_price_ids(
            [line_item.price_id for line_item in line_items]
        )

        for line_item in line_items:
            binding = resolve_line_item(
                line_item,
                subscription,
                item_ids_mapping=item_ids_mapping,
                price_ids_mapping=price_ids_mapping,
            )
            if binding is None:
                resolution.failures.append(UnresolvedItem(line_item=line_item))
            else:
                resolution.bindings.append(binding)
        return resolution


def resolve_line_item(
    line_item: ProviderLineItem,
    subscription: Subscription,
    *,
    item_ids_mapping: Mapping[str, str],
    price_ids_mapping: Mapping[str, str],
) -> ItemBinding | None:
    """Resolve one line item against pre-fetched mappings; ``None`` if no tier matches."""

    metadata_id = line_item.internal_item_id
    if metadata_id:
        return ItemBinding(
            line_item=line_item,
            internal_item_id=metadata_id,
            match_kind=MatchKind.METADATA,
        )

    mapped_id = item_ids_mapping.get(line_item.id)
    if mapped_id:
        return ItemBinding(
            line_item=line_item,
            internal_item_id=mapped_id,
            match_kind=MatchKind.STORED_MAPPING,
        )

    internal_price_id = price_ids_mapping.get(line_item.price_id) if line_item.price_id else None
    if not internal_price_id:
        return None

    same_price = [item for item in subscription.items if item.price_id == internal_price_id]
    for item in same_price:
        if item.quantity == line_item.quantity:
            return ItemBinding(
                line_item=line_item,
                internal_item_id=item.id,
                match_kind=MatchKind.PRICE_AND_QUANTITY,
            )

    # Quantity drifts after mid-cycle changes; the first item on the price wins.
    if same_price:
        return ItemBinding(
            line_item=line_item,
            internal_item_id=same_price[0].id,
            match_kind=MatchKind.PRICE_ONLY,
        )
    return None
