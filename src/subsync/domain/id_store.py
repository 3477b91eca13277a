"""Typed access to provider identity mappings.

Wraps an ``ExternalIdMapper`` with one helper per entity type so callers never
spell out (entity type, provider) pairs themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from subsync.domain.errors import MissingProviderIdMapping
from subsync.domain.model import EntityType, IdMapping, Provider

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from subsync.domain.model import Subscription
    from subsync.domain.ports import ExternalIdMapper


def billable_key(billable_type: str, billable_id: str) -> str:
    """Internal customer key for a billable owner, e.g. ``user_42``."""

    return f"{billable_type}_{billable_id}"


def _unique(ids: Iterable[str | None]) -> list[str]:
    seen: dict[str, None] = {}
    for value in ids:
        if value:
            seen.setdefault(value, None)
    return list(seen)


class ProviderIdStore:
    def __init__(self, mapper: ExternalIdMapper, provider: Provider = Provider.STRIPE) -> None:
        self.mapper = mapper
        self.provider = provider

    # Customers ---------------------------------------------------------------

    def customer_id(self, billable_type: str, billable_id: str) -> str | None:
        return self.mapper.get_external_id(
            EntityType.CUSTOMER, self.provider, billable_key(billable_type, billable_id)
        )

    def require_customer_id(self, subscription: Subscription) -> str:
        customer_id = self.customer_id(subscription.billable_type, subscription.billable_id)
        if not customer_id:
            raise MissingProviderIdMapping(
                f"Missing {self.provider} customer id mapping for customer."
            )
        return customer_id

    def store_customer_id(self, billable_type: str, billable_id: str, external_id: str) -> None:
        self.mapper.store(
            EntityType.CUSTOMER,
            self.provider,
            billable_key(billable_type, billable_id),
            external_id,
        )

    # Subscriptions -----------------------------------------------------------

    def subscription_id(self, internal_id: str) -> str | None:
        return self.mapper.get_external_id(EntityType.SUBSCRIPTION, self.provider, internal_id)

    def require_subscription_id(self, subscription: Subscription) -> str:
        external_id = self.subscription_id(subscription.id)
        if not external_id:
            raise MissingProviderIdMapping(
                f"Missing {self.provider} subscription id mapping for subscription."
            )
        return external_id

    def internal_subscription_id(self, external_id: str) -> str | None:
        return self.mapper.get_internal_id(EntityType.SUBSCRIPTION, self.provider, external_id)

    def store_subscription_id(self, internal_id: str, external_id: str) -> None:
        self.mapper.store(EntityType.SUBSCRIPTION, self.provider, internal_id, external_id)

    # Subscription items ------------------------------------------------------

    def internal_subscription_item_ids(self, external_ids: Sequence[str | None]) -> dict[str, str]:
        ids = _unique(external_ids)
        if not ids:
            return {}
        return self.mapper.get_internal_id_map(EntityType.SUBSCRIPTION_ITEM, self.provider, ids)

    def store_subscription_item_ids(self, mappings: Mapping[str, str]) -> None:
        """Persist ``{internal_item_id: external_item_id}`` in one batch."""

        if not mappings:
            return
        self.mapper.store_multiple(
            IdMapping(
                entity_type=EntityType.SUBSCRIPTION_ITEM,
                provider=self.provider,
                internal_id=internal_id,
                external_id=external_id,
            )
            for internal_id, external_id in mappings.items()
        )

    # Prices and products -----------------------------------------------------

    def price_ids(self, internal_ids: Sequence[str]) -> dict[str, str]:
        ids = _unique(internal_ids)
        if not ids:
            return {}
        return self.mapper.get_external_id_map(EntityType.PRICE, self.provider, ids)

    def internal_price_ids(self, external_ids: Sequence[str | None]) -> dict[str, str]:
        ids = _unique(external_ids)
        if not ids:
            return {}
        return self.mapper.get_internal_id_map(EntityType.PRICE, self.provider, ids)

    def store_price_id(self, internal_id: str, external_id: str) -> None:
        self.mapper.store(EntityType.PRICE, self.provider, internal_id, external_id)

    def product_id(self, internal_id: str) -> str | None:
        return self.mapper.get_external_id(EntityType.PRODUCT, self.provider, internal_id)

    def product_ids(self, internal_ids: Sequence[str]) -> dict[str, str]:
        ids = _unique(internal_ids)
        if not ids:
            return {}
        return self.mapper.get_external_id_map(EntityType.PRODUCT, self.provider, ids)

    def store_product_id(self, internal_id: str, external_id: str) -> None:
        self.mapper.store(EntityType.PRODUCT, self.provider, internal_id, external_id)
