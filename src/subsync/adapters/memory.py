"""In-memory adapters for identity mappings and subscriptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from subsync.domain.model import EntityType, IdMapping, Provider, Subscription

type _Namespace = tuple[EntityType, Provider]


class InMemoryExternalIdMapper:
    """Dict-backed identity mapper.

    Both directions stay one-to-one: re-pairing an internal id drops its previous
    external id from the reverse index, and vice versa.
    """

    def __init__(self, seed: Iterable[IdMapping] = ()) -> None:
        self._external_by_internal: dict[_Namespace, dict[str, str]] = {}
        self._internal_by_external: dict[_Namespace, dict[str, str]] = {}
        self.store_multiple(seed)

    def get_internal_id(
        self, entity_type: EntityType, provider: Provider, external_id: str
    ) -> str | None:
        return self._internal_by_external.get((entity_type, provider), {}).get(external_id)

    def get_external_id(
        self, entity_type: EntityType, provider: Provider, internal_id: str
    ) -> str | None:
        return self._external_by_internal.get((entity_type, provider), {}).get(internal_id)

    def get_internal_id_map(
        self, entity_type: EntityType, provider: Provider, external_ids: Sequence[str]
    ) -> dict[str, str]:
        index = self._internal_by_external.get((entity_type, provider), {})
        return {value: index[value] for value in external_ids if value in index}

    def get_external_id_map(
        self, entity_type: EntityType, provider: Provider, internal_ids: Sequence[str]
    ) -> dict[str, str]:
        index = self._external_by_internal.get((entity_type, provider), {})
        return {value: index[value] for value in internal_ids if value in index}

    def store(
        self,
        entity_type: EntityType,
        provider: Provider,
        internal_id: str,
        external_id: str,
    ) -> None:
        namespace = (entity_type, provider)
        forward = self._external_by_internal.setdefault(namespace, {})
        reverse = self._internal_by_external.setdefault(namespace, {})

        previous_external = forward.get(internal_id)
        if previous_external is not None:
            reverse.pop(previous_external, None)
        previous_internal = reverse.get(external_id)
        if previous_internal is not None:
            forward.pop(previous_internal, None)

        forward[internal_id] = external_id
        reverse[external_id] = internal_id

    def store_multiple(self, mappings: Iterable[IdMapping]) -> None:
        for mapping in mappings:
            self.store(
                mapping.entity_type,
                mapping.provider,
                mapping.internal_id,
                mapping.external_id,
            )

    def __len__(self) -> int:
        return sum(len(index) for index in self._external_by_internal.values())


class InMemorySubscriptionRepository:
    def __init__(self, subscriptions: Iterable[Subscription] = ()) -> None:
        self._subscriptions: dict[str, Subscription] = {}
        self.saved: list[Subscription] = []
        for subscription in subscriptions:
            self._subscriptions[subscription.id] = subscription

    def find(self, subscription_id: str) -> Subscription | None:
        return self._subscriptions.get(subscription_id)

    def save(self, subscription: Subscription) -> None:
        self._subscriptions[subscription.id] = subscription
        self.saved.append(subscription)


if TYPE_CHECKING:
    from subsync.domain.ports import ExternalIdMapper, SubscriptionRepository

    _mapper_check: ExternalIdMapper = InMemoryExternalIdMapper()
    _repository_check: SubscriptionRepository = InMemorySubscriptionRepository()
