"""Port for the internal id <-> provider id mapping store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from subsync.domain.model import EntityType, IdMapping, Provider


@runtime_checkable
class ExternalIdMapper(Protocol):
    """Bidirectional store of identity mappings, keyed by (entity type, provider).

    Lookups for ids without a mapping return ``None`` (or omit the id from bulk
    results); they never raise. A (type, provider) pair that was never written
    behaves as an empty store.
    """

    def get_internal_id(
        self, entity_type: EntityType, provider: Provider, external_id: str
    ) -> str | None: ...

    def get_external_id(
        self, entity_type: EntityType, provider: Provider, internal_id: str
    ) -> str | None: ...

    def get_internal_id_map(
        self, entity_type: EntityType, provider: Provider, external_ids: Sequence[str]
    ) -> dict[str, str]:
        """Return ``{external_id: internal_id}`` for the ids that have a mapping."""
        ...

    def get_external_id_map(
        self, entity_type: EntityType, provider: Provider, internal_ids: Sequence[str]
    ) -> dict[str, str]:
        """Return ``{internal_id: external_id}`` for the ids that have a mapping."""
        ...

    def store(
        self,
        entity_type: EntityType,
        provider: Provider,
        internal_id: str,
        external_id: str,
    ) -> None: ...

    def store_multiple(self, mappings: Iterable[IdMapping]) -> None: ...
