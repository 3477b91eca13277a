"""Identity mappings between internal ids and provider ids."""

from __future__ import annotations

from dataclasses import dataclass

from subsync.domain.model.enums import EntityType, Provider


@dataclass(frozen=True, slots=True, kw_only=True)
class IdMapping:
    """One internal id paired with one provider id for an entity type."""

    entity_type: EntityType
    provider: Provider
    internal_id: str
    external_id: str

    def __post_init__(self) -> None:
        if not self.internal_id or not self.external_id:
            raise ValueError("Identity mappings require non-empty internal and external ids")
