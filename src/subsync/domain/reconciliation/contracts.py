"""Shared reconciliation contract components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .events import ProviderLineItem


class MatchKind(StrEnum):
    """How a provider line item was matched to an internal item."""

    METADATA = "metadata"
    STORED_MAPPING = "stored_mapping"
    PRICE_AND_QUANTITY = "price_and_quantity"
    PRICE_ONLY = "price_only"


@dataclass(frozen=True, slots=True, kw_only=True)
class ItemBinding:
    """Provider line item paired with the internal item it resolved to."""

    line_item: ProviderLineItem
    internal_item_id: str
    match_kind: MatchKind


@dataclass(frozen=True, slots=True, kw_only=True)
class UnresolvedItem:
    line_item: ProviderLineItem
    reason: str = "no_match"


@dataclass(slots=True)
class ItemResolution:
    """Per-event item resolution; partial success is the normal case."""

    bindings: list[ItemBinding] = field(default_factory=list["ItemBinding"])
    failures: list[UnresolvedItem] = field(default_factory=list["UnresolvedItem"])

    def as_mapping(self) -> dict[str, str]:
        """Return ``{internal_item_id: external_item_id}`` for every binding."""

        return {binding.internal_item_id: binding.line_item.id for binding in self.bindings}


class ReconcileOutcome(StrEnum):
    """Result of handling one event."""

    IGNORED = "ignored"
    SKIPPED = "skipped"
    DROPPED = "dropped"
    APPLIED = "applied"
    FAILED = "failed"
