"""Provider event model consumed by the reconciliation engine.

Events are immutable, externally generated inputs. Adapters translate raw
provider payloads into these types; the engine never sees provider SDK objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

INTERNAL_SUBSCRIPTION_ID_KEY = "internal_subscription_id"
INTERNAL_ITEM_ID_KEY = "internal_item_id"
INTERNAL_PRICE_ID_KEY = "internal_price_id"


class EventKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    PAUSED = "paused"
    RESUMED = "resumed"
    OTHER = "other"


def _frozen(metadata: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(metadata or {}))


@dataclass(frozen=True, slots=True)
class PauseCollection:
    """Marker that the provider has paused payment collection."""

    behavior: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderLineItem:
    id: str
    price_id: str | None = None
    quantity: int = 1
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _frozen(self.metadata))

    @property
    def internal_item_id(self) -> str | None:
        return self.metadata.get(INTERNAL_ITEM_ID_KEY) or None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderSubscription:
    id: str
    status: str = ""
    cancel_at_period_end: bool | None = None
    pause_collection: PauseCollection | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    items: tuple[ProviderLineItem, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", _frozen(self.metadata))
        object.__setattr__(self, "items", tuple(self.items))

    @property
    def internal_subscription_id(self) -> str | None:
        value = self.metadata.get(INTERNAL_SUBSCRIPTION_ID_KEY)
        if isinstance(value, str) and value:
            return value
        return None

    @property
    def is_paused(self) -> bool:
        return self.pause_collection is not None


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderEvent:
    """One inbound webhook event.

    ``subscription`` is ``None`` when the event's object is not a subscription;
    such events are ignored without any lookup.
    """

    kind: EventKind
    type: str
    subscription: ProviderSubscription | None = None
    id: str | None = None
