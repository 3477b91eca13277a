"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subsync.domain.model import Subscription


@runtime_checkable
class SubscriptionRepository(Protocol):
    """Load/save contract for subscription aggregates keyed by internal id."""

    def find(self, subscription_id: str) -> Subscription | None: ...

    def save(self, subscription: Subscription) -> None: ...
