"""Subscription aggregate.

Every transition returns a new value; instances are never mutated in place.
Transitions are idempotent: applying the same target twice yields the same
observable state, and timestamps recorded by the first application are kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

from subsync.domain.errors import SubscriptionStateError, UnknownSubscriptionItemError
from subsync.domain.model.enums import Provider, SubscriptionStatus

if TYPE_CHECKING:
    from collections.abc import Iterable


def new_subscription_id() -> str:
    return str(uuid4())


def new_item_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class BillingPeriod:
    """Start/end instants of an item's current billing cycle."""

    starts_at: datetime
    ends_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "starts_at", _as_utc(self.starts_at))
        object.__setattr__(self, "ends_at", _as_utc(self.ends_at))
        if self.ends_at <= self.starts_at:
            raise ValueError("Billing period must end after it starts")


@dataclass(frozen=True, slots=True, kw_only=True)
class SubscriptionItem:
    id: str = field(default_factory=new_item_id)
    price_id: str
    quantity: int = 1
    current_period: BillingPeriod | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("Subscription item quantity must be at least 1")

    @property
    def current_period_starts_at(self) -> datetime | None:
        return self.current_period.starts_at if self.current_period else None

    @property
    def current_period_ends_at(self) -> datetime | None:
        return self.current_period.ends_at if self.current_period else None

    def with_period(self, period: BillingPeriod) -> SubscriptionItem:
        return replace(self, current_period=period)


@dataclass(frozen=True, slots=True, kw_only=True)
class Subscription:
    id: str = field(default_factory=new_subscription_id)
    name: str = "default"
    billable_type: str
    billable_id: str
    provider: Provider = Provider.STRIPE
    status: SubscriptionStatus = SubscriptionStatus.INCOMPLETE
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None
    trial_ends_at: datetime | None = None
    created_at: datetime = field(default_factory=_utcnow)
    items: tuple[SubscriptionItem, ...] = ()

    @classmethod
    def create(
        cls,
        *,
        billable_type: str,
        billable_id: str | int,
        name: str = "default",
        provider: Provider = Provider.STRIPE,
        subscription_id: str | None = None,
        items: Iterable[SubscriptionItem] = (),
    ) -> Subscription:
        """Start a new, not yet activated subscription."""

        return cls(
            id=subscription_id or new_subscription_id(),
            name=name,
            billable_type=billable_type,
            billable_id=str(billable_id),
            provider=provider,
            items=tuple(items),
        )

    # Queries -----------------------------------------------------------------

    def is_incomplete(self) -> bool:
        return self.status is SubscriptionStatus.INCOMPLETE

    def is_active(self) -> bool:
        return self.status is SubscriptionStatus.ACTIVE

    def is_trialing(self) -> bool:
        return self.status is SubscriptionStatus.TRIALING

    def is_paused(self) -> bool:
        return self.status is SubscriptionStatus.PAUSED

    def is_canceled(self) -> bool:
        return self.status is SubscriptionStatus.CANCELED

    def on_trial(self, *, now: datetime | None = None) -> bool:
        if self.trial_ends_at is None:
            return False
        return self.trial_ends_at > (now or _utcnow())

    def item(self, item_id: str) -> SubscriptionItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise UnknownSubscriptionItemError(self.id, item_id)

    def has_item(self, item_id: str) -> bool:
        return any(item.id == item_id for item in self.items)

    def primary_item(self) -> SubscriptionItem | None:
        return self.items[0] if self.items else None

    # Builders ----------------------------------------------------------------

    def with_items(self, *items: SubscriptionItem) -> Subscription:
        return replace(self, items=self.items + items)

    def with_trial_until(self, trial_ends_at: datetime | None) -> Subscription:
        return replace(
            self,
            trial_ends_at=_as_utc(trial_ends_at) if trial_ends_at is not None else None,
        )

    # Transitions -------------------------------------------------------------

    def activate(self, *, now: datetime | None = None) -> Subscription:
        """Mark the subscription billable; a future trial end yields ``trialing``."""

        self._ensure_not_canceled("activate")
        return replace(self, status=self._running_status(now))

    def cancel(self, at_period_end: bool = True, *, now: datetime | None = None) -> Subscription:
        """Cancel immediately or flag the subscription to end with the current period."""

        canceled_at = self.canceled_at or _as_utc(now or _utcnow())
        if self.is_canceled():
            return self
        if at_period_end:
            return replace(self, cancel_at_period_end=True, canceled_at=canceled_at)
        return replace(
            self,
            status=SubscriptionStatus.CANCELED,
            cancel_at_period_end=False,
            canceled_at=canceled_at,
        )

    def pause(self) -> Subscription:
        self._ensure_not_canceled("pause")
        return replace(self, status=SubscriptionStatus.PAUSED)

    def resume(self, *, now: datetime | None = None) -> Subscription:
        self._ensure_not_canceled("resume")
        return replace(self, status=self._running_status(now))

    def set_item_period(
        self,
        item_id: str,
        starts_at: datetime,
        ends_at: datetime,
    ) -> Subscription:
        """Replace the current billing period of one item."""

        if not self.has_item(item_id):
            raise UnknownSubscriptionItemError(self.id, item_id)
        period = BillingPeriod(starts_at=starts_at, ends_at=ends_at)
        items = tuple(
            item.with_period(period) if item.id == item_id else item for item in self.items
        )
        return replace(self, items=items)

    def _running_status(self, now: datetime | None) -> SubscriptionStatus:
        if self.on_trial(now=now):
            return SubscriptionStatus.TRIALING
        return SubscriptionStatus.ACTIVE

    def _ensure_not_canceled(self, action: str) -> None:
        if self.is_canceled():
            raise SubscriptionStateError(f"Cannot {action} canceled subscription {self.id}")
