from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from subsync.domain.errors import SubscriptionStateError, UnknownSubscriptionItemError
from subsync.domain.model import (
    BillingPeriod,
    EntityType,
    IdMapping,
    Provider,
    Subscription,
    SubscriptionItem,
    SubscriptionStatus,
)
from tests.helpers.subscriptions import PERIOD_END, PERIOD_START, make_subscription

NOW = datetime(2025, 1, 15, tzinfo=UTC)


def test_create_starts_incomplete() -> None:
    subscription = Subscription.create(billable_type="user", billable_id=7)

    assert subscription.status is SubscriptionStatus.INCOMPLETE
    assert subscription.billable_id == "7"
    assert subscription.provider is Provider.STRIPE
    assert subscription.items == ()
    assert subscription.canceled_at is None


def test_activate_without_trial_is_active() -> None:
    subscription = make_subscription().activate(now=NOW)

    assert subscription.is_active()


def test_activate_with_future_trial_is_trialing() -> None:
    subscription = make_subscription().with_trial_until(NOW + timedelta(days=14))

    assert subscription.activate(now=NOW).is_trialing()
    assert subscription.activate(now=NOW + timedelta(days=15)).is_active()


def test_activate_twice_is_idempotent() -> None:
    once = make_subscription().activate(now=NOW)

    assert once.activate(now=NOW) == once


def test_activate_canceled_subscription_is_rejected() -> None:
    canceled = make_subscription().cancel(at_period_end=False, now=NOW)

    with pytest.raises(SubscriptionStateError):
        canceled.activate()


def test_cancel_at_period_end_keeps_status() -> None:
    subscription = make_subscription().activate(now=NOW).cancel(at_period_end=True, now=NOW)

    assert subscription.is_active()
    assert subscription.cancel_at_period_end is True
    assert subscription.canceled_at == NOW


def test_cancel_immediately_sets_terminal_status() -> None:
    subscription = make_subscription().activate(now=NOW).cancel(at_period_end=False, now=NOW)

    assert subscription.is_canceled()
    assert subscription.cancel_at_period_end is False
    assert subscription.canceled_at == NOW


def test_cancel_keeps_first_cancellation_timestamp() -> None:
    flagged = make_subscription().cancel(at_period_end=True, now=NOW)
    later = NOW + timedelta(days=3)

    assert flagged.cancel(at_period_end=True, now=later).canceled_at == NOW
    canceled = flagged.cancel(at_period_end=False, now=later)
    assert canceled.canceled_at == NOW
    assert canceled.cancel(at_period_end=False, now=later) == canceled


def test_cancel_on_canceled_subscription_is_a_no_op() -> None:
    canceled = make_subscription().cancel(at_period_end=False, now=NOW)

    assert canceled.cancel(at_period_end=True) == canceled


def test_pause_and_resume() -> None:
    paused = make_subscription().activate(now=NOW).pause()

    assert paused.is_paused()
    assert paused.pause() == paused
    assert paused.resume(now=NOW).is_active()


def test_pause_canceled_subscription_is_rejected() -> None:
    canceled = make_subscription().cancel(at_period_end=False, now=NOW)

    with pytest.raises(SubscriptionStateError):
        canceled.pause()
    with pytest.raises(SubscriptionStateError):
        canceled.resume()


def test_set_item_period_only_touches_that_item() -> None:
    subscription = make_subscription(
        items=(("item-1", "price-basic", 1), ("item-2", "price-addon", 2)),
    )

    updated = subscription.set_item_period("item-2", PERIOD_START, PERIOD_END)

    assert updated.item("item-2").current_period_starts_at == PERIOD_START
    assert updated.item("item-2").current_period_ends_at == PERIOD_END
    assert updated.item("item-1").current_period is None
    assert subscription.item("item-2").current_period is None


def test_set_item_period_unknown_item() -> None:
    subscription = make_subscription()

    with pytest.raises(UnknownSubscriptionItemError) as excinfo:
        subscription.set_item_period("missing", PERIOD_START, PERIOD_END)

    assert excinfo.value.item_id == "missing"
    assert "missing" in str(excinfo.value)


def test_set_item_period_rejects_empty_period() -> None:
    subscription = make_subscription()

    with pytest.raises(ValueError, match="end after it starts"):
        subscription.set_item_period("item-1", PERIOD_END, PERIOD_START)


def test_billing_period_normalises_naive_datetimes_to_utc() -> None:
    period = BillingPeriod(starts_at=datetime(2025, 1, 1), ends_at=datetime(2025, 2, 1))  # noqa: DTZ001

    assert period.starts_at.tzinfo is UTC
    assert period.ends_at.tzinfo is UTC


def test_subscription_item_requires_positive_quantity() -> None:
    with pytest.raises(ValueError, match="at least 1"):
        SubscriptionItem(price_id="price-basic", quantity=0)


def test_primary_item_and_lookup() -> None:
    subscription = make_subscription(
        items=(("item-1", "price-basic", 1), ("item-2", "price-addon", 1)),
    )

    primary = subscription.primary_item()
    assert primary is not None
    assert primary.id == "item-1"
    assert subscription.has_item("item-2")
    assert not subscription.has_item("item-3")
    with pytest.raises(KeyError):
        subscription.item("item-3")


def test_id_mapping_rejects_empty_ids() -> None:
    with pytest.raises(ValueError):
        IdMapping(
            entity_type=EntityType.PRICE,
            provider=Provider.STRIPE,
            internal_id="",
            external_id="price_1",
        )
