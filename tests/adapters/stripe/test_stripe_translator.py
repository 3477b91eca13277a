from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from subsync.adapters.stripe import as_mapping, event_kind_for, parse_event, parse_subscription
from subsync.domain.errors import InvalidEventPayload
from subsync.domain.reconciliation import EventKind
from tests.helpers.subscriptions import (
    PERIOD_END,
    PERIOD_START,
    stripe_event_payload,
    stripe_item_payload,
    stripe_subscription_payload,
)


class FakeStripeObject:
    def __init__(self, payload: dict[str, Any]) -> None:
        self.payload = payload

    def to_dict(self) -> dict[str, Any]:
        return self.payload


@pytest.mark.parametrize(
    ("event_type", "kind"),
    [
        ("customer.subscription.created", EventKind.CREATED),
        ("customer.subscription.updated", EventKind.UPDATED),
        ("customer.subscription.deleted", EventKind.DELETED),
        ("customer.subscription.paused", EventKind.PAUSED),
        ("customer.subscription.resumed", EventKind.RESUMED),
        ("customer.subscription.trial_will_end", EventKind.OTHER),
        ("invoice.paid", EventKind.OTHER),
    ],
)
def test_event_kind_for(event_type: str, kind: EventKind) -> None:
    assert event_kind_for(event_type) is kind


def test_parse_created_event(stripe_event_payloads: tuple[dict[str, Any], ...]) -> None:
    event = parse_event(stripe_event_payloads[0])

    assert event.kind is EventKind.CREATED
    assert event.id == "evt_created"
    subscription = event.subscription
    assert subscription is not None
    assert subscription.id == "sub_stripe_1"
    assert subscription.internal_subscription_id == "sub-internal-1"
    assert subscription.pause_collection is None
    (line_item,) = subscription.items
    assert line_item.internal_item_id == "item-1"
    assert line_item.price_id == "price_stripe_basic"
    assert line_item.current_period_start == datetime(2025, 1, 1, tzinfo=UTC)
    assert line_item.current_period_end == datetime(2025, 2, 1, tzinfo=UTC)


def test_non_subscription_object_has_no_subscription(
    stripe_event_payloads: tuple[dict[str, Any], ...],
) -> None:
    event = parse_event(stripe_event_payloads[1])

    assert event.kind is EventKind.OTHER
    assert event.subscription is None


def test_pause_marker_is_kept(stripe_event_payloads: tuple[dict[str, Any], ...]) -> None:
    event = parse_event(stripe_event_payloads[3])

    assert event.subscription is not None
    assert event.subscription.pause_collection is not None
    assert event.subscription.pause_collection.behavior == "void"
    assert event.subscription.is_paused


def test_item_period_falls_back_to_subscription_period() -> None:
    payload = stripe_subscription_payload(items=(stripe_item_payload(period=None),))
    payload["current_period_start"] = int(PERIOD_START.timestamp())
    payload["current_period_end"] = int(PERIOD_END.timestamp())

    (line_item,) = parse_subscription(payload).items

    assert line_item.current_period_start == PERIOD_START
    assert line_item.current_period_end == PERIOD_END


def test_unexpanded_price_and_null_fields() -> None:
    item = stripe_item_payload()
    item["price"] = "price_bare"
    item["quantity"] = None
    item["metadata"] = None
    payload = stripe_subscription_payload(items=(item,))
    payload["metadata"] = {"internal_subscription_id": "", "n": 3}

    subscription = parse_subscription(payload)

    assert subscription.items[0].price_id == "price_bare"
    assert subscription.items[0].quantity == 1
    assert subscription.items[0].internal_item_id is None
    assert subscription.internal_subscription_id is None
    assert subscription.metadata["n"] == "3"


def test_sdk_objects_are_converted() -> None:
    payload = stripe_event_payload(
        "customer.subscription.updated", stripe_subscription_payload(status="past_due")
    )

    event = parse_event(FakeStripeObject(payload))

    assert event.subscription is not None
    assert event.subscription.status == "past_due"
    assert as_mapping(FakeStripeObject({"a": 1})) == {"a": 1}


class LegacyStripeObject(FakeStripeObject):
    def to_dict_recursive(self) -> dict[str, Any]:
        raise AssertionError("to_dict_recursive is deprecated")


def test_sdk_objects_use_to_dict_only() -> None:
    assert as_mapping(LegacyStripeObject({"a": 1})) == {"a": 1}


def test_invalid_payloads_raise() -> None:
    with pytest.raises(InvalidEventPayload):
        parse_event({"type": "customer.subscription.created"})
    with pytest.raises(InvalidEventPayload):
        parse_event(
            stripe_event_payload("customer.subscription.created", {"object": "subscription"})
        )
    with pytest.raises(InvalidEventPayload, match="Unsupported payload type"):
        as_mapping(42)
