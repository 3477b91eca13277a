"""Translate Stripe webhook payloads into provider events.

Accepts already-authenticated, already-deserialised payloads: plain mappings
(e.g. ``json.loads`` output) or Stripe SDK objects exposing ``to_dict``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from logging import getLogger
from typing import Any, Final, cast

from pydantic import ValidationError

from subsync.domain.errors import InvalidEventPayload
from subsync.domain.reconciliation.events import (
    EventKind,
    PauseCollection,
    ProviderEvent,
    ProviderLineItem,
    ProviderSubscription,
)

from .schema import EventPayload, SubscriptionItemPayload, SubscriptionPayload

log = getLogger(__name__)

SUBSCRIPTION_OBJECT: Final[str] = "subscription"

EVENT_KINDS: Final[dict[str, EventKind]] = {
    "customer.subscription.created": EventKind.CREATED,
    "customer.subscription.updated": EventKind.UPDATED,
    "customer.subscription.deleted": EventKind.DELETED,
    "customer.subscription.paused": EventKind.PAUSED,
    "customer.subscription.resumed": EventKind.RESUMED,
}


def event_kind_for(event_type: str) -> EventKind:
    return EVENT_KINDS.get(event_type, EventKind.OTHER)


def as_mapping(payload: object) -> Mapping[str, Any]:
    """Return a plain mapping for a JSON payload or a Stripe SDK object."""

    to_dict = getattr(payload, "to_dict", None)
    if callable(to_dict):
        return cast(Mapping[str, Any], to_dict())
    if isinstance(payload, Mapping):
        return cast(Mapping[str, Any], payload)
    raise InvalidEventPayload(f"Unsupported payload type: {type(payload).__name__}")


def _timestamp(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def _line_item(
    item: SubscriptionItemPayload,
    subscription: SubscriptionPayload,
) -> ProviderLineItem:
    # Older API versions report periods on the subscription rather than the item.
    period_start = item.current_period_start or subscription.current_period_start
    period_end = item.current_period_end or subscription.current_period_end
    return ProviderLineItem(
        id=item.id,
        price_id=item.price.id if item.price else None,
        quantity=item.quantity,
        current_period_start=_timestamp(period_start),
        current_period_end=_timestamp(period_end),
        metadata=item.metadata,
    )


def parse_subscription(payload: object) -> ProviderSubscription:
    """Return the provider view of a Stripe subscription object."""

    try:
        subscription = SubscriptionPayload.model_validate(as_mapping(payload))
    except ValidationError as exc:
        raise InvalidEventPayload(f"Invalid Stripe subscription payload: {exc}") from exc

    pause = subscription.pause_collection
    return ProviderSubscription(
        id=subscription.id,
        status=subscription.status,
        cancel_at_period_end=subscription.cancel_at_period_end,
        pause_collection=PauseCollection(behavior=pause.behavior) if pause is not None else None,
        metadata=subscription.metadata,
        items=tuple(_line_item(item, subscription) for item in subscription.items.data),
    )


def parse_event(payload: object) -> ProviderEvent:
    """Return a ``ProviderEvent``; non-subscription objects yield ``subscription=None``."""

    try:
        envelope = EventPayload.model_validate(as_mapping(payload))
    except ValidationError as exc:
        raise InvalidEventPayload(f"Invalid Stripe event payload: {exc}") from exc

    kind = event_kind_for(envelope.type)
    if envelope.object_type != SUBSCRIPTION_OBJECT:
        log.debug("Event %s carries a %s object", envelope.type, envelope.object_type)
        return ProviderEvent(kind=kind, type=envelope.type, id=envelope.id)

    return ProviderEvent(
        kind=kind,
        type=envelope.type,
        subscription=parse_subscription(envelope.data.object),
        id=envelope.id,
    )
