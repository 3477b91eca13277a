"""Stripe adapter: webhook translation and outbound subscription calls."""

from __future__ import annotations

from .checkout import CreateSubscriptionUsingCheckout
from .client import build_stripe_client
from .provider import DEFAULT_PAUSE_BEHAVIOR, StripeBillingProvider
from .results import ProviderResult, stripe_field
from .translator import EVENT_KINDS, as_mapping, event_kind_for, parse_event, parse_subscription

__all__ = [
    "DEFAULT_PAUSE_BEHAVIOR",
    "EVENT_KINDS",
    "CreateSubscriptionUsingCheckout",
    "ProviderResult",
    "StripeBillingProvider",
    "as_mapping",
    "build_stripe_client",
    "event_kind_for",
    "parse_event",
    "parse_subscription",
    "stripe_field",
]
