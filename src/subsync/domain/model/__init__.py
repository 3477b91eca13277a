"""Domain model for subscriptions and provider identity mappings."""

from __future__ import annotations

from .enums import EntityType, Provider, SubscriptionStatus
from .identity import IdMapping
from .subscription import (
    BillingPeriod,
    Subscription,
    SubscriptionItem,
    new_item_id,
    new_subscription_id,
)

__all__ = [
    "BillingPeriod",
    "EntityType",
    "IdMapping",
    "Provider",
    "Subscription",
    "SubscriptionItem",
    "SubscriptionStatus",
    "new_item_id",
    "new_subscription_id",
]
