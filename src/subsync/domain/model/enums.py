"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Provider(StrEnum):
    STRIPE = "stripe"


class EntityType(StrEnum):
    """Kinds of entities that carry an identity mapping to a provider."""

    SUBSCRIPTION = "subscription"
    SUBSCRIPTION_ITEM = "subscription_item"
    PRICE = "price"
    PRODUCT = "product"
    CUSTOMER = "customer"


class SubscriptionStatus(StrEnum):
    INCOMPLETE = "incomplete"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELED = "canceled"
