"""Domain error hierarchy."""

from __future__ import annotations


class SubsyncError(Exception):
    """Base class for errors raised by subsync."""


class SubscriptionStateError(SubsyncError, ValueError):
    """Raised when a subscription transition is not allowed from its current state."""


class UnknownSubscriptionItemError(SubsyncError, KeyError):
    """Raised when an item id does not belong to the subscription."""

    def __init__(self, subscription_id: str, item_id: str) -> None:
        super().__init__(f"Subscription {subscription_id} has no item {item_id}")
        self.subscription_id = subscription_id
        self.item_id = item_id

    def __str__(self) -> str:
        return str(self.args[0])


class MissingProviderIdMapping(SubsyncError, LookupError):
    """Raised when a required internal/provider id mapping is absent."""


class ProviderError(SubsyncError, RuntimeError):
    """Raised when the payment provider returns an unusable response."""


class InvalidEventPayload(SubsyncError, ValueError):
    """Raised when an inbound webhook payload cannot be parsed."""
