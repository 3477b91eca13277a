"""Create subscriptions through a Stripe Checkout session."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from subsync.domain.errors import MissingProviderIdMapping, ProviderError
from subsync.domain.reconciliation.events import INTERNAL_SUBSCRIPTION_ID_KEY

from .results import ProviderResult, stripe_field

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stripe import StripeClient

    from subsync.domain.id_store import ProviderIdStore
    from subsync.domain.model import Subscription

log = getLogger(__name__)

SESSION_OPTION_KEYS: Final[tuple[str, ...]] = ("allow_promotion_codes", "locale")
SUBSCRIPTION_DATA_OPTION_KEYS: Final[tuple[str, ...]] = (
    "proration_behavior",
    "default_payment_method",
    "coupon",
)


class CreateSubscriptionUsingCheckout:
    def __init__(self, client: StripeClient, ids: ProviderIdStore) -> None:
        self.client = client
        self.ids = ids

    def create(
        self,
        subscription: Subscription,
        options: Mapping[str, Any] | None = None,
    ) -> ProviderResult:
        options = options or {}
        success_url = options.get("success_url")
        cancel_url = options.get("cancel_url")
        if not success_url or not cancel_url:
            raise ValueError(
                "Missing required Checkout URLs: provide both success_url and cancel_url."
            )

        customer_id = self.ids.require_customer_id(subscription)
        params: dict[str, Any] = {
            "mode": "subscription",
            "customer": customer_id,
            "line_items": self._line_items(subscription),
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": subscription.id,
            "metadata": {INTERNAL_SUBSCRIPTION_ID_KEY: subscription.id},
        }
        for key in SESSION_OPTION_KEYS:
            if key in options:
                params[key] = options[key]

        # The subscription Checkout creates must carry the internal id for the
        # created webhook to correlate it.
        subscription_data: dict[str, Any] = {
            "metadata": {INTERNAL_SUBSCRIPTION_ID_KEY: subscription.id},
        }
        for key in SUBSCRIPTION_DATA_OPTION_KEYS:
            if key in options:
                subscription_data[key] = options[key]
        if subscription.cancel_at_period_end:
            subscription_data["cancel_at_period_end"] = True
        if subscription.trial_ends_at is not None:
            subscription_data["trial_end"] = int(subscription.trial_ends_at.timestamp())
        params["subscription_data"] = subscription_data

        session = self.client.checkout.sessions.create(params=params)
        url = stripe_field(session, "url")
        if not url:
            raise ProviderError("Failed to create Stripe Checkout session or missing session URL.")

        log.info("Created Checkout session for subscription %s", subscription.id)
        return ProviderResult(subscription=subscription, redirect_url=str(url))

    def _line_items(self, subscription: Subscription) -> list[dict[str, Any]]:
        price_map = self.ids.price_ids([item.price_id for item in subscription.items])
        line_items: list[dict[str, Any]] = []
        for item in subscription.items:
            stripe_price_id = price_map.get(item.price_id)
            if not stripe_price_id:
                raise MissingProviderIdMapping(
                    f"Missing Stripe price for internal price id {item.price_id}."
                )
            line_items.append({"price": stripe_price_id, "quantity": item.quantity})
        return line_items
