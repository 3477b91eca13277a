"""Outbound Stripe calls: create, cancel, pause and resume subscriptions.

Creation stores every identity mapping the webhooks later rely on. When Stripe
activates the subscription immediately, item periods are copied over and the
subscription is activated without waiting for the created webhook.
"""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

from subsync.config.reconcile import ReconcileConfig
from subsync.domain.errors import MissingProviderIdMapping, ProviderError
from subsync.domain.reconciliation import ItemResolver, sync_periods_and_activate
from subsync.domain.reconciliation.events import (
    INTERNAL_ITEM_ID_KEY,
    INTERNAL_PRICE_ID_KEY,
    INTERNAL_SUBSCRIPTION_ID_KEY,
)

from .checkout import CreateSubscriptionUsingCheckout
from .results import ProviderResult, stripe_field
from .translator import as_mapping, parse_subscription

if TYPE_CHECKING:
    from collections.abc import Mapping

    from stripe import StripeClient

    from subsync.domain.id_store import ProviderIdStore
    from subsync.domain.model import Subscription

log = getLogger(__name__)

DEFAULT_PAUSE_BEHAVIOR: Final[str] = "mark_uncollectible"
PASS_THROUGH_OPTION_KEYS: Final[tuple[str, ...]] = (
    "proration_behavior",
    "default_payment_method",
    "coupon",
    "collection_method",
    "days_until_due",
    "payment_behavior",
)


class StripeBillingProvider:
    def __init__(
        self,
        client: StripeClient,
        ids: ProviderIdStore,
        checkout: CreateSubscriptionUsingCheckout | None = None,
        *,
        config: ReconcileConfig | None = None,
    ) -> None:
        self.client = client
        self.ids = ids
        self.checkout = checkout or CreateSubscriptionUsingCheckout(client, ids)
        self.config = config or ReconcileConfig()

    def create(
        self,
        subscription: Subscription,
        options: Mapping[str, Any] | None = None,
    ) -> ProviderResult:
        """Create ``subscription`` at Stripe.

        With ``success_url``/``cancel_url`` in ``options`` this starts a Checkout
        session instead and the result carries the redirect URL.
        """

        options = options or {}
        if options.get("success_url") or options.get("cancel_url"):
            return self.checkout.create(subscription, options)

        customer_id = self.ids.require_customer_id(subscription)
        price_map = self.ids.price_ids([item.price_id for item in subscription.items])

        items: list[dict[str, Any]] = []
        for item in subscription.items:
            stripe_price_id = price_map.get(item.price_id)
            if not stripe_price_id:
                raise MissingProviderIdMapping(
                    f"Missing Stripe price for internal price id {item.price_id}."
                )
            items.append(
                {
                    "price": stripe_price_id,
                    "quantity": item.quantity,
                    "metadata": {
                        INTERNAL_ITEM_ID_KEY: item.id,
                        INTERNAL_PRICE_ID_KEY: item.price_id,
                    },
                }
            )

        params: dict[str, Any] = {
            "customer": customer_id,
            "items": items,
            "metadata": {INTERNAL_SUBSCRIPTION_ID_KEY: subscription.id},
            "expand": ["latest_invoice.payment_intent"],
        }
        for key in PASS_THROUGH_OPTION_KEYS:
            if key in options:
                params[key] = options[key]
        if subscription.cancel_at_period_end:
            params["cancel_at_period_end"] = True
        if subscription.trial_ends_at is not None:
            params["trial_end"] = int(subscription.trial_ends_at.timestamp())

        created = self.client.subscriptions.create(params=params)
        payload = as_mapping(created)
        provider_subscription = parse_subscription(payload)

        self.ids.store_subscription_id(subscription.id, provider_subscription.id)
        resolution = ItemResolver(self.ids).resolve(provider_subscription.items, subscription)
        self.ids.store_subscription_item_ids(resolution.as_mapping())

        redirect_url = stripe_field(
            payload, "latest_invoice", "hosted_invoice_url"
        ) or stripe_field(
            payload, "latest_invoice", "payment_intent", "next_action", "redirect_to_url", "url"
        )
        if redirect_url:
            log.info("Stripe subscription %s requires customer action", provider_subscription.id)
            return ProviderResult(subscription=subscription, redirect_url=str(redirect_url))

        if provider_subscription.status in self.config.activatable_statuses:
            activated = sync_periods_and_activate(
                subscription,
                provider_subscription,
                ItemResolver(self.ids),
                log,
                resolution=resolution,
            )
            return ProviderResult(subscription=activated)

        raise ProviderError(
            f"Stripe subscription {provider_subscription.id} was created with "
            f"status {provider_subscription.status!r}."
        )

    def cancel(self, subscription: Subscription, *, at_period_end: bool = True) -> ProviderResult:
        stripe_id = self.ids.require_subscription_id(subscription)
        if at_period_end:
            self.client.subscriptions.update(stripe_id, params={"cancel_at_period_end": True})
        else:
            self.client.subscriptions.cancel(stripe_id)
        log.info("Canceled Stripe subscription %s (at_period_end=%s)", stripe_id, at_period_end)
        return ProviderResult(subscription=subscription.cancel(at_period_end))

    def pause(
        self, subscription: Subscription, *, behavior: str = DEFAULT_PAUSE_BEHAVIOR
    ) -> ProviderResult:
        stripe_id = self.ids.require_subscription_id(subscription)
        self.client.subscriptions.update(
            stripe_id, params={"pause_collection": {"behavior": behavior}}
        )
        log.info("Paused collection on Stripe subscription %s (%s)", stripe_id, behavior)
        return ProviderResult(subscription=subscription.pause())

    def resume(
        self, subscription: Subscription, *, clear_cancel_at_period_end: bool = False
    ) -> ProviderResult:
        stripe_id = self.ids.require_subscription_id(subscription)
        # Stripe clears pause_collection when it is set to an empty string.
        params: dict[str, Any] = {"pause_collection": ""}
        if clear_cancel_at_period_end:
            params["cancel_at_period_end"] = False
        self.client.subscriptions.update(stripe_id, params=params)
        log.info("Resumed collection on Stripe subscription %s", stripe_id)
        resumed = subscription.resume()
        if clear_cancel_at_period_end:
            resumed = replace(resumed, cancel_at_period_end=False, canceled_at=None)
        return ProviderResult(subscription=resumed)
