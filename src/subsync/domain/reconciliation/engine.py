"""Webhook reconciliation engine.

Takes one provider event, resolves the internal subscription it refers to,
computes the transitions the event implies and persists the result once.

``handle`` never raises: webhook delivery expects an acknowledgement whether
or not the event could be applied. Every outcome is logged instead:

- info: events that are not about subscriptions, unhandled kinds, events for
  subscriptions this system has no mapping for
- warning: anomalies (missing metadata on creation, unknown internal ids,
  unresolvable items, rejected transitions)
- error: unexpected collaborator failures
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from subsync.config.logging import null_logger
from subsync.config.reconcile import ReconcileConfig
from subsync.domain.errors import SubscriptionStateError

from .activation import report_unresolved_items, sync_periods_and_activate
from .contracts import ReconcileOutcome
from .events import EventKind
from .items import ItemResolver

if TYPE_CHECKING:
    from logging import Logger

    from subsync.domain.id_store import ProviderIdStore
    from subsync.domain.model import Subscription
    from subsync.domain.ports import SubscriptionRepository

    from .contracts import ItemResolution
    from .events import ProviderEvent, ProviderSubscription


class WebhookReconciler:
    """Apply provider subscription events to internal subscription aggregates."""

    def __init__(
        self,
        subscriptions: SubscriptionRepository,
        id_store: ProviderIdStore,
        *,
        resolver: ItemResolver | None = None,
        logger: Logger | None = None,
        config: ReconcileConfig | None = None,
    ) -> None:
        self.subscriptions = subscriptions
        self.id_store = id_store
        self.resolver = resolver or ItemResolver(id_store)
        self.log = logger or null_logger()
        self.config = config or ReconcileConfig()

    def handle(self, event: ProviderEvent) -> ReconcileOutcome:
        provider_subscription = event.subscription
        if provider_subscription is None:
            self.log.info("Ignoring non-subscription event %s", event.type)
            return ReconcileOutcome.IGNORED

        self.log.debug(
            "Processing %s for provider subscription %s (status=%s)",
            event.type,
            provider_subscription.id,
            provider_subscription.status or "unknown",
        )
        try:
            return self._dispatch(event.kind, provider_subscription)
        except SubscriptionStateError as exc:
            self.log.warning(
                "Rejected %s for provider subscription %s: %s",
                event.type,
                provider_subscription.id,
                exc,
            )
            return ReconcileOutcome.DROPPED
        except Exception:  # noqa: BLE001
            self.log.exception(
                "Failed to handle %s for provider subscription %s",
                event.type,
                provider_subscription.id,
            )
            return ReconcileOutcome.FAILED

    def _dispatch(
        self,
        kind: EventKind,
        provider_subscription: ProviderSubscription,
    ) -> ReconcileOutcome:
        match kind:
            case EventKind.CREATED:
                return self._handle_created(provider_subscription)
            case EventKind.UPDATED:
                return self._handle_updated(provider_subscription)
            case EventKind.DELETED:
                return self._handle_deleted(provider_subscription)
            case EventKind.PAUSED:
                return self._handle_paused(provider_subscription)
            case EventKind.RESUMED:
                return self._handle_resumed(provider_subscription)
            case EventKind.OTHER:
                self.log.info(
                    "Unhandled subscription event for provider subscription %s",
                    provider_subscription.id,
                )
                return ReconcileOutcome.IGNORED
            case _:
                assert_never(kind)

    # Handlers ----------------------------------------------------------------

    def _handle_created(self, provider_subscription: ProviderSubscription) -> ReconcileOutcome:
        # Creation resolves the internal id from embedded metadata only.
        internal_id = provider_subscription.internal_subscription_id
        if internal_id is None:
            self.log.warning(
                "No internal subscription id found for created provider subscription %s",
                provider_subscription.id,
            )
            return ReconcileOutcome.DROPPED

        subscription = self.subscriptions.find(internal_id)
        if subscription is None:
            self.log.warning(
                "Internal subscription %s not found for created provider subscription %s",
                internal_id,
                provider_subscription.id,
            )
            return ReconcileOutcome.DROPPED

        resolution: ItemResolution | None = None
        if self._existing_mapping(provider_subscription) is None:
            self.id_store.store_subscription_id(internal_id, provider_subscription.id)
            resolution = self.resolver.resolve(provider_subscription.items, subscription)
            report_unresolved_items(resolution, provider_subscription, self.log)
            self.id_store.store_subscription_item_ids(resolution.as_mapping())
        else:
            self.log.debug(
                "Mapping for provider subscription %s already stored; skipping mapping writes",
                provider_subscription.id,
            )

        if self._is_activatable(provider_subscription):
            subscription = sync_periods_and_activate(
                subscription,
                provider_subscription,
                self.resolver,
                self.log,
                resolution=resolution,
            )

        self.subscriptions.save(subscription)
        return ReconcileOutcome.APPLIED

    def _handle_updated(self, provider_subscription: ProviderSubscription) -> ReconcileOutcome:
        subscription = self._find_by_provider_id(provider_subscription.id)
        if subscription is None:
            return ReconcileOutcome.SKIPPED

        if provider_subscription.status == "canceled":
            self.subscriptions.save(subscription.cancel(at_period_end=False))
            return ReconcileOutcome.APPLIED

        # Status, pending cancellation and pause are independent signals and compose.
        if self._is_activatable(provider_subscription):
            subscription = sync_periods_and_activate(
                subscription, provider_subscription, self.resolver, self.log
            )
        if provider_subscription.cancel_at_period_end is True:
            subscription = subscription.cancel(at_period_end=True)
        if provider_subscription.is_paused:
            subscription = subscription.pause()

        self.subscriptions.save(subscription)
        return ReconcileOutcome.APPLIED

    def _handle_deleted(self, provider_subscription: ProviderSubscription) -> ReconcileOutcome:
        subscription = self._find_by_provider_id(provider_subscription.id)
        if subscription is None:
            return ReconcileOutcome.SKIPPED

        self.subscriptions.save(subscription.cancel(at_period_end=False))
        return ReconcileOutcome.APPLIED

    def _handle_paused(self, provider_subscription: ProviderSubscription) -> ReconcileOutcome:
        subscription = self._find_by_provider_id(provider_subscription.id)
        if subscription is None:
            return ReconcileOutcome.SKIPPED

        self.subscriptions.save(subscription.pause())
        return ReconcileOutcome.APPLIED

    def _handle_resumed(self, provider_subscription: ProviderSubscription) -> ReconcileOutcome:
        subscription = self._find_by_provider_id(provider_subscription.id)
        if subscription is None:
            return ReconcileOutcome.SKIPPED

        if self._is_activatable(provider_subscription):
            subscription = sync_periods_and_activate(
                subscription, provider_subscription, self.resolver, self.log
            )

        self.subscriptions.save(subscription)
        return ReconcileOutcome.APPLIED

    # Helpers -----------------------------------------------------------------

    def _is_activatable(self, provider_subscription: ProviderSubscription) -> bool:
        return provider_subscription.status in self.config.activatable_statuses

    def _existing_mapping(self, provider_subscription: ProviderSubscription) -> str | None:
        try:
            return self.id_store.internal_subscription_id(provider_subscription.id)
        except Exception:  # noqa: BLE001
            # Read failures count as "no mapping".
            self.log.warning(
                "Could not read mapping for provider subscription %s; treating it as new",
                provider_subscription.id,
                exc_info=True,
            )
            return None

    def _find_by_provider_id(self, external_id: str) -> Subscription | None:
        internal_id = self.id_store.internal_subscription_id(external_id)
        if not internal_id:
            self.log.info("No internal mapping for provider subscription %s", external_id)
            return None

        subscription = self.subscriptions.find(internal_id)
        if subscription is None:
            self.log.warning(
                "Subscription %s mapped from provider subscription %s not found in repository",
                internal_id,
                external_id,
            )
        return subscription
