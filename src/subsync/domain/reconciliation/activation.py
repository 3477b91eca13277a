"""Sync item billing periods from the provider, then activate."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from logging import Logger

    from subsync.domain.model import Subscription

    from .contracts import ItemResolution
    from .events import ProviderSubscription
    from .items import ItemResolver


def report_unresolved_items(
    resolution: ItemResolution,
    provider_subscription: ProviderSubscription,
    log: Logger,
) -> None:
    for failure in resolution.failures:
        log.warning(
            "Could not resolve internal item id for provider item %s on subscription %s",
            failure.line_item.id,
            provider_subscription.id,
            extra={"reason": failure.reason},
        )


def sync_periods_and_activate(
    subscription: Subscription,
    provider_subscription: ProviderSubscription,
    resolver: ItemResolver,
    log: Logger,
    *,
    resolution: ItemResolution | None = None,
) -> Subscription:
    """Copy provider periods onto every resolvable item and call ``activate`` once.

    Items that cannot be resolved, are unknown to the subscription, or carry no
    period are reported and skipped; activation still proceeds. A ``resolution``
    already computed (and reported) for this event is reused as is.
    """

    if resolution is None:
        resolution = resolver.resolve(provider_subscription.items, subscription)
        report_unresolved_items(resolution, provider_subscription, log)

    for binding in resolution.bindings:
        line_item = binding.line_item
        if not subscription.has_item(binding.internal_item_id):
            log.warning(
                "Provider item %s resolved to %s which subscription %s does not contain",
                line_item.id,
                binding.internal_item_id,
                subscription.id,
            )
            continue
        if line_item.current_period_start is None or line_item.current_period_end is None:
            log.warning(
                "Provider item %s on subscription %s reports no current period",
                line_item.id,
                provider_subscription.id,
            )
            continue
        try:
            subscription = subscription.set_item_period(
                binding.internal_item_id,
                line_item.current_period_start,
                line_item.current_period_end,
            )
        except ValueError:
            log.warning(
                "Provider item %s on subscription %s reports an empty period",
                line_item.id,
                provider_subscription.id,
            )

    return subscription.activate()
