"""Webhook reconciliation: apply provider subscription events to internal aggregates.

Flow per event:
1) classify the event kind (non-subscription events are ignored)
2) resolve the internal subscription (metadata on creation, id mappings afterwards)
3) resolve provider line items to internal items when periods must be synced
4) compose the implied transitions on the aggregate
5) save the aggregate once
"""

from __future__ import annotations

from .activation import report_unresolved_items, sync_periods_and_activate
from .contracts import ItemBinding, ItemResolution, MatchKind, ReconcileOutcome, UnresolvedItem
from .engine import WebhookReconciler
from .events import (
    INTERNAL_ITEM_ID_KEY,
    INTERNAL_PRICE_ID_KEY,
    INTERNAL_SUBSCRIPTION_ID_KEY,
    EventKind,
    PauseCollection,
    ProviderEvent,
    ProviderLineItem,
    ProviderSubscription,
)
from .items import ItemResolver, resolve_line_item

__all__ = [
    "INTERNAL_ITEM_ID_KEY",
    "INTERNAL_PRICE_ID_KEY",
    "INTERNAL_SUBSCRIPTION_ID_KEY",
    "EventKind",
    "ItemBinding",
    "ItemResolution",
    "ItemResolver",
    "MatchKind",
    "PauseCollection",
    "ProviderEvent",
    "ProviderLineItem",
    "ProviderSubscription",
    "ReconcileOutcome",
    "UnresolvedItem",
    "WebhookReconciler",
    "report_unresolved_items",
    "resolve_line_item",
    "sync_periods_and_activate",
]
