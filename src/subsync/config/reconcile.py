"""Reconciliation defaults for webhook handling."""

from __future__ import annotations

from dataclasses import dataclass

from subsync.domain.model.enums import Provider

DEFAULT_ACTIVATABLE_STATUSES: tuple[str, ...] = ("active", "trialing")


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    provider: Provider = Provider.STRIPE
    activatable_statuses: tuple[str, ...] = DEFAULT_ACTIVATABLE_STATUSES


def get_reconcile_config() -> ReconcileConfig:
    return ReconcileConfig()
