"""Construct the Stripe SDK client from configuration."""

from __future__ import annotations

from stripe import StripeClient

from subsync.config.stripe import StripeConfig, get_stripe_config


def build_stripe_client(config: StripeConfig | None = None) -> StripeClient:
    effective = config or get_stripe_config()
    return StripeClient(effective.api_key, stripe_version=effective.api_version)
