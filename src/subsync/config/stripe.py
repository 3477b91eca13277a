"""Stripe configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError


@dataclass(frozen=True)
class StripeConfig:
    """Holds Stripe API configuration values."""

    api_key: str
    webhook_secret: str | None = None
    api_version: str | None = None

    @property
    def is_test_mode(self) -> bool:
        return self.api_key.startswith(("sk_test_", "rk_test_"))


def get_stripe_config() -> StripeConfig:
    values = require_env_vars(("STRIPE_API_KEY",))
    api_key = values["STRIPE_API_KEY"]
    if not api_key.startswith(("sk_", "rk_")):
        raise ConfigurationError("STRIPE_API_KEY must be a secret or restricted key")
    return StripeConfig(
        api_key=api_key,
        webhook_secret=optional_env_var("STRIPE_WEBHOOK_SECRET"),
        api_version=optional_env_var("STRIPE_API_VERSION"),
    )
