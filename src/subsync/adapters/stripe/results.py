"""Outcome of an outbound provider call and Stripe response helpers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from subsync.domain.model import Subscription


@dataclass(frozen=True, slots=True)
class ProviderResult:
    """The next subscription state, plus a URL when the customer must act first."""

    subscription: Subscription
    redirect_url: str | None = None

    @property
    def requires_action(self) -> bool:
        return self.redirect_url is not None


def stripe_field(obj: object, *path: str) -> Any:
    """Walk ``path`` through Stripe objects or mappings; ``None`` when any step is missing."""

    current: object = obj
    for key in path:
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = cast(Mapping[str, object], current).get(key)
        else:
            current = getattr(current, key, None)
    return current
