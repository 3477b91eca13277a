"""Domain port definitions for adapters."""

from __future__ import annotations

from .identity import ExternalIdMapper
from .persistence import SubscriptionRepository
from .unit_of_work import (
    RepositoryCollection,
    SubscriptionRepositories,
    SubscriptionUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "ExternalIdMapper",
    "RepositoryCollection",
    "SubscriptionRepositories",
    "SubscriptionRepository",
    "SubscriptionUnitOfWork",
    "UnitOfWork",
]
