"""SQLAlchemy adapter package for subsync."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    external_id_mapping_table,
    metadata,
    subscription_item_table,
    subscription_table,
)
from .repositories import SqlAlchemyExternalIdMapper, SqlAlchemySubscriptionRepository
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyExternalIdMapper",
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "external_id_mapping_table",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "subscription_item_table",
    "subscription_table",
]
