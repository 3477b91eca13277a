"""SQLAlchemy table metadata for subscriptions and identity mappings.

The aggregate is immutable, so tables are used through SQLAlchemy Core; the
repositories translate rows to and from domain values.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
)

from subsync.domain.model import EntityType, Provider, SubscriptionStatus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

external_id_mapping_table = Table(
    "external_id_mapping",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_type", Enum(EntityType, native_enum=False), nullable=False),
    Column("provider", Enum(Provider, native_enum=False), nullable=False),
    Column("internal_id", String, nullable=False),
    Column("external_id", String, nullable=False),
    Column("created_at", UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)),
    UniqueConstraint("entity_type", "provider", "internal_id"),
    UniqueConstraint("entity_type", "provider", "external_id"),
)

subscription_table = Table(
    "subscription",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("billable_type", String, nullable=False),
    Column("billable_id", String, nullable=False),
    Column("provider", Enum(Provider, native_enum=False), nullable=False),
    Column("status", Enum(SubscriptionStatus, native_enum=False), nullable=False),
    Column("cancel_at_period_end", Boolean, nullable=False, default=False),
    Column("canceled_at", UTCDateTime, nullable=True),
    Column("trial_ends_at", UTCDateTime, nullable=True),
    Column("created_at", UTCDateTime, nullable=False),
    Index("ix_subscription_billable", "billable_type", "billable_id"),
)

subscription_item_table = Table(
    "subscription_item",
    metadata,
    Column("id", String, primary_key=True),
    Column(
        "subscription_id",
        String,
        ForeignKey("subscription.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("position", Integer, nullable=False),
    Column("price_id", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("current_period_starts_at", UTCDateTime, nullable=True),
    Column("current_period_ends_at", UTCDateTime, nullable=True),
    Index("ix_subscription_item_subscription", "subscription_id", "position"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the declared metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
