"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import delete, insert, select, update

from subsync.adapters.sqlalchemy.mappings import (
    external_id_mapping_table,
    subscription_item_table,
    subscription_table,
)
from subsync.domain.model import (
    BillingPeriod,
    Subscription,
    SubscriptionItem,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from subsync.domain.model import EntityType, IdMapping, Provider


class SqlAlchemyExternalIdMapper:
    """Identity mappings stored in ``external_id_mapping``.

    Writes keep both directions one-to-one by clearing any row that already pairs
    the internal id or the external id before inserting the new pair.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_internal_id(
        self, entity_type: EntityType, provider: Provider, external_id: str
    ) -> str | None:
        stmt = (
            select(external_id_mapping_table.c.internal_id)
            .where(external_id_mapping_table.c.entity_type == entity_type)
            .where(external_id_mapping_table.c.provider == provider)
            .where(external_id_mapping_table.c.external_id == external_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_external_id(
        self, entity_type: EntityType, provider: Provider, internal_id: str
    ) -> str | None:
        stmt = (
            select(external_id_mapping_table.c.external_id)
            .where(external_id_mapping_table.c.entity_type == entity_type)
            .where(external_id_mapping_table.c.provider == provider)
            .where(external_id_mapping_table.c.internal_id == internal_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_internal_id_map(
        self, entity_type: EntityType, provider: Provider, external_ids: Sequence[str]
    ) -> dict[str, str]:
        if not external_ids:
            return {}
        stmt = (
            select(
                external_id_mapping_table.c.external_id,
                external_id_mapping_table.c.internal_id,
            )
            .where(external_id_mapping_table.c.entity_type == entity_type)
            .where(external_id_mapping_table.c.provider == provider)
            .where(external_id_mapping_table.c.external_id.in_(list(external_ids)))
        )
        return {external_id: internal_id for external_id, internal_id in self.session.execute(stmt)}

    def get_external_id_map(
        self, entity_type: EntityType, provider: Provider, internal_ids: Sequence[str]
    ) -> dict[str, str]:
        if not internal_ids:
            return {}
        stmt = (
            select(
                external_id_mapping_table.c.internal_id,
                external_id_mapping_table.c.external_id,
            )
            .where(external_id_mapping_table.c.entity_type == entity_type)
            .where(external_id_mapping_table.c.provider == provider)
            .where(external_id_mapping_table.c.internal_id.in_(list(internal_ids)))
        )
        return {internal_id: external_id for internal_id, external_id in self.session.execute(stmt)}

    def store(
        self,
        entity_type: EntityType,
        provider: Provider,
        internal_id: str,
        external_id: str,
    ) -> None:
        table = external_id_mapping_table
        self.session.execute(
            delete(table)
            .where(table.c.entity_type == entity_type)
            .where(table.c.provider == provider)
            .where((table.c.internal_id == internal_id) | (table.c.external_id == external_id))
        )
        self.session.execute(
            insert(table).values(
                entity_type=entity_type,
                provider=provider,
                internal_id=internal_id,
                external_id=external_id,
            )
        )

    def store_multiple(self, mappings: Iterable[IdMapping]) -> None:
        for mapping in mappings:
            self.store(
                mapping.entity_type,
                mapping.provider,
                mapping.internal_id,
                mapping.external_id,
            )


class SqlAlchemySubscriptionRepository:
    """Load and save subscription aggregates; saving replaces the item rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find(self, subscription_id: str) -> Subscription | None:
        row = self.session.execute(
            select(subscription_table).where(subscription_table.c.id == subscription_id)
        ).one_or_none()
        if row is None:
            return None
        item_rows = self.session.execute(
            select(subscription_item_table)
            .where(subscription_item_table.c.subscription_id == subscription_id)
            .order_by(subscription_item_table.c.position)
        ).all()
        return _to_subscription(row, item_rows)

    def save(self, subscription: Subscription) -> None:
        values = {
            "name": subscription.name,
            "billable_type": subscription.billable_type,
            "billable_id": subscription.billable_id,
            "provider": subscription.provider,
            "status": subscription.status,
            "cancel_at_period_end": subscription.cancel_at_period_end,
            "canceled_at": subscription.canceled_at,
            "trial_ends_at": subscription.trial_ends_at,
            "created_at": subscription.created_at,
        }
        exists = self.session.execute(
            select(subscription_table.c.id).where(subscription_table.c.id == subscription.id)
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(insert(subscription_table).values(id=subscription.id, **values))
        else:
            self.session.execute(
                update(subscription_table)
                .where(subscription_table.c.id == subscription.id)
                .values(**values)
            )

        self.session.execute(
            delete(subscription_item_table).where(
                subscription_item_table.c.subscription_id == subscription.id
            )
        )
        if subscription.items:
            self.session.execute(
                insert(subscription_item_table),
                [
                    {
                        "id": item.id,
                        "subscription_id": subscription.id,
                        "position": position,
                        "price_id": item.price_id,
                        "quantity": item.quantity,
                        "current_period_starts_at": item.current_period_starts_at,
                        "current_period_ends_at": item.current_period_ends_at,
                    }
                    for position, item in enumerate(subscription.items)
                ],
            )
        self.session.flush()


def _to_subscription(
    row: Row[tuple[object, ...]],
    item_rows: Sequence[Row[tuple[object, ...]]],
) -> Subscription:
    data = row._mapping  # noqa: SLF001
    return Subscription(
        id=cast("str", data["id"]),
        name=cast("str", data["name"]),
        billable_type=cast("str", data["billable_type"]),
        billable_id=cast("str", data["billable_id"]),
        provider=data["provider"],
        status=data["status"],
        cancel_at_period_end=bool(data["cancel_at_period_end"]),
        canceled_at=data["canceled_at"],
        trial_ends_at=data["trial_ends_at"],
        created_at=data["created_at"],
        items=tuple(_to_item(item_row) for item_row in item_rows),
    )


def _to_item(row: Row[tuple[object, ...]]) -> SubscriptionItem:
    data = row._mapping  # noqa: SLF001
    starts_at = data["current_period_starts_at"]
    ends_at = data["current_period_ends_at"]
    period = (
        BillingPeriod(starts_at=starts_at, ends_at=ends_at)
        if starts_at is not None and ends_at is not None
        else None
    )
    return SubscriptionItem(
        id=cast("str", data["id"]),
        price_id=cast("str", data["price_id"]),
        quantity=cast("int", data["quantity"]),
        current_period=period,
    )


if TYPE_CHECKING:
    from subsync.domain.ports import ExternalIdMapper, SubscriptionRepository

    _session_stub = cast("Session", object())
    _mapper_check: ExternalIdMapper = SqlAlchemyExternalIdMapper(_session_stub)
    _repo_check: SubscriptionRepository = SqlAlchemySubscriptionRepository(_session_stub)
