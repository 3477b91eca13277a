from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.orm import Session, sessionmaker

from subsync.adapters.memory import InMemoryExternalIdMapper, InMemorySubscriptionRepository
from subsync.adapters.sqlalchemy import create_all_tables
from subsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, shutdown, startup
from subsync.domain.id_store import ProviderIdStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture(scope="session")
def stripe_event_payloads() -> tuple[dict[str, Any], ...]:
    path = Path(__file__).resolve().parent / "data" / "stripe_subscription_events.jsonl"
    with path.open() as handle:
        return tuple(json.loads(line) for line in handle if line.strip())


@pytest.fixture
def id_mapper() -> InMemoryExternalIdMapper:
    return InMemoryExternalIdMapper()


@pytest.fixture
def id_store(id_mapper: InMemoryExternalIdMapper) -> ProviderIdStore:
    return ProviderIdStore(id_mapper)


@pytest.fixture
def subscription_repository() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_session(sqlite_engine: Engine) -> Iterator[Session]:
    session_factory = sessionmaker(bind=sqlite_engine, future=True)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()
