from __future__ import annotations

import hashlib
import hmac
import json
import time
from typing import TYPE_CHECKING, Any

import pytest
import stripe

from subsync.adapters.sqlalchemy import SqlAlchemyUnitOfWork
from subsync.app import (
    apply_provider_event,
    reconcile_stripe_event,
    replay_stripe_events,
    verify_and_parse,
)
from subsync.domain.errors import InvalidEventPayload
from subsync.domain.id_store import ProviderIdStore
from subsync.domain.model import EntityType
from subsync.domain.ports import SubscriptionRepositories
from subsync.domain.reconciliation import EventKind, ReconcileOutcome
from tests.helpers.id_mapping import FailingReadMapper
from tests.helpers.subscriptions import (
    make_event,
    make_provider_subscription,
    make_subscription,
    stripe_event_payload,
    stripe_subscription_payload,
)

if TYPE_CHECKING:
    from collections.abc import Callable

WEBHOOK_SECRET = "whsec_test_secret"


def _seed(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> None:
    with uow_factory() as uow:
        uow.repositories.subscriptions.save(make_subscription())
        uow.commit()


def _load(uow_factory: Callable[[], SqlAlchemyUnitOfWork]) -> Any:
    with uow_factory() as uow:
        subscription = uow.repositories.subscriptions.find("sub-internal-1")
        store = ProviderIdStore(uow.repositories.id_mapper)
        return subscription, store.internal_subscription_id("sub_stripe_1")


def _signature(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def test_reconcile_created_event_commits(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    stripe_event_payloads: tuple[dict[str, Any], ...],
) -> None:
    _seed(sqlite_unit_of_work)

    outcome = reconcile_stripe_event(
        stripe_event_payloads[0], unit_of_work_factory=sqlite_unit_of_work
    )

    assert outcome is ReconcileOutcome.APPLIED
    subscription, internal_id = _load(sqlite_unit_of_work)
    assert subscription.is_active()
    assert subscription.item("item-1").current_period is not None
    assert internal_id == "sub-internal-1"


def test_reconcile_sequence_of_events(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    stripe_event_payloads: tuple[dict[str, Any], ...],
) -> None:
    _seed(sqlite_unit_of_work)

    outcomes = [
        reconcile_stripe_event(payload, unit_of_work_factory=sqlite_unit_of_work)
        for payload in stripe_event_payloads
    ]

    assert outcomes == [
        ReconcileOutcome.APPLIED,
        ReconcileOutcome.IGNORED,
        ReconcileOutcome.APPLIED,
        ReconcileOutcome.APPLIED,
        ReconcileOutcome.SKIPPED,
    ]
    subscription, _ = _load(sqlite_unit_of_work)
    assert subscription.is_paused()
    assert subscription.cancel_at_period_end is True


def test_failed_outcome_rolls_back(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    _seed(sqlite_unit_of_work)

    class BrokenMapperUnitOfWork(SqlAlchemyUnitOfWork):
        def __enter__(self) -> BrokenMapperUnitOfWork:
            super().__enter__()
            subscriptions = self.repositories.subscriptions
            subscriptions.save(make_subscription().activate())
            self._repositories = SubscriptionRepositories(
                subscriptions=subscriptions,
                id_mapper=FailingReadMapper(EntityType.SUBSCRIPTION),
            )
            return self

    outcome = apply_provider_event(
        make_event(EventKind.UPDATED, make_provider_subscription()),
        unit_of_work_factory=BrokenMapperUnitOfWork,
    )

    assert outcome is ReconcileOutcome.FAILED
    subscription, _ = _load(sqlite_unit_of_work)
    assert subscription.is_incomplete()



def test_reconcile_rejects_non_events(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with pytest.raises(InvalidEventPayload):
        reconcile_stripe_event({"nope": True}, unit_of_work_factory=sqlite_unit_of_work)


def test_replay_counts_outcomes_and_invalid_lines(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
    stripe_event_payloads: tuple[dict[str, Any], ...],
) -> None:
    _seed(sqlite_unit_of_work)
    lines = [json.dumps(payload) for payload in stripe_event_payloads]
    lines[1:1] = ["", "not json", json.dumps({"type": "x"})]

    result = replay_stripe_events(lines, unit_of_work_factory=sqlite_unit_of_work)

    assert result.invalid == 2
    assert result.outcomes[ReconcileOutcome.APPLIED] == 3
    assert result.outcomes[ReconcileOutcome.IGNORED] == 1
    assert result.outcomes[ReconcileOutcome.SKIPPED] == 1
    assert result.total == 7


def test_verify_and_parse_accepts_signed_payload() -> None:
    payload = json.dumps(
        stripe_event_payload("customer.subscription.deleted", stripe_subscription_payload())
    )

    event = verify_and_parse(payload, _signature(payload), WEBHOOK_SECRET)

    assert event.kind is EventKind.DELETED
    assert event.subscription is not None
    assert event.subscription.id == "sub_stripe_1"


def test_verify_and_parse_rejects_bad_signature() -> None:
    payload = json.dumps(stripe_event_payload("invoice.paid", {"object": "invoice"}))

    with pytest.raises(stripe.SignatureVerificationError):
        verify_and_parse(payload, _signature(payload, "whsec_other"), WEBHOOK_SECRET)


def test_verify_and_parse_reads_secret_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STRIPE_API_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    payload = json.dumps(stripe_event_payload("invoice.paid", {"object": "invoice"}))

    event = verify_and_parse(payload, _signature(payload))

    assert event.subscription is None
