"""Application orchestration entry points."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import stripe

from subsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from subsync.adapters.stripe.translator import parse_event
from subsync.config.reconcile import get_reconcile_config
from subsync.config.stripe import get_stripe_config
from subsync.domain.errors import InvalidEventPayload
from subsync.domain.id_store import ProviderIdStore
from subsync.domain.ports.unit_of_work import SubscriptionUnitOfWork
from subsync.domain.reconciliation import ReconcileOutcome, WebhookReconciler

if TYPE_CHECKING:
    from collections.abc import Iterable
    from logging import Logger

    from subsync.config.reconcile import ReconcileConfig
    from subsync.domain.reconciliation import ProviderEvent

UnitOfWorkFactory = Callable[[], SubscriptionUnitOfWork]


log = getLogger(__name__)


@dataclass(slots=True)
class ReplayResult:
    outcomes: Counter[ReconcileOutcome] = field(default_factory=Counter)
    invalid: int = 0

    @property
    def total(self) -> int:
        return sum(self.outcomes.values()) + self.invalid


def init_database(database_uri: str | None = None) -> None:
    """Create the tables if needed and leave the adapter ready for units of work."""

    startup(database_uri=database_uri, force=True)
    log.info("Database initialised")


def _default_unit_of_work_factory() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyUnitOfWork


def apply_provider_event(
    event: ProviderEvent,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    logger: Logger | None = None,
    config: ReconcileConfig | None = None,
) -> ReconcileOutcome:
    """Reconcile one already-translated event inside its own unit of work.

    Changes are committed unless the engine reports a failure.
    """

    effective_config = config or get_reconcile_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    with effective_uow() as uow:
        repositories = uow.repositories
        reconciler = WebhookReconciler(
            repositories.subscriptions,
            ProviderIdStore(repositories.id_mapper, effective_config.provider),
            logger=logger or log,
            config=effective_config,
        )
        outcome = reconciler.handle(event)
        if outcome is ReconcileOutcome.FAILED:
            uow.rollback()
        else:
            uow.commit()
    log.debug("Event %s (%s) reconciled: %s", event.id, event.type, outcome)
    return outcome


def reconcile_stripe_event(
    payload: object,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    logger: Logger | None = None,
    config: ReconcileConfig | None = None,
) -> ReconcileOutcome:
    """Translate a deserialised Stripe event and reconcile it.

    Raises ``InvalidEventPayload`` when the payload is not a Stripe event.
    """

    return apply_provider_event(
        parse_event(payload),
        unit_of_work_factory=unit_of_work_factory,
        logger=logger,
        config=config,
    )


def verify_and_parse(
    payload: bytes | str,
    signature: str,
    secret: str | None = None,
) -> ProviderEvent:
    """Authenticate a raw webhook body and translate it.

    ``stripe.SignatureVerificationError`` propagates for bad signatures.
    """

    effective_secret = secret or get_stripe_config().webhook_secret
    if not effective_secret:
        raise ValueError("Missing webhook secret: set STRIPE_WEBHOOK_SECRET or pass secret.")
    event = stripe.Webhook.construct_event(payload, signature, effective_secret)
    return parse_event(event)


def replay_stripe_events(
    lines: Iterable[str],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    logger: Logger | None = None,
    config: ReconcileConfig | None = None,
) -> ReplayResult:
    """Reconcile newline-delimited Stripe event JSON; blank lines are skipped."""

    result = ReplayResult()
    effective_uow = unit_of_work_factory or _default_unit_of_work_factory()
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            event = parse_event(json.loads(line))
        except (json.JSONDecodeError, InvalidEventPayload) as exc:
            log.warning("Skipping line %s: %s", line_number, exc)
            result.invalid += 1
            continue
        outcome = apply_provider_event(
            event,
            unit_of_work_factory=effective_uow,
            logger=logger,
            config=config,
        )
        result.outcomes[outcome] += 1

    log.info(
        "Replayed %s events: %s",
        result.total,
        ", ".join(f"{outcome}={count}" for outcome, count in sorted(result.outcomes.items())),
    )
    return result
