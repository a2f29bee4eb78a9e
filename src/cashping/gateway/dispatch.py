"""Per-request coordination: verify, filter, normalize, fan out.

Each webhook walks ``RECEIVED -> VERIFYING -> (REJECTED | FILTERING) ->
(IGNORED | NORMALIZING) -> DISPATCHING -> COMPLETED``. Delivery failures are
collected as outcomes and logged; they never change the response sent back to
Stripe and never cancel sibling deliveries.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from prometheus_client import Counter

from cashping.core.config import RelaySettings
from cashping.core.domain import ChannelType, PaymentRecord, RawEvent, utcnow
from cashping.core.errors import AuthError, AuthFailure, DeliveryError, PayloadError
from cashping.notifiers import Notifier, enabled_notifiers

from .normalizer import normalize_event
from .security import verify_stripe_signature

logger = logging.getLogger(__name__)

ACCEPTED_EVENT_TYPES: frozenset[str] = frozenset(
    {
        "payment_intent.succeeded",
        "checkout.session.completed",
        "invoice.payment_succeeded",
    }
)

WEBHOOK_EVENTS = Counter(
    "webhook_events_total",
    "Inbound Stripe webhooks by final dispatch state.",
    ["outcome"],
)

NOTIFICATION_DELIVERIES = Counter(
    "notification_deliveries_total",
    "Notification attempts per channel and result.",
    ["channel", "status"],
)


class DispatchState(str, Enum):
    RECEIVED = "received"
    VERIFYING = "verifying"
    REJECTED = "rejected"
    FILTERING = "filtering"
    IGNORED = "ignored"
    NORMALIZING = "normalizing"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Settled result of one adapter's delivery attempt."""

    channel: ChannelType
    ok: bool
    error: str | None = None
    duration_ms: float = 0.0


@dataclass(slots=True)
class DispatchReport:
    state: DispatchState = DispatchState.RECEIVED
    event_type: str | None = None
    record: PaymentRecord | None = None
    rejection: AuthFailure | None = None
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[DeliveryOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


async def deliver(notifier: Notifier, record: PaymentRecord) -> DeliveryOutcome:
    """Run one adapter and convert whatever happens into an outcome."""

    channel = notifier.channel
    start = time.perf_counter()
    error: str | None = None
    try:
        await notifier.send(record)
    except DeliveryError as exc:
        error = exc.reason
        logger.warning(
            "notification delivery failed",
            extra={"channel": channel.value, "reason": exc.reason, **record.as_log_fields()},
        )
    except Exception as exc:
        error = f"{type(exc).__name__}: {exc}"
        logger.exception(
            "notifier raised unexpectedly",
            extra={"channel": channel.value, **record.as_log_fields()},
        )

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    NOTIFICATION_DELIVERIES.labels(channel.value, "ok" if error is None else "failed").inc()
    return DeliveryOutcome(
        channel=channel, ok=error is None, error=error, duration_ms=duration_ms
    )


async def settle_all(
    notifiers: Sequence[Notifier], record: PaymentRecord
) -> list[DeliveryOutcome]:
    """Deliver concurrently and wait for every adapter, in registry order.

    ``deliver`` never raises, so ``gather`` cannot short-circuit on a failing
    sibling.
    """

    if not notifiers:
        return []
    return list(await asyncio.gather(*(deliver(notifier, record) for notifier in notifiers)))


NotifierFactory = Callable[[RelaySettings], Sequence[Notifier]]


class DispatchCoordinator:
    """Drive one webhook request through verification and fan-out."""

    def __init__(
        self,
        *,
        settings: RelaySettings,
        notifier_factory: NotifierFactory = enabled_notifiers,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._notifier_factory = notifier_factory
        self._clock = clock

    async def handle(
        self,
        raw_body: bytes,
        signature_header: str,
        *,
        received_at: datetime | None = None,
    ) -> DispatchReport:
        """Process a webhook. Raises :class:`PayloadError` for undecodable bodies."""

        report = DispatchReport()

        report.state = DispatchState.VERIFYING
        try:
            verify_stripe_signature(
                signature_header,
                raw_body,
                self._settings.stripe.webhook_secret,
                self._settings.stripe.tolerance_seconds,
                now=self._clock(),
            )
        except AuthError as exc:
            report.state = DispatchState.REJECTED
            report.rejection = exc.reason
            log = logger.error if exc.reason is AuthFailure.MISSING_SECRET else logger.warning
            log("webhook rejected", extra={"reason": exc.reason.value})
            WEBHOOK_EVENTS.labels(report.state.value).inc()
            return report

        event = _decode_event(raw_body)

        report.state = DispatchState.FILTERING
        report.event_type = event.type
        if event.type not in ACCEPTED_EVENT_TYPES:
            report.state = DispatchState.IGNORED
            logger.info("webhook ignored", extra={"event_type": event.type, "event_id": event.id})
            WEBHOOK_EVENTS.labels(report.state.value).inc()
            return report

        report.state = DispatchState.NORMALIZING
        record = normalize_event(event, received_at=received_at or utcnow())
        report.record = record

        report.state = DispatchState.DISPATCHING
        notifiers = self._notifier_factory(self._settings)
        report.outcomes = await settle_all(notifiers, record)

        report.state = DispatchState.COMPLETED
        logger.info(
            "webhook dispatched",
            extra={
                "channels": [outcome.channel.value for outcome in report.outcomes],
                "failed": [outcome.channel.value for outcome in report.failures],
                **record.as_log_fields(),
            },
        )
        WEBHOOK_EVENTS.labels(report.state.value).inc()
        return report


def _decode_event(raw_body: bytes) -> RawEvent:
    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
        WEBHOOK_EVENTS.labels("invalid_payload").inc()
        raise PayloadError() from exc
    if not isinstance(payload, dict):
        WEBHOOK_EVENTS.labels("invalid_payload").inc()
        raise PayloadError("webhook payload is not a JSON object")
    return RawEvent.from_payload(payload)
