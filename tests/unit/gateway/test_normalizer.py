from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from cashping.core.domain import RawEvent
from cashping.gateway.normalizer import (
    as_int,
    format_amount,
    lookup,
    normalize_event,
    parse_quantity,
)

pytestmark = pytest.mark.unit

FIXTURES = Path(__file__).parent / "fixtures"
RECEIVED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _load(name: str) -> RawEvent:
    payload = json.loads((FIXTURES / f"{name}.json").read_text(encoding="utf-8"))
    return RawEvent.from_payload(payload)


def _event(obj, *, event_type="payment_intent.succeeded", event_id="evt_1") -> RawEvent:
    return RawEvent.from_payload({"id": event_id, "type": event_type, "data": {"object": obj}})


def test_payment_intent_is_normalized():
    record = normalize_event(_load("payment_intent_succeeded"), received_at=RECEIVED_AT)

    assert record.event_type == "payment_intent.succeeded"
    assert record.amount_minor == 1999
    assert record.amount_readable == "USD 19.99"
    assert record.order_no == "pi_1"
    assert record.email == "receipt@example.com"
    assert record.product_name == "payment"
    assert record.quantity == 1
    assert record.payment_method == "card"
    assert record.created_at == datetime.fromtimestamp(1700000100, tz=UTC)


def test_checkout_session_is_normalized():
    record = normalize_event(_load("checkout_session_completed"), received_at=RECEIVED_AT)

    assert record.currency == "EUR"
    assert record.amount_readable == "EUR 42.00"
    assert record.order_no == "cs_test_a1"
    assert record.email == "buyer@example.com"
    assert record.product_name == "Pro plan"
    assert record.quantity == 3
    assert record.payment_method == "card"
    assert record.customer_id == "cus_123"


def test_invoice_is_normalized():
    record = normalize_event(_load("invoice_payment_succeeded"), received_at=RECEIVED_AT)

    assert record.amount_readable == "GBP 9.90"
    assert record.order_no == "in_42"
    assert record.email == "billing@example.com"
    assert record.product_name == "Annual support"
    assert record.quantity == 1
    assert record.payment_method == "processor"
    assert record.customer_id == "cus_999"
    assert record.created_at == RECEIVED_AT


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "evt_bare", "type": "payment_intent.succeeded"},
        {"id": "evt_bare", "type": "payment_intent.succeeded", "data": None},
        {"id": "evt_bare", "type": "payment_intent.succeeded", "data": {"object": []}},
        {"id": "evt_bare", "type": "payment_intent.succeeded", "data": "oops"},
    ],
)
def test_missing_object_falls_back_to_defaults(payload):
    record = normalize_event(RawEvent.from_payload(payload), received_at=RECEIVED_AT)

    assert record.id == "evt_bare"
    assert record.order_no == "evt_bare"
    assert record.currency == "USD"
    assert record.amount_minor == 0
    assert record.amount_readable == "USD 0.00"
    assert record.product_name == "payment"
    assert record.quantity == 1
    assert record.payment_method == "processor"
    assert record.email is None
    assert record.created_at == RECEIVED_AT


def test_normalization_is_pure():
    event = _load("checkout_session_completed")

    first = normalize_event(event, received_at=RECEIVED_AT)
    second = normalize_event(event, received_at=RECEIVED_AT)

    assert first == second
    assert event.object["metadata"]["quantity"] == "3"


def test_explicit_zero_amount_is_not_skipped():
    record = normalize_event(_event({"amount_total": 0, "amount": 500}), received_at=RECEIVED_AT)

    assert record.amount_minor == 0


def test_amount_falls_through_unusable_candidates():
    record = normalize_event(
        _event({"amount_total": None, "amount_paid": "n/a", "amount_due": "250"}),
        received_at=RECEIVED_AT,
    )

    assert record.amount_minor == 250


def test_email_priority_prefers_customer_details():
    record = normalize_event(
        _event(
            {
                "customer_email": "second@example.com",
                "customer_details": {"email": "first@example.com"},
                "receipt_email": "third@example.com",
            }
        ),
        received_at=RECEIVED_AT,
    )

    assert record.email == "first@example.com"


def test_blank_email_is_skipped():
    record = normalize_event(
        _event({"customer_email": "  ", "billing_details": {"email": "bill@example.com"}}),
        received_at=RECEIVED_AT,
    )

    assert record.email == "bill@example.com"


def test_order_number_falls_back_to_related_ids():
    record = normalize_event(_event({"payment_intent": "pi_9"}), received_at=RECEIVED_AT)

    assert record.order_no == "pi_9"
    assert record.id == "evt_1"


def test_zero_decimal_currency_still_divides_by_hundred():
    record = normalize_event(_event({"amount": 500, "currency": "jpy"}), received_at=RECEIVED_AT)

    assert record.amount_readable == "JPY 5.00"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 1),
        ("", 1),
        ("0", 1),
        ("-4", 1),
        ("abc", 1),
        ("7", 7),
        (" 12 seats", 12),
        (5, 5),
        (True, 1),
    ],
)
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected


def test_as_int_rejects_booleans_and_non_finite_floats():
    assert as_int(True) is None
    assert as_int(float("nan")) is None
    assert as_int(float("inf")) is None
    assert as_int(12.9) == 12


def test_lookup_walks_sequences_and_mappings():
    source = {"items": [{"name": "a"}], "text": "abc"}

    assert lookup(source, ("items", 0, "name")) == "a"
    assert lookup(source, ("items", 3, "name")) is None
    assert lookup(source, ("text", 0)) is None
    assert lookup(source, ("missing", "deeper")) is None


def test_format_amount_rounds_to_two_places():
    assert format_amount(1999, "USD") == "USD 19.99"
    assert format_amount(5, "EUR") == "EUR 0.05"
    assert format_amount(-250, "GBP") == "GBP -2.50"


def test_huge_created_timestamp_falls_back_to_receipt_time():
    record = normalize_event(_event({"created": 10**20}), received_at=RECEIVED_AT)

    assert record.created_at == RECEIVED_AT


def test_raw_event_defaults_to_empty_object():
    event = RawEvent(type="payment_intent.succeeded", id="evt_plain")

    assert dict(event.object) == {}
    assert RawEvent(type="x", id="y").object is event.object
    assert normalize_event(event, received_at=RECEIVED_AT).order_no == "evt_plain"
