"""Map Stripe payment-success events onto :class:`PaymentRecord`.

Checkout sessions, payment intents and invoices carry the same facts under
different keys. Every record field is resolved from an ordered table of
candidate paths inside ``data.object``; the first usable value wins and each
table ends in a default, so normalization never fails. Supporting another
event shape means adding a path to the relevant table.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, TypeVar

from cashping.core.domain import PaymentRecord, RawEvent, utcnow

T = TypeVar("T")
FieldPath = tuple[str | int, ...]

DEFAULT_CURRENCY = "USD"
DEFAULT_PRODUCT_NAME = "payment"
DEFAULT_PAYMENT_METHOD = "processor"

CURRENCY_PATHS: tuple[FieldPath, ...] = (("currency",), ("currency_code",))

# Null-coalescing: an explicit 0 in an earlier field wins over later fields.
AMOUNT_PATHS: tuple[FieldPath, ...] = (
    ("amount_total",),
    ("amount_paid",),
    ("amount_due",),
    ("amount",),
    ("amount_captured",),
)

EMAIL_PATHS: tuple[FieldPath, ...] = (
    ("customer_details", "email"),
    ("customer_email",),
    ("receipt_email",),
    ("billing_details", "email"),
)

ORDER_NO_PATHS: tuple[FieldPath, ...] = (
    ("id",),
    ("payment_intent",),
    ("charge",),
    ("subscription",),
    ("invoice",),
)

PRODUCT_NAME_PATHS: tuple[FieldPath, ...] = (
    ("metadata", "product_name"),
    ("display_items", 0, "custom", "name"),
    ("metadata", "name"),
)

PAYMENT_METHOD_PATHS: tuple[FieldPath, ...] = (
    ("payment_method_types", 0),
    ("payment_method_details", "type"),
    ("payment_method",),
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def lookup(source: Any, path: FieldPath) -> Any:
    """Walk ``path`` through nested mappings/sequences; ``None`` when absent."""

    current = source
    for key in path:
        if isinstance(key, int):
            if (
                not isinstance(current, Sequence)
                or isinstance(current, (str, bytes))
                or not -len(current) <= key < len(current)
            ):
                return None
            current = current[key]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(key)
        if current is None:
            return None
    return current


def first_match(
    source: Mapping[str, Any],
    paths: Sequence[FieldPath],
    coerce: Callable[[Any], T | None],
) -> T | None:
    """Return the first candidate that ``coerce`` accepts."""

    for path in paths:
        value = coerce(lookup(source, path))
        if value is not None:
            return value
    return None


def as_text(value: Any) -> str | None:
    """Non-empty scalar text; nested objects and blanks are skipped."""

    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def as_int(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def parse_quantity(value: Any) -> int:
    """Leading integer of ``value``; anything non-positive or unparsable is 1."""

    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        quantity = value
    else:
        match = _LEADING_INT.match(str(value)) if value is not None else None
        quantity = int(match.group(1)) if match else 0
    return quantity if quantity > 0 else 1


def format_amount(amount_minor: int, currency: str) -> str:
    """``"USD 19.99"``; always assumes two minor digits."""

    return f"{currency} {amount_minor / 100:.2f}"


def _created_at(obj: Mapping[str, Any], received_at: datetime) -> datetime:
    created = as_int(obj.get("created"))
    if created is None:
        return received_at
    try:
        return datetime.fromtimestamp(created, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return received_at


def normalize_event(event: RawEvent, *, received_at: datetime | None = None) -> PaymentRecord:
    """Build the canonical record for ``event``. Never raises."""

    obj = event.object
    received = received_at or utcnow()

    currency = (first_match(obj, CURRENCY_PATHS, as_text) or DEFAULT_CURRENCY).upper()
    amount_minor = first_match(obj, AMOUNT_PATHS, as_int) or 0

    return PaymentRecord(
        event_type=event.type,
        id=as_text(obj.get("id")) or event.id,
        created_at=_created_at(obj, received),
        currency=currency,
        amount_minor=amount_minor,
        amount_readable=format_amount(amount_minor, currency),
        order_no=first_match(obj, ORDER_NO_PATHS, as_text) or event.id,
        product_name=first_match(obj, PRODUCT_NAME_PATHS, as_text) or DEFAULT_PRODUCT_NAME,
        quantity=parse_quantity(lookup(obj, ("metadata", "quantity"))),
        payment_method=(
            first_match(obj, PAYMENT_METHOD_PATHS, as_text) or DEFAULT_PAYMENT_METHOD
        ),
        email=first_match(obj, EMAIL_PATHS, as_text),
        customer_id=as_text(obj.get("customer")),
    )
