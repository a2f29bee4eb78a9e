"""Domain data structures shared across the relay."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class ChannelType(str, Enum):
    """Supported notification channels."""

    MAILCHANNELS = "mailchannels"
    SERVERCHAN = "serverchan"
    DINGTALK = "dingtalk"
    TELEGRAM = "telegram"


@dataclass(frozen=True, slots=True)
class RawEvent:
    """Decoded Stripe event envelope received on the webhook."""

    type: str
    id: str
    object: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RawEvent:
        """Build an event from a decoded JSON document.

        ``data`` and ``data.object`` that are not mappings degrade to an empty
        object so that downstream normalization never has to guard against them.
        """

        data = payload.get("data")
        obj = data.get("object") if isinstance(data, Mapping) else None
        return cls(
            type=str(payload.get("type") or ""),
            id=str(payload.get("id") or ""),
            object=MappingProxyType(dict(obj)) if isinstance(obj, Mapping) else _EMPTY,
        )


@dataclass(frozen=True, slots=True)
class PaymentRecord:
    """Canonical, channel-agnostic payment notification."""

    event_type: str
    id: str
    created_at: datetime
    currency: str
    amount_minor: int
    amount_readable: str
    order_no: str
    product_name: str
    quantity: int
    payment_method: str
    email: str | None = None
    customer_id: str | None = None

    def as_log_fields(self) -> dict[str, Any]:
        """Fields safe to attach to log records (no customer contact details)."""

        return {
            "event_type": self.event_type,
            "order_no": self.order_no,
            "amount": self.amount_readable,
        }


def utcnow() -> datetime:
    return datetime.now(tz=UTC)
