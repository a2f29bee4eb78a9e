"""Exception hierarchy for the relay."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from http import HTTPStatus
from typing import Any

from .domain import ChannelType


class RelayError(Exception):
    """Base exception capturing rich problem details."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
        code: str = "relay_error",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable representation of the error."""

        payload: dict[str, Any] = {
            "title": self.message,
            "status": self.status_code,
            "code": self.code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class AuthFailure(str, Enum):
    """Reasons an inbound webhook failed authentication."""

    MALFORMED_HEADER = "malformed_header"
    MISSING_SECRET = "missing_secret"
    STALE_OR_FUTURE_TIMESTAMP = "stale_or_future_timestamp"
    BAD_SIGNATURE = "bad_signature"


_AUTH_MESSAGES = {
    AuthFailure.MALFORMED_HEADER: "signature header is missing t or v1",
    AuthFailure.MISSING_SECRET: "webhook signing secret is not configured",
    AuthFailure.STALE_OR_FUTURE_TIMESTAMP: "signature timestamp outside tolerance",
    AuthFailure.BAD_SIGNATURE: "signature mismatch",
}


class AuthError(RelayError):
    """Raised when a webhook signature cannot be validated.

    The reason is meant for operator logs only; callers receive a generic
    response so the failing check is never revealed.
    """

    def __init__(self, reason: AuthFailure) -> None:
        super().__init__(
            _AUTH_MESSAGES[reason],
            status_code=HTTPStatus.BAD_REQUEST,
            code="authentication_failed",
            details={"reason": reason.value},
        )
        self.reason = reason


class PayloadError(RelayError):
    """Raised when a verified body is not a JSON object."""

    def __init__(self, message: str = "invalid webhook payload") -> None:
        super().__init__(
            message,
            status_code=HTTPStatus.BAD_REQUEST,
            code="invalid_payload",
        )


class DeliveryError(RelayError):
    """Raised when a notifier fails to hand a record to its channel."""

    def __init__(self, channel: ChannelType, reason: str) -> None:
        super().__init__(
            f"{channel.value} delivery failed: {reason}",
            status_code=HTTPStatus.BAD_GATEWAY,
            code="delivery_failed",
            details={"channel": channel.value},
        )
        self.channel = channel
        self.reason = reason
