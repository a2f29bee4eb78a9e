"""Stripe webhook signature verification.

Stripe signs ``"{t}.{raw_body}"`` with HMAC-SHA256 and sends the result in the
``Stripe-Signature`` header as ``t=<unix seconds>,v1=<hex digest>[,v1=...]``.
Verification must run on the raw request bytes before any JSON decoding.
"""

from __future__ import annotations

import hashlib
import hmac
import time

from cashping.core.config import DEFAULT_SIGNATURE_TOLERANCE_SECONDS
from cashping.core.errors import AuthError, AuthFailure

SIGNATURE_HEADER = "Stripe-Signature"
SIGNATURE_SCHEME = "v1"


def hmac_sha256(secret: str, message: str | bytes) -> bytes:
    """Keyed SHA-256 digest of ``message`` under ``secret``."""

    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def constant_time_equals(expected: str, candidate: str) -> bool:
    """Compare two tags without leaking the position of the first mismatch.

    A length mismatch is reported straight away; equal-length inputs are
    compared with :func:`hmac.compare_digest`, which inspects every byte.
    Never raises, whatever characters the caller supplied.
    """

    left = expected.encode("utf-8")
    right = candidate.encode("utf-8")
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)


def parse_signature_header(header: str) -> dict[str, list[str]]:
    """Split ``k=v,k=v`` pairs, keeping repeated keys in arrival order."""

    parts: dict[str, list[str]] = {}
    for item in header.split(","):
        key, sep, value = item.strip().partition("=")
        if sep and key and value:
            parts.setdefault(key.strip(), []).append(value.strip())
    return parts


def compute_signature(secret: str, timestamp: str | int, raw_body: bytes | str) -> str:
    """Hex HMAC-SHA256 over ``"{timestamp}.{raw_body}"``."""

    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return hmac_sha256(secret, f"{timestamp}.".encode() + raw_body).hex()


def build_signature_header(
    secret: str, raw_body: bytes | str, *, timestamp: int | None = None
) -> str:
    """Produce a header value Stripe would send for ``raw_body``."""

    ts = int(time.time()) if timestamp is None else timestamp
    return f"t={ts},{SIGNATURE_SCHEME}={compute_signature(secret, ts, raw_body)}"


def verify_stripe_signature(
    signature_header: str,
    raw_body: bytes | str,
    secret: str | None,
    tolerance_seconds: int = DEFAULT_SIGNATURE_TOLERANCE_SECONDS,
    *,
    now: float | None = None,
) -> None:
    """Validate a Stripe webhook request, raising :class:`AuthError` on failure."""

    if not secret:
        raise AuthError(AuthFailure.MISSING_SECRET)

    parts = parse_signature_header(signature_header or "")
    timestamps = parts.get("t")
    candidates = parts.get(SIGNATURE_SCHEME)
    if not timestamps or not candidates:
        raise AuthError(AuthFailure.MALFORMED_HEADER)

    raw_timestamp = timestamps[0]
    try:
        timestamp = int(raw_timestamp)
    except ValueError as exc:
        raise AuthError(AuthFailure.MALFORMED_HEADER) from exc

    current = time.time() if now is None else now
    if abs(int(current) - timestamp) > tolerance_seconds:
        raise AuthError(AuthFailure.STALE_OR_FUTURE_TIMESTAMP)

    expected = compute_signature(secret, raw_timestamp, raw_body)
    matched = False
    for candidate in candidates:
        matched |= constant_time_equals(expected, candidate)
    if not matched:
        raise AuthError(AuthFailure.BAD_SIGNATURE)
