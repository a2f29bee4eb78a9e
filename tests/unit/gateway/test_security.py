from __future__ import annotations

import hashlib
import hmac

import pytest

from cashping.core.errors import AuthError, AuthFailure
from cashping.gateway import security
from cashping.gateway.security import (
    build_signature_header,
    compute_signature,
    constant_time_equals,
    parse_signature_header,
    verify_stripe_signature,
)

pytestmark = pytest.mark.unit

SECRET = "whsec_test_secret"
NOW = 1_700_000_000
BODY = b'{"type":"payment_intent.succeeded","data":{"object":{"id":"pi_1"}}}'


def _header(body: bytes = BODY, *, timestamp: int = NOW, secret: str = SECRET) -> str:
    return build_signature_header(secret, body, timestamp=timestamp)


def _reason(excinfo: pytest.ExceptionInfo[AuthError]) -> AuthFailure:
    return excinfo.value.reason


def test_compute_signature_matches_reference_hmac():
    expected = hmac.new(
        SECRET.encode("utf-8"), f"{NOW}.".encode("utf-8") + BODY, hashlib.sha256
    ).hexdigest()

    assert compute_signature(SECRET, NOW, BODY) == expected
    assert _header() == f"t={NOW},v1={expected}"


def test_valid_signature_passes():
    verify_stripe_signature(_header(), BODY, SECRET, now=NOW)


def test_text_body_is_signed_as_utf8():
    body = '{"product":"café"}'
    verify_stripe_signature(_header(body.encode("utf-8")), body, SECRET, now=NOW)


def test_tampered_body_is_rejected():
    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(_header(), BODY + b" ", SECRET, now=NOW)

    assert _reason(excinfo) is AuthFailure.BAD_SIGNATURE


def test_wrong_secret_is_rejected():
    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(_header(secret="other"), BODY, SECRET, now=NOW)

    assert _reason(excinfo) is AuthFailure.BAD_SIGNATURE


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_is_a_configuration_failure(secret):
    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(_header(), BODY, secret, now=NOW)

    assert _reason(excinfo) is AuthFailure.MISSING_SECRET


@pytest.mark.parametrize(
    "header",
    [
        "",
        "garbage",
        f"t={NOW}",
        "v1=abcdef",
        "t=,v1=abcdef",
        "t=yesterday,v1=abcdef",
        f"t={NOW},v0=abcdef",
    ],
)
def test_malformed_header_is_rejected(header):
    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(header, BODY, SECRET, now=NOW)

    assert _reason(excinfo) is AuthFailure.MALFORMED_HEADER


@pytest.mark.parametrize("offset", [-600, 600, -301, 301])
def test_timestamps_outside_tolerance_are_rejected(offset):
    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(_header(timestamp=NOW + offset), BODY, SECRET, now=NOW)

    assert _reason(excinfo) is AuthFailure.STALE_OR_FUTURE_TIMESTAMP


@pytest.mark.parametrize("offset", [-300, 0, 300])
def test_timestamps_on_tolerance_boundary_pass(offset):
    verify_stripe_signature(_header(timestamp=NOW + offset), BODY, SECRET, now=NOW)


def test_custom_tolerance_is_honoured():
    header = _header(timestamp=NOW - 900)

    verify_stripe_signature(header, BODY, SECRET, 1000, now=NOW)
    with pytest.raises(AuthError):
        verify_stripe_signature(header, BODY, SECRET, 60, now=NOW)


def test_any_v1_candidate_may_match():
    good = compute_signature(SECRET, NOW, BODY)
    header = f"t={NOW}, v1={'0' * 64}, v1={good}"

    verify_stripe_signature(header, BODY, SECRET, now=NOW)


def test_parse_signature_header_keeps_repeated_keys():
    parts = parse_signature_header(" t=1 ,v1=a,v1=b=c,v0=z,broken,=x")

    assert parts == {"t": ["1"], "v1": ["a", "b=c"], "v0": ["z"]}


def test_constant_time_equals_handles_length_mismatch_without_raising():
    assert constant_time_equals("abcd", "abc") is False
    assert constant_time_equals("abc", "") is False


def test_constant_time_equals_accepts_non_ascii_candidates():
    assert constant_time_equals("a" * 4, "ä" * 2) is False
    assert constant_time_equals("ééé", "ééé") is True


def test_equal_length_tags_use_full_length_digest_comparison(monkeypatch):
    calls = []
    original = hmac.compare_digest

    def spy(left, right):
        calls.append((left, right))
        return original(left, right)

    monkeypatch.setattr(security.hmac, "compare_digest", spy)

    assert constant_time_equals("0" * 64, "1" + "0" * 63) is False
    assert calls == [(b"0" * 64, b"1" + b"0" * 63)]


def test_mismatched_length_tag_never_reaches_digest_comparison(monkeypatch):
    def fail(*_args):
        raise AssertionError("compare_digest should not run for unequal lengths")

    monkeypatch.setattr(security.hmac, "compare_digest", fail)

    with pytest.raises(AuthError) as excinfo:
        verify_stripe_signature(f"t={NOW},v1=short", BODY, SECRET, now=NOW)

    assert _reason(excinfo) is AuthFailure.BAD_SIGNATURE
