"""Shared fixtures for the relay test suite."""

from __future__ import annotations

import os

import pytest

_CONFIG_PREFIXES = (
    "STRIPE_",
    "SIG_",
    "MAIL_",
    "MAILCHANNELS_",
    "SC_",
    "DINGTALK_",
    "TELEGRAM_",
    "NOTIFY_",
    "OTEL_",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep developer shells and ``.env`` files from enabling real channels."""

    for name in list(os.environ):
        if name.upper().startswith(_CONFIG_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
