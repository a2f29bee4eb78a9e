"""Notification channel adapters and their static registry."""

from __future__ import annotations

from collections.abc import Callable

import httpx

from cashping.core.config import RelaySettings

from .base import HttpNotifier, Notifier
from .dingtalk import DingTalkNotifier
from .mailchannels import MailChannelsNotifier
from .serverchan import ServerChanNotifier
from .telegram import TelegramNotifier

NotifierBuilder = Callable[[RelaySettings, httpx.AsyncBaseTransport | None], Notifier]

# Order is the order outcomes are reported in.
NOTIFIER_REGISTRY: tuple[NotifierBuilder, ...] = (
    lambda settings, transport: MailChannelsNotifier(
        settings=settings.mail,
        timeout=settings.notify.timeout_seconds,
        transport=transport,
    ),
    lambda settings, transport: ServerChanNotifier(
        settings=settings.serverchan,
        timeout=settings.notify.timeout_seconds,
        transport=transport,
    ),
    lambda settings, transport: DingTalkNotifier(
        settings=settings.dingtalk,
        timeout=settings.notify.timeout_seconds,
        transport=transport,
    ),
    lambda settings, transport: TelegramNotifier(
        settings=settings.telegram,
        timeout=settings.notify.timeout_seconds,
        transport=transport,
    ),
)


def build_notifiers(
    settings: RelaySettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Notifier]:
    """Instantiate every registered adapter, enabled or not."""

    return [builder(settings, transport) for builder in NOTIFIER_REGISTRY]


def enabled_notifiers(
    settings: RelaySettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[Notifier]:
    """Adapters whose required configuration is present."""

    return [
        notifier
        for notifier in build_notifiers(settings, transport=transport)
        if notifier.is_enabled()
    ]


__all__ = [
    "NOTIFIER_REGISTRY",
    "Notifier",
    "HttpNotifier",
    "MailChannelsNotifier",
    "ServerChanNotifier",
    "DingTalkNotifier",
    "TelegramNotifier",
    "build_notifiers",
    "enabled_notifiers",
]
