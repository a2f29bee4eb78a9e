"""Core building blocks for the payment notification relay."""

from . import config, domain, errors, logging
from .config import (
    DingTalkSettings,
    MailSettings,
    NotifySettings,
    RelaySettings,
    ServerChanSettings,
    StripeSettings,
    TelegramSettings,
    TelemetrySettings,
)
from .domain import ChannelType, PaymentRecord, RawEvent
from .errors import AuthError, AuthFailure, DeliveryError, PayloadError, RelayError
from .logging import configure_logging

__all__ = [
    "config",
    "domain",
    "errors",
    "logging",
    "configure_logging",
    "RelaySettings",
    "StripeSettings",
    "MailSettings",
    "ServerChanSettings",
    "DingTalkSettings",
    "TelegramSettings",
    "NotifySettings",
    "TelemetrySettings",
    "ChannelType",
    "RawEvent",
    "PaymentRecord",
    "RelayError",
    "AuthError",
    "AuthFailure",
    "PayloadError",
    "DeliveryError",
]
