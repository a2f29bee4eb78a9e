"""Email delivery through the MailChannels Email API."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from cashping.core.config import MailSettings
from cashping.core.domain import ChannelType, PaymentRecord
from cashping.core.errors import DeliveryError

from .base import HttpNotifier
from .templates import render_email_html

DEFAULT_FROM_NAME = "Payment notification"


@dataclass(slots=True, kw_only=True)
class MailChannelsNotifier(HttpNotifier):
    """Sends an HTML receipt to every address listed in ``MAIL_TO``."""

    channel: ClassVar[ChannelType] = ChannelType.MAILCHANNELS

    settings: MailSettings

    def is_enabled(self) -> bool:
        return self.settings.is_enabled

    def subject(self, record: PaymentRecord) -> str:
        return (
            self.settings.subject
            or f"Payment received · {record.amount_readable} · {record.product_name}"
        )

    def build_payload(self, record: PaymentRecord) -> dict[str, Any]:
        settings = self.settings
        payload: dict[str, Any] = {
            "personalizations": [
                {"to": [{"email": address} for address in settings.recipients]}
            ],
            "from": {
                "email": settings.sender,
                "name": settings.from_name or DEFAULT_FROM_NAME,
            },
            "subject": self.subject(record),
            "content": [
                {
                    "type": "text/html; charset=UTF-8",
                    "value": render_email_html(record, settings.html),
                }
            ],
        }
        extra_headers = self._extra_headers()
        if extra_headers is not None:
            payload["headers"] = extra_headers
        return payload

    def request_headers(self) -> dict[str, str]:
        headers = {"content-type": "application/json"}
        if self.settings.api_key:
            headers["X-Api-Key"] = self.settings.api_key
        if self.settings.subaccount:
            headers["X-Subaccount"] = self.settings.subaccount
        return headers

    async def send(self, record: PaymentRecord) -> None:
        payload = self.build_payload(record)
        await self._post(
            self.settings.endpoint, json=payload, headers=self.request_headers()
        )

    def _extra_headers(self) -> dict[str, str] | None:
        raw = self.settings.headers
        if not raw:
            return None
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DeliveryError(self.channel, "MAIL_HEADERS is not valid JSON") from exc
        if not isinstance(parsed, dict):
            raise DeliveryError(self.channel, "MAIL_HEADERS must be a JSON object")
        return {str(key): str(value) for key, value in parsed.items()}
