"""DingTalk custom robot notifications.

Robots created with the "signed" security option reject calls unless the
webhook URL carries ``timestamp`` (milliseconds) and ``sign`` =
``base64(HMAC-SHA256(secret, "{timestamp}\\n{secret}"))``. The timestamp is
taken when the call is made, not from the Stripe event, since DingTalk only
accepts signatures issued within the last hour.
"""

from __future__ import annotations

import base64
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx

from cashping.core.config import DingTalkSettings
from cashping.core.domain import ChannelType, PaymentRecord
from cashping.gateway.security import hmac_sha256

from .base import HttpNotifier


def sign_request(timestamp_ms: int, secret: str) -> str:
    """Base64 signature DingTalk expects for ``timestamp_ms``."""

    digest = hmac_sha256(secret, f"{timestamp_ms}\n{secret}")
    return base64.b64encode(digest).decode("ascii")


@dataclass(slots=True, kw_only=True)
class DingTalkNotifier(HttpNotifier):
    channel: ClassVar[ChannelType] = ChannelType.DINGTALK

    settings: DingTalkSettings
    clock: Callable[[], float] = field(default=time.time)

    def is_enabled(self) -> bool:
        return self.settings.is_enabled

    def target_url(self) -> str:
        """Robot URL, with fresh signing parameters when a secret is set."""

        webhook = str(self.settings.webhook)
        if not self.settings.secret:
            return webhook
        timestamp_ms = int(self.clock() * 1000)
        params = {
            "timestamp": str(timestamp_ms),
            "sign": sign_request(timestamp_ms, self.settings.secret),
        }
        return str(httpx.URL(webhook).copy_merge_params(params))

    def build_payload(self, record: PaymentRecord) -> dict[str, Any]:
        lines = [
            f"Payment received {record.amount_readable}",
            f"Product: {record.product_name}",
            f"Order no.: {record.order_no}",
            f"Paid with: {record.payment_method}",
        ]
        if record.email:
            lines.append(f"Customer email: {record.email}")
        return {
            "msgtype": "markdown",
            "markdown": {"title": "Payment received", "text": "\n".join(lines)},
        }

    async def send(self, record: PaymentRecord) -> None:
        await self._post(self.target_url(), json=self.build_payload(record))
