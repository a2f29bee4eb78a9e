"""Telegram Bot API notifications."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, ClassVar

from cashping.core.config import TelegramSettings
from cashping.core.domain import ChannelType, PaymentRecord

from .base import HttpNotifier

_MARKDOWN_SPECIALS = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


@dataclass(slots=True, kw_only=True)
class TelegramNotifier(HttpNotifier):
    channel: ClassVar[ChannelType] = ChannelType.TELEGRAM

    settings: TelegramSettings

    def is_enabled(self) -> bool:
        return self.settings.is_enabled

    @property
    def url(self) -> str:
        base = self.settings.api_base.rstrip("/")
        return f"{base}/bot{self.settings.bot_token}/sendMessage"

    def build_payload(self, record: PaymentRecord) -> dict[str, Any]:
        lines = [
            "*Payment received*",
            f"*Amount*: {record.amount_readable}",
            f"*Product*: {escape_markdown(record.product_name)}",
            f"*Order no.*: `{record.order_no}`",
            f"*Paid with*: {record.payment_method}",
        ]
        if record.email:
            lines.append(f"*Customer email*: {escape_markdown(record.email)}")
        return {
            "chat_id": self.settings.chat_id,
            "text": "\n".join(lines),
            "parse_mode": "Markdown",
            "disable_web_page_preview": True,
        }

    async def send(self, record: PaymentRecord) -> None:
        await self._post(self.url, json=self.build_payload(record))
