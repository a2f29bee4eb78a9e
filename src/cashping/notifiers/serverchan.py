"""ServerChan Turbo push notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from cashping.core.config import ServerChanSettings
from cashping.core.domain import ChannelType, PaymentRecord

from .base import HttpNotifier


@dataclass(slots=True, kw_only=True)
class ServerChanNotifier(HttpNotifier):
    channel: ClassVar[ChannelType] = ChannelType.SERVERCHAN

    settings: ServerChanSettings

    def is_enabled(self) -> bool:
        return self.settings.is_enabled

    @property
    def url(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/{self.settings.key}.send"

    def build_form(self, record: PaymentRecord) -> dict[str, str]:
        lines = [
            f"**Product**: {record.product_name}",
            f"**Amount**: {record.amount_readable}",
            f"**Order no.**: `{record.order_no}`",
            f"**Paid with**: {record.payment_method}",
        ]
        if record.email:
            lines.append(f"**Customer email**: {record.email}")
        return {
            "title": f"Payment received: {record.amount_readable}",
            "desp": "\n".join(lines),
        }

    async def send(self, record: PaymentRecord) -> None:
        await self._post(self.url, data=self.build_form(record))
