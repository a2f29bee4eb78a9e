"""Notifier interface and the shared HTTP delivery helper."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, runtime_checkable

import httpx

from cashping.core.domain import ChannelType, PaymentRecord
from cashping.core.errors import DeliveryError

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Interface implemented by every notification channel adapter."""

    channel: ClassVar[ChannelType]

    def is_enabled(self) -> bool:
        ...

    async def send(self, record: PaymentRecord) -> None:
        ...


@dataclass(slots=True, kw_only=True)
class HttpNotifier:
    """Base for adapters that deliver with a single outbound HTTP POST.

    Each call opens its own client so concurrent adapters never share a
    connection pool. ``transport`` is injectable for tests.
    """

    channel: ClassVar[ChannelType]

    timeout: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(url, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            body = exc.response.text[:200]
            raise DeliveryError(
                self.channel, f"HTTP {exc.response.status_code} {body}".strip()
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryError(
                self.channel, f"{type(exc).__name__}: {exc}".rstrip(": ")
            ) from exc

        logger.debug(
            "notification delivered",
            extra={"channel": self.channel.value, "status": response.status_code},
        )
        return response
