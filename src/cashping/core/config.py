"""Configuration loaders for the relay.

Leverages pydantic-settings to hydrate runtime configuration from environment
variables, an optional ``.env`` file, or default values. Each notification
channel owns a settings class; a channel is enabled only when its required
variables are present. Empty strings are treated as absent.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SIGNATURE_TOLERANCE_SECONDS = 300


class BaseAppSettings(BaseSettings):
    """Base settings that looks at environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and not value.strip():
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)
        return value


class StripeSettings(BaseAppSettings):
    """Inbound webhook verification parameters."""

    model_config = SettingsConfigDict(
        env_prefix="stripe_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    webhook_secret: str | None = None
    tolerance_seconds: int = Field(
        default=DEFAULT_SIGNATURE_TOLERANCE_SECONDS,
        ge=0,
        validation_alias=AliasChoices("sig_tolerance_sec", "tolerance_seconds"),
    )


class MailSettings(BaseAppSettings):
    """MailChannels email delivery."""

    model_config = SettingsConfigDict(
        env_prefix="mail_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    to: str | None = None
    sender: str | None = Field(
        default=None, validation_alias=AliasChoices("mail_from", "sender")
    )
    from_name: str | None = None
    subject: str | None = None
    headers: str | None = None
    html: str | None = None
    api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("mailchannels_api_key", "api_key")
    )
    subaccount: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mailchannels_subaccount", "subaccount"),
    )
    endpoint: str = "https://api.mailchannels.net/tx/v1/send"

    @property
    def recipients(self) -> list[str]:
        """Comma-separated ``MAIL_TO`` split into individual addresses."""

        if not self.to:
            return []
        return [address.strip() for address in self.to.split(",") if address.strip()]

    @property
    def is_enabled(self) -> bool:
        return bool(self.to and self.sender)


class ServerChanSettings(BaseAppSettings):
    """ServerChan Turbo push."""

    model_config = SettingsConfigDict(
        env_prefix="sc_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    key: str | None = None
    base_url: str = "https://sctapi.ftqq.com"

    @property
    def is_enabled(self) -> bool:
        return bool(self.key)


class DingTalkSettings(BaseAppSettings):
    """DingTalk custom robot, optionally with request signing."""

    model_config = SettingsConfigDict(
        env_prefix="dingtalk_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    webhook: str | None = None
    secret: str | None = None

    @property
    def is_enabled(self) -> bool:
        return bool(self.webhook)


class TelegramSettings(BaseAppSettings):
    """Telegram Bot API delivery."""

    model_config = SettingsConfigDict(
        env_prefix="telegram_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    bot_token: str | None = None
    chat_id: str | None = None
    api_base: str = "https://api.telegram.org"

    @property
    def is_enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class NotifySettings(BaseAppSettings):
    """Shared knobs for outbound notification calls."""

    model_config = SettingsConfigDict(
        env_prefix="notify_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    timeout_seconds: float = Field(default=10.0, ge=0.1)


class TelemetrySettings(BaseAppSettings):
    """Tracing exporter and metrics listener configuration."""

    model_config = SettingsConfigDict(
        env_prefix="otel_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    exporter_endpoint: str | None = None
    exporter_headers: str | None = None
    metrics_host: str = "0.0.0.0"
    metrics_port: int | None = Field(default=None, ge=1, le=65535)


class RelaySettings(BaseAppSettings):
    """Top level settings object used by the relay service."""

    app_version: str = "0.1.0"
    log_level: str = "INFO"

    stripe: StripeSettings = Field(default_factory=StripeSettings)
    mail: MailSettings = Field(default_factory=MailSettings)
    serverchan: ServerChanSettings = Field(default_factory=ServerChanSettings)
    dingtalk: DingTalkSettings = Field(default_factory=DingTalkSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    notify: NotifySettings = Field(default_factory=NotifySettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def load(cls, **kwargs: Any) -> RelaySettings:
        """Helper factory that mirrors BaseSettings semantics."""

        return cls(**kwargs)
