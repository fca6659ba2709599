"""Outbound SMS delivery for one-time passcodes.

The OTP issuer only needs `send(code, phone_number) -> bool`. Two channels
implement it:

- `HttpSmsChannel` posts to an HTTP SMS gateway with httpx.
- `LoggingSmsChannel` is used when no gateway is configured and only logs.

A `False` return or a raised exception both count as a delivery failure.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from phone_claim.core.settings import settings
from phone_claim.utils.phone import phone_last4

logger = logging.getLogger(__name__)


class SmsChannel(Protocol):
    """Anything able to deliver a passcode to a phone number."""

    async def send(self, code: str, phone_number: str) -> bool:
        ...


@dataclass(frozen=True)
class SmsConfig:
    """Resolved SMS gateway configuration."""

    gateway_url: str | None
    api_key: str | None
    sender_id: str
    message_template: str
    timeout_seconds: float


def load_sms_config() -> SmsConfig:
    """Build configuration object from global settings."""
    return SmsConfig(
        gateway_url=settings.sms_gateway_url,
        api_key=settings.sms_api_key,
        sender_id=settings.sms_sender_id,
        message_template=settings.sms_message_template,
        timeout_seconds=float(settings.sms_timeout_seconds),
    )


class HttpSmsChannel:
    """Deliver passcodes through an HTTP SMS gateway."""

    def __init__(
        self,
        config: SmsConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or load_sms_config()
        self._client: httpx.AsyncClient | None = client
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    def _build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def send(self, code: str, phone_number: str) -> bool:
        if not self.config.gateway_url:
            logger.error("SMS gateway URL is not configured")
            return False

        client = await self._ensure_client()
        payload = {
            "to": phone_number,
            "from": self.config.sender_id,
            "message": self.config.message_template.format(code=code),
        }
        try:
            response = await client.post(
                self.config.gateway_url,
                json=payload,
                headers=self._build_headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("SMS delivery to %s failed: %s", phone_last4(phone_number), exc)
            return False

        if not response.is_success:
            logger.warning(
                "SMS gateway rejected message to %s with status %d",
                phone_last4(phone_number),
                response.status_code,
            )
            return False
        return True

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class LoggingSmsChannel:
    """Development channel that records a delivery without sending anything."""

    async def send(self, code: str, phone_number: str) -> bool:
        logger.info(
            "No SMS gateway configured; passcode for %s not delivered (length %d)",
            phone_last4(phone_number),
            len(code),
        )
        return True


class _SmsChannelSingleton:
    """Singleton wrapper for the configured SMS channel."""

    _instance: SmsChannel | None = None

    @classmethod
    def get_instance(cls) -> SmsChannel:
        if cls._instance is None:
            if settings.sms_gateway_url:
                cls._instance = HttpSmsChannel()
            else:
                cls._instance = LoggingSmsChannel()
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        instance = cls._instance
        cls._instance = None
        if isinstance(instance, HttpSmsChannel):
            await instance.close()


def get_sms_channel() -> SmsChannel:
    """Return the process-wide SMS channel."""
    return _SmsChannelSingleton.get_instance()


async def close_sms_channel() -> None:
    """Release resources held by the SMS channel."""
    await _SmsChannelSingleton.close()
