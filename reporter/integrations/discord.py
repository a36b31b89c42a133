"""Discord webhook integration."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from reporter.dispatcher import NotificationFailed
from reporter.schemas import NotificationPayload

LOGGER = logging.getLogger(__name__)


class DiscordWebhookClient:
    """Posts notification payloads as a single embed to a Discord webhook."""

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    @staticmethod
    def to_message(payload: NotificationPayload) -> dict[str, Any]:
        """Render payload in Discord's execute-webhook JSON format."""
        return {
            "username": payload.sender_name,
            "avatar_url": payload.avatar_url,
            "embeds": [
                {
                    "title": payload.title,
                    "description": payload.description,
                    "footer": {"text": payload.footer},
                }
            ],
        }

    async def send(self, payload: NotificationPayload) -> None:
        """Send one message. Raises NotificationFailed on any non-2xx outcome."""
        try:
            response = await self._client.post(self.webhook_url, json=self.to_message(payload))
        except httpx.HTTPError as exc:
            LOGGER.warning(
                "discord request failed",
                extra={"event": "discord_error", "context": {"error": type(exc).__name__}},
            )
            raise NotificationFailed(f"webhook request failed: {exc}") from exc

        if response.status_code == 429:
            LOGGER.warning("discord throttled", extra={"event": "discord_throttled", "context": {}})
            raise NotificationFailed("webhook throttled")
        if not response.is_success:
            LOGGER.warning(
                "discord rejected message",
                extra={"event": "discord_error", "context": {"status_code": response.status_code}},
            )
            raise NotificationFailed(f"webhook returned HTTP {response.status_code}")

    async def aclose(self) -> None:
        """Close the HTTP client unless the caller passed it in."""
        if self._owns_client:
            await self._client.aclose()
