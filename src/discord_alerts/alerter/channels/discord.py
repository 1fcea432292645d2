"""Discord webhook channel implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

if TYPE_CHECKING:
    from collections.abc import Sequence

    from discord_alerts.alerter.models import Embed

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0


class WebhookChannel(Protocol):
    """Protocol for the outbound webhook transport."""

    name: str

    async def post(self, payload: dict[str, object]) -> httpx.Response:
        """POST a JSON payload and return the response."""
        ...


def build_content_line(label: str | None, env: str | None) -> str | None:
    """Build the bold ``label | env`` line shown above the embeds."""
    parts = [part for part in (label, env) if part]
    if not parts:
        return None
    return f"**{' | '.join(parts)}**"


def build_payload(
    embeds: Sequence[Embed], *, label: str | None = None, env: str | None = None
) -> dict[str, object]:
    """Build the webhook message body for a batch of embeds."""
    payload: dict[str, object] = {"embeds": [embed.to_dict() for embed in embeds]}
    content = build_content_line(label, env)
    if content is not None:
        payload["content"] = content
    return payload


class DiscordWebhookChannel:
    """Discord webhook channel for posting embed batches.

    Rate limiting and retries are left to the caller, which inspects the
    returned response.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize Discord channel.

        Args:
            webhook_url: Discord webhook URL.
            timeout: HTTP request timeout in seconds.
        """
        if not webhook_url:
            raise ValueError("webhook_url is required")
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.name = "discord"

    async def post(self, payload: dict[str, object]) -> httpx.Response:
        """Send a payload to the Discord webhook.

        Args:
            payload: Message body with ``embeds`` and optional ``content``.

        Returns:
            The webhook response. Non-success statuses are not raised.

        Raises:
            httpx.HTTPError: On network failures or timeouts.
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.webhook_url, json=payload)
        logger.debug(f"Discord webhook responded with {response.status_code}")
        return response
