"""Deferred-initialization proxy around AlertsClient.

Webhook credentials are often loaded asynchronously after module import.
The proxy can be created and used right away: calls made before ``init()``
are queued and replayed in order once the real client exists, with a
requested flush run after all queued alerts.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from discord_alerts.alerter.client import AlertsClient

if TYPE_CHECKING:
    from discord_alerts.alerter.models import AlertInput
    from discord_alerts.config import Settings


class LazyAlertsClient:
    """Forwarding proxy that buffers calls until the client is initialized."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._client: AlertsClient | None = None
        self._queued_alerts: list[AlertInput] = []
        self._flush_requested = False
        self._replay_flush: asyncio.Task[None] | None = None

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> AlertsClient | None:
        return self._client

    def init(self, webhook_url: str, **client_kwargs: Any) -> None:
        """Create the real client and replay queued calls.

        Args:
            webhook_url: Discord webhook URL.
            **client_kwargs: Keyword arguments for AlertsClient.
        """
        if self._client is not None:
            self._logger.warning("Alerts client already initialized")
            return

        client_kwargs.setdefault("logger", self._logger)
        self._client = AlertsClient(webhook_url, **client_kwargs)
        self._logger.info("Alerts client initialized")
        self._process_queue()

    def init_from_settings(self, settings: Settings) -> None:
        """Create the real client from settings and replay queued calls."""
        if self._client is not None:
            self._logger.warning("Alerts client already initialized")
            return

        self._client = AlertsClient.from_settings(settings, logger=self._logger)
        self._logger.info("Alerts client initialized")
        self._process_queue()

    def _process_queue(self) -> None:
        if self._client is None:
            return

        if self._queued_alerts:
            self._logger.info(f"Processing {len(self._queued_alerts)} queued alerts")
            for alert in self._queued_alerts:
                self._client.add_alert(alert)
            self._queued_alerts = []

        if self._flush_requested:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # Runs on the next flush() call instead
                return
            self._flush_requested = False
            self._replay_flush = loop.create_task(self._client.flush())

    def _log_not_initialized(self, method: str, args: object = None) -> None:
        if args is not None:
            self._logger.warning(f"Alerts client not initialized. {method} called with {args!r}")
        else:
            self._logger.warning(f"Alerts client not initialized. {method} called")

    def add_alert(self, alert: AlertInput) -> None:
        if self._client is not None:
            self._client.add_alert(alert)
            return
        self._log_not_initialized("add_alert", alert)
        self._queued_alerts.append(alert)

    async def flush(self) -> None:
        """Flush the real client, or record the request until init()."""
        if self._client is None:
            self._log_not_initialized("flush")
            self._flush_requested = True
            return

        if self._replay_flush is not None:
            replay, self._replay_flush = self._replay_flush, None
            await replay
        self._flush_requested = False
        await self._client.flush()

    def stop(self) -> None:
        if self._client is not None:
            self._client.stop()
            return
        self._log_not_initialized("stop")
