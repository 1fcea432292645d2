"""Batching alerts client for Discord webhooks.

Alerts are packed into embeds as soon as they are added and queued. A timer
coalesces arrivals into webhook payloads of up to ten embeds, backing off
when Discord rate limits the webhook. ``flush()`` drains the queue.

Usage:
    ```python
    client = AlertsClient("https://discord.com/api/webhooks/123/abc", label="api", env="prod")
    client.add_alert(AlertInput(title="Job failed", context={"job": "sync"}, level="error"))
    await client.flush()
    ```
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import TYPE_CHECKING, Any

import httpx

from discord_alerts.alerter.batcher import select_batch
from discord_alerts.alerter.channels.discord import (
    DEFAULT_REQUEST_TIMEOUT,
    DiscordWebhookChannel,
    build_payload,
)
from discord_alerts.alerter.limits import DISCORD_LIMITS
from discord_alerts.alerter.packer import alert_to_embeds
from discord_alerts.alerter.segmenter import DEFAULT_TRUNCATED_SUFFIX
from discord_alerts.alerter.stringify import stringify

if TYPE_CHECKING:
    from discord_alerts.alerter.channels.discord import WebhookChannel
    from discord_alerts.alerter.models import AlertInput, Embed
    from discord_alerts.config import Settings

DEFAULT_BATCH_DELAY_MS = 10_000
DEFAULT_FLUSH_DELAY_MS = 5_000
DEFAULT_RETRY_AFTER_SECONDS = 30.0
HTTP_TOO_MANY_REQUESTS = 429


def parse_retry_after(value: str | None, default: float = DEFAULT_RETRY_AFTER_SECONDS) -> float:
    """Parse a Retry-After header in seconds, falling back to default."""
    if value is None:
        return default
    try:
        seconds = float(value)
    except ValueError:
        return default
    if not math.isfinite(seconds) or seconds < 0:
        return default
    return seconds


def _response_text(response: httpx.Response) -> str | None:
    """Best-effort response body for error logs."""
    try:
        return response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return None


class AlertsClient:
    """Batches alerts and sends them to a Discord webhook as embeds.

    All state lives on the instance and is only touched from the event loop.
    Sends are serialized by a lock, so a timer-driven send and a flush never
    post the same embeds twice.
    """

    def __init__(
        self,
        webhook_url: str,
        *,
        label: str | None = None,
        env: str | None = None,
        logger: logging.Logger | None = None,
        disabled: bool = False,
        truncated_suffix: str = DEFAULT_TRUNCATED_SUFFIX,
        batch_delay_ms: int = DEFAULT_BATCH_DELAY_MS,
        flush_delay_ms: int = DEFAULT_FLUSH_DELAY_MS,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        channel: WebhookChannel | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            webhook_url: Discord webhook URL.
            label: Label shown above every payload, e.g. the application name.
            env: Environment shown next to the label.
            logger: Logger to report through. Defaults to this module's logger.
            disabled: Log batches instead of sending them.
            truncated_suffix: Suffix appended to truncated alert parts.
            batch_delay_ms: Delay before sending queued embeds.
            flush_delay_ms: Delay between batches while flushing.
            request_timeout: HTTP request timeout in seconds.
            channel: Transport override. Defaults to a DiscordWebhookChannel.
        """
        if batch_delay_ms <= 0 or flush_delay_ms <= 0:
            raise ValueError("Batch and flush delays must be positive")
        if len(truncated_suffix) > DISCORD_LIMITS.title:
            raise ValueError(
                f"truncated_suffix must be at most {DISCORD_LIMITS.title} characters"
            )

        self.label = label
        self.env = env
        self.disabled = disabled
        self.truncated_suffix = truncated_suffix
        self.batch_delay_ms = batch_delay_ms
        self.flush_delay_ms = flush_delay_ms
        self.batch_size = DISCORD_LIMITS.max_embeds_per_payload
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._channel = channel or DiscordWebhookChannel(webhook_url, timeout=request_timeout)

        # Scheduling state
        self._embeds: list[Embed] = []
        self._timer: asyncio.TimerHandle | None = None
        self._sending = False
        self._flushing = False
        self._send_lock = asyncio.Lock()
        self._flush_done = asyncio.Event()
        self._flush_done.set()
        self._retry_at: float | None = None
        self._tasks: set[asyncio.Task[float]] = set()

    @classmethod
    def from_settings(
        cls, settings: Settings, *, logger: logging.Logger | None = None
    ) -> AlertsClient:
        """Build a client from application settings.

        Raises:
            ValueError: If no webhook URL is configured.
        """
        webhook = settings.webhook
        if webhook.webhook_url is None:
            raise ValueError("ALERTS_WEBHOOK_URL is not configured")
        batching = settings.batching
        return cls(
            webhook.webhook_url.get_secret_value(),
            label=webhook.label,
            env=webhook.env,
            logger=logger,
            disabled=webhook.disabled,
            truncated_suffix=batching.truncated_suffix,
            batch_delay_ms=batching.batch_delay_ms,
            flush_delay_ms=batching.flush_delay_ms,
            request_timeout=batching.request_timeout,
        )

    @property
    def pending(self) -> int:
        """Number of embeds waiting to be sent."""
        return len(self._embeds)

    @property
    def is_sending(self) -> bool:
        return self._sending

    @property
    def is_flushing(self) -> bool:
        return self._flushing

    def add_alert(self, alert: AlertInput) -> None:
        """Queue an alert for delivery. Never raises.

        Alerts added while a flush is running are dropped.
        """
        if self._flushing:
            self._logger.info(f"Flushing alerts, skipping new alert: {alert!r}")
            return

        try:
            embeds = alert_to_embeds(alert, self.truncated_suffix)
        except Exception:
            self._logger.exception(f"Failed to pack alert, dropping it: {alert!r}")
            return

        self._embeds.extend(embeds)

        if self._timer is None and not self._sending:
            self._schedule(self.batch_delay_ms / 1000)

    async def flush(self) -> None:
        """Send every queued embed, waiting for a running flush to finish first."""
        while self._flushing:
            await self._flush_done.wait()

        self._flushing = True
        self._flush_done.clear()
        try:
            while self._embeds:
                delay = await self._send_batch(self.flush_delay_ms)
                if delay > 0 and self._embeds:
                    await asyncio.sleep(delay)
        finally:
            self._flushing = False
            self._flush_done.set()

    def stop(self) -> None:
        """Cancel the pending send timer.

        Queued embeds are kept and an in-flight request is not interrupted.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def __aenter__(self) -> AlertsClient:
        return self

    async def __aexit__(self, *_args: Any) -> None:
        """Flush queued alerts and stop the timer."""
        await self.flush()
        self.stop()

    def _schedule(self, delay: float) -> None:
        """Arm the send timer. Flushes drive their own sends instead."""
        if self._flushing:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.warning(
                f"No running event loop, {len(self._embeds)} alerts stay queued until flush()"
            )
            return
        self.stop()
        self._timer = loop.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._send_batch())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send_batch(self, delay_override_ms: int | None = None) -> float:
        """Send the next batch of queued embeds.

        Args:
            delay_override_ms: Delay before the following batch, instead of
                the default batch delay.

        Returns:
            Seconds until the next send attempt, or 0 when the queue is empty.
        """
        async with self._send_lock:
            if not self._embeds:
                return 0.0

            self.stop()
            await self._wait_for_retry()

            self._sending = True
            try:
                return await self._send_next(delay_override_ms)
            finally:
                self._sending = False

    async def _wait_for_retry(self) -> None:
        """Sleep out a Retry-After deadline set by an earlier 429."""
        if self._retry_at is None:
            return
        remaining = self._retry_at - asyncio.get_running_loop().time()
        if remaining > 0:
            self._logger.debug(f"Waiting {remaining:.3f} seconds for rate limit to expire")
            await asyncio.sleep(remaining)

    async def _send_next(self, delay_override_ms: int | None) -> float:
        batch = select_batch(self._embeds, self.batch_size)
        if not batch:
            dropped = self._embeds.pop(0)
            self._logger.error(
                f"Embed of {dropped.chars_count} chars exceeds the payload budget, dropping it"
            )
            return self._after_send(delay_override_ms)

        payload = build_payload(batch, label=self.label, env=self.env)

        if self.disabled:
            self._logger.info(f"Alerts disabled, skipping batch: {stringify(payload)}")
        else:
            channel_name = self._channel.name
            try:
                response = await self._channel.post(payload)
            except httpx.HTTPError as e:
                self._logger.error(f"Failed to send alerts batch via {channel_name}: {e!r}")
            except Exception:
                self._logger.exception(f"Unexpected error sending alerts batch via {channel_name}")
            else:
                if response.status_code == HTTP_TOO_MANY_REQUESTS:
                    delay = parse_retry_after(response.headers.get("Retry-After"))
                    self._retry_at = asyncio.get_running_loop().time() + delay
                    self._schedule(delay)
                    self._logger.info(f"Rate limit exceeded. Retrying in {delay:g} seconds")
                    return delay

                self._retry_at = None
                if response.is_success:
                    self._logger.info(f"Sent {len(batch)} alerts via {channel_name}")
                else:
                    self._logger.error(
                        f"Failed to send alerts batch via {channel_name}: "
                        f"{response.status_code} {_response_text(response)}"
                    )

        del self._embeds[: len(batch)]
        return self._after_send(delay_override_ms)

    def _after_send(self, delay_override_ms: int | None) -> float:
        """Schedule the next batch if embeds remain."""
        if not self._embeds:
            return 0.0
        delay_ms = delay_override_ms if delay_override_ms is not None else self.batch_delay_ms
        delay = delay_ms / 1000
        self._schedule(delay)
        return delay
