"""Webhook transport implementations."""

from discord_alerts.alerter.channels.discord import (
    DiscordWebhookChannel,
    WebhookChannel,
    build_payload,
)

__all__ = [
    "DiscordWebhookChannel",
    "WebhookChannel",
    "build_payload",
]
