"""Alerting layer - segmentation, packing and batched webhook delivery."""

from discord_alerts.alerter.batcher import select_batch
from discord_alerts.alerter.channels.discord import DiscordWebhookChannel, WebhookChannel
from discord_alerts.alerter.client import AlertsClient
from discord_alerts.alerter.lazy import LazyAlertsClient
from discord_alerts.alerter.limits import DISCORD_LIMITS, DiscordLimits, get_color_for_level
from discord_alerts.alerter.models import (
    AlertInput,
    AlertLevel,
    Embed,
    EmbedField,
    Segment,
    SegmentKind,
)
from discord_alerts.alerter.packer import alert_to_embeds, pack
from discord_alerts.alerter.segmenter import chunk, to_segments, truncate
from discord_alerts.alerter.stringify import stringify

__all__ = [
    "DISCORD_LIMITS",
    "AlertInput",
    "AlertLevel",
    "AlertsClient",
    "DiscordLimits",
    "DiscordWebhookChannel",
    "Embed",
    "EmbedField",
    "LazyAlertsClient",
    "Segment",
    "SegmentKind",
    "WebhookChannel",
    "alert_to_embeds",
    "chunk",
    "get_color_for_level",
    "pack",
    "select_batch",
    "stringify",
    "to_segments",
    "truncate",
]
