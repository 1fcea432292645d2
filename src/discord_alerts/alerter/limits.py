"""Discord embed limits and level colors.

Values are taken from the Discord documentation and shrunk by a safety
margin, so a truncated part always fits its documented maximum.
"""

from __future__ import annotations

from dataclasses import dataclass

from discord_alerts.alerter.models import AlertLevel


@dataclass(frozen=True)
class DiscordLimits:
    """Size constraints of a webhook message."""

    embed_total_chars: int = 6000 - 100
    embed_max_fields: int = 25
    title: int = 256 - 56
    description: int = 4096 - 96
    footer: int = 2048 - 48
    field_name: int = 256 - 16
    field_value: int = 1024 - 24
    max_embeds_per_payload: int = 10


DISCORD_LIMITS = DiscordLimits()

# Embed colors per level
COLOR_FATAL = 0xFF0000  # Red
COLOR_ERROR = 0xFF6666  # Light red
COLOR_WARN = 0xFFFF00  # Yellow
COLOR_INFO = 0x0000FF  # Blue

LEVEL_COLORS: dict[AlertLevel, int] = {
    AlertLevel.FATAL: COLOR_FATAL,
    AlertLevel.ERROR: COLOR_ERROR,
    AlertLevel.WARN: COLOR_WARN,
    AlertLevel.INFO: COLOR_INFO,
}


def get_color_for_level(level: AlertLevel | None) -> int | None:
    """Get the embed color for an alert level, or None when unset."""
    if level is None:
        return None
    return LEVEL_COLORS[level]
