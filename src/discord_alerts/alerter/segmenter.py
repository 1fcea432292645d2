"""Conversion of alerts into ordered, size-bounded segments.

Title, footer and field parts are truncated to their limits. The
description is split into chunks instead, so no description text is lost.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from discord_alerts.alerter.limits import DISCORD_LIMITS
from discord_alerts.alerter.models import EmbedField, Segment, SegmentKind
from discord_alerts.alerter.stringify import stringify

if TYPE_CHECKING:
    from discord_alerts.alerter.models import AlertInput

DEFAULT_TRUNCATED_SUFFIX = "..."


def truncate(text: str, max_len: int, suffix: str = DEFAULT_TRUNCATED_SUFFIX) -> str:
    """Bound text to max_len characters, ending in suffix when cut.

    A suffix longer than max_len is itself clipped to max_len.
    """
    if len(text) <= max_len:
        return text
    keep = max(max_len - len(suffix), 0)
    return (text[:keep] + suffix)[:max_len]


def chunk(text: str, size: int) -> list[str]:
    """Split text into consecutive pieces of at most size characters."""
    if size <= 0:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [text[i : i + size] for i in range(0, len(text), size)]


def to_segments(alert: AlertInput, suffix: str = DEFAULT_TRUNCATED_SUFFIX) -> list[Segment]:
    """Turn an alert into segments: title, description chunks, fields, footer.

    Args:
        alert: The alert to segment.
        suffix: Suffix appended to truncated parts.

    Returns:
        Segments in the order they must appear across embeds.
    """
    segments: list[Segment] = []

    if alert.title:
        segments.append(
            Segment(SegmentKind.TITLE, truncate(alert.title, DISCORD_LIMITS.title, suffix))
        )

    if alert.description:
        segments.extend(
            Segment(SegmentKind.DESCRIPTION, piece)
            for piece in chunk(alert.description, DISCORD_LIMITS.description)
        )

    if alert.context:
        for key, value in alert.context.items():
            embed_field = EmbedField(
                name=truncate(str(key), DISCORD_LIMITS.field_name, suffix),
                value=truncate(stringify(value), DISCORD_LIMITS.field_value, suffix),
            )
            segments.append(Segment(SegmentKind.FIELD, embed_field))

    if alert.footer:
        segments.append(
            Segment(SegmentKind.FOOTER, truncate(alert.footer, DISCORD_LIMITS.footer, suffix))
        )

    return segments
