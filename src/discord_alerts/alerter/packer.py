"""Greedy packing of alert segments into Discord embeds.

Segments are placed in order into the current embed. A new embed is opened
whenever the next segment would overflow the character budget, exceed the
field count, or fill a title/description/footer slot that is already taken.
Every embed of one alert carries the same ``alertId`` field so the pieces
can be correlated downstream.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from discord_alerts.alerter.limits import DISCORD_LIMITS, DiscordLimits, get_color_for_level
from discord_alerts.alerter.models import Embed, EmbedField, Segment, SegmentKind
from discord_alerts.alerter.segmenter import DEFAULT_TRUNCATED_SUFFIX, to_segments, truncate

if TYPE_CHECKING:
    from collections.abc import Iterable

    from discord_alerts.alerter.models import AlertInput, AlertLevel

logger = logging.getLogger(__name__)

CORRELATION_FIELD_NAME = "alertId"

_SLOT_KINDS = {
    SegmentKind.TITLE: "title",
    SegmentKind.DESCRIPTION: "description",
    SegmentKind.FOOTER: "footer",
}


def _fits(embed: Embed, segment: Segment, limits: DiscordLimits) -> bool:
    """Check whether segment can be added to embed."""
    if segment.kind is SegmentKind.FIELD:
        if len(embed.fields) >= limits.embed_max_fields:
            return False
    elif getattr(embed, _SLOT_KINDS[segment.kind]) is not None:
        return False
    return embed.chars_count + segment.chars_count <= limits.embed_total_chars


def _clip(segment: Segment, budget: int, suffix: str) -> Segment:
    """Shrink a segment to at most budget characters."""
    budget = max(budget, 0)
    content = segment.content
    if isinstance(content, EmbedField):
        name = truncate(content.name, budget, suffix)
        value = truncate(content.value, budget - len(name), suffix) if budget > len(name) else ""
        return Segment(segment.kind, EmbedField(name=name, value=value))
    return Segment(segment.kind, truncate(content, budget, suffix))


def _place(embed: Embed, segment: Segment) -> None:
    content = segment.content
    if isinstance(content, EmbedField):
        embed.fields.append(content)
    else:
        setattr(embed, _SLOT_KINDS[segment.kind], content)
    embed.chars_count += segment.chars_count


def pack(
    segments: Iterable[Segment],
    level: AlertLevel | None = None,
    *,
    alert_id: str | None = None,
    suffix: str = DEFAULT_TRUNCATED_SUFFIX,
    limits: DiscordLimits = DISCORD_LIMITS,
) -> list[Embed]:
    """Pack segments into as few embeds as a single greedy pass allows.

    Args:
        segments: Segments in display order.
        level: Alert level used for the embed color.
        alert_id: Correlation id stamped on every embed. Generated if omitted.
        suffix: Suffix used if a segment must be clipped to fit an empty embed.
        limits: Size constraints to respect.

    Returns:
        Committed embeds, each with its frozen chars_count. Always at least one.
    """
    alert_id = alert_id or str(uuid.uuid4())
    color = get_color_for_level(level)
    embeds: list[Embed] = []
    current: Embed | None = None

    def start_embed() -> Embed:
        correlation = EmbedField(name=CORRELATION_FIELD_NAME, value=alert_id)
        return Embed(fields=[correlation], color=color, chars_count=correlation.chars_count)

    for segment in segments:
        if current is None or not _fits(current, segment, limits):
            if current is not None:
                embeds.append(current)
            current = start_embed()

            if not _fits(current, segment, limits):
                # Only reachable with limits tighter than the truncation budgets
                logger.warning(
                    f"Segment {segment.kind.value} of alert {alert_id} exceeds an empty "
                    f"embed budget ({segment.chars_count} chars), clipping it"
                )
                segment = _clip(
                    segment, limits.embed_total_chars - current.chars_count, suffix
                )

        _place(current, segment)

    embeds.append(current if current is not None else start_embed())
    return embeds


def alert_to_embeds(alert: AlertInput, suffix: str = DEFAULT_TRUNCATED_SUFFIX) -> list[Embed]:
    """Turn an alert into the embeds that carry it, honoring all Discord limits."""
    return pack(to_segments(alert, suffix), alert.level, suffix=suffix)
