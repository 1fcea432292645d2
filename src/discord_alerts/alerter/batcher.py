"""Selection of the next webhook payload from the pending embed queue."""

from __future__ import annotations

from typing import TYPE_CHECKING

from discord_alerts.alerter.limits import DISCORD_LIMITS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from discord_alerts.alerter.models import Embed


def select_batch(
    embeds: Sequence[Embed],
    max_count: int = DISCORD_LIMITS.max_embeds_per_payload,
    max_chars: int = DISCORD_LIMITS.embed_total_chars,
) -> list[Embed]:
    """Select the longest queue prefix that fits in one webhook payload.

    The caller removes the returned prefix from the queue once it has been
    sent. An empty list is returned when the first embed alone exceeds
    max_chars.

    Args:
        embeds: Pending embeds, oldest first.
        max_count: Maximum embeds per payload.
        max_chars: Maximum summed chars_count per payload.

    Returns:
        The selected prefix.
    """
    batch: list[Embed] = []
    total_chars = 0
    for embed in embeds:
        if len(batch) >= max_count:
            break
        total_chars += embed.chars_count
        if total_chars > max_chars:
            break
        batch.append(embed)
    return batch
