"""Tests for greedy embed packing."""

import logging

import pytest

from discord_alerts.alerter.limits import (
    COLOR_ERROR,
    COLOR_FATAL,
    DISCORD_LIMITS,
    DiscordLimits,
    get_color_for_level,
)
from discord_alerts.alerter.models import (
    AlertInput,
    AlertLevel,
    Embed,
    EmbedField,
    Segment,
    SegmentKind,
)
from discord_alerts.alerter.packer import CORRELATION_FIELD_NAME, alert_to_embeds, pack
from discord_alerts.alerter.segmenter import to_segments

ALERT_ID = "00000000-0000-4000-8000-000000000000"
CORRELATION_CHARS = len(CORRELATION_FIELD_NAME) + len(ALERT_ID)


def recount(embed: Embed) -> int:
    """Recompute an embed's character cost from its content."""
    slots = (embed.title, embed.description, embed.footer)
    return sum(len(s) for s in slots if s) + sum(f.chars_count for f in embed.fields)


def flatten(embeds: list[Embed]) -> list[Segment]:
    """Recover the segments of packed embeds, minus correlation fields."""
    segments = []
    for embed in embeds:
        if embed.title is not None:
            segments.append(Segment(SegmentKind.TITLE, embed.title))
        if embed.description is not None:
            segments.append(Segment(SegmentKind.DESCRIPTION, embed.description))
        segments.extend(Segment(SegmentKind.FIELD, f) for f in embed.fields[1:])
        if embed.footer is not None:
            segments.append(Segment(SegmentKind.FOOTER, embed.footer))
    return segments


def assert_within_limits(embeds: list[Embed]) -> None:
    for embed in embeds:
        assert embed.chars_count == recount(embed)
        assert embed.chars_count <= DISCORD_LIMITS.embed_total_chars
        assert len(embed.fields) <= DISCORD_LIMITS.embed_max_fields


@pytest.fixture
def large_alert() -> AlertInput:
    """Create an alert far larger than one embed."""
    return AlertInput(
        title="T" * 400,
        description="d" * 9500,
        footer="F" * 3000,
        context={f"key-{i}-" + "k" * 250: "v" * 1500 for i in range(40)},
        level=AlertLevel.ERROR,
    )


# ============================================================================
# pack Tests
# ============================================================================


class TestPack:
    """Tests for pack."""

    def test_small_alert_single_embed(self) -> None:
        """A small alert fits in one embed with every segment in order."""
        alert = AlertInput(
            title="Title",
            description="Description",
            footer="Footer",
            context={"a": "1", "b": "2"},
        )

        embeds = pack(to_segments(alert), alert.level, alert_id=ALERT_ID)

        assert len(embeds) == 1
        embed = embeds[0]
        assert embed.title == "Title"
        assert embed.description == "Description"
        assert embed.footer == "Footer"
        assert embed.fields == [
            EmbedField(name=CORRELATION_FIELD_NAME, value=ALERT_ID),
            EmbedField(name="a", value="1"),
            EmbedField(name="b", value="2"),
        ]
        assert embed.chars_count == CORRELATION_CHARS + 5 + 11 + 6 + 2 + 2

    def test_empty_alert_yields_one_embed(self) -> None:
        """An alert without content still produces the correlation embed."""
        embeds = pack([], alert_id=ALERT_ID)

        assert len(embeds) == 1
        assert embeds[0].fields == [EmbedField(name=CORRELATION_FIELD_NAME, value=ALERT_ID)]
        assert embeds[0].chars_count == CORRELATION_CHARS

    def test_generates_alert_id(self) -> None:
        """A fresh correlation id is generated per call."""
        first = pack([])[0].fields[0].value
        second = pack([])[0].fields[0].value
        assert first != second
        assert len(first) == 36

    def test_thirty_fields_split_after_max(self) -> None:
        """The first embed closes at 25 fields and all embeds share one id."""
        alert = AlertInput(context={f"key{i}": f"value{i}" for i in range(30)})

        embeds = pack(to_segments(alert), alert_id=ALERT_ID)

        assert len(embeds) == 2
        assert len(embeds[0].fields) == DISCORD_LIMITS.embed_max_fields
        assert len(embeds[1].fields) == 1 + 30 - 24
        assert {e.fields[0].value for e in embeds} == {ALERT_ID}
        assert embeds[1].fields[1].name == "key24"

    def test_singleton_slots(self) -> None:
        """Each description chunk needs its own embed."""
        alert = AlertInput(title="T", description="x" * 10_000, footer="F")

        embeds = pack(to_segments(alert), alert_id=ALERT_ID)

        assert len(embeds) == 3
        assert embeds[0].title == "T"
        assert [len(e.description) for e in embeds] == [4000, 4000, 2000]
        assert embeds[2].footer == "F"
        assert "".join(e.description for e in embeds) == alert.description

    def test_budget_overflow_opens_new_embed(self) -> None:
        """A field that would overflow the char budget starts a new embed."""
        alert = AlertInput(
            title="t" * 200,
            description="d" * 4000,
            context={"a" * 240: "1" * 1000, "b" * 240: "2" * 1000},
        )

        embeds = pack(to_segments(alert), alert_id=ALERT_ID)

        assert len(embeds) == 2
        assert [f.name[0] for f in embeds[0].fields[1:]] == ["a"]
        assert [f.name[0] for f in embeds[1].fields[1:]] == ["b"]
        assert_within_limits(embeds)

    def test_large_alert_respects_limits(self, large_alert: AlertInput) -> None:
        """Every embed of a huge alert stays within all limits."""
        embeds = alert_to_embeds(large_alert, "...")

        assert len(embeds) > 1
        assert_within_limits(embeds)
        assert len({e.fields[0].value for e in embeds}) == 1

    def test_large_alert_preserves_order(self, large_alert: AlertInput) -> None:
        """Segments appear across embeds in their original order."""
        segments = to_segments(large_alert, "...")

        embeds = pack(segments, large_alert.level, alert_id=ALERT_ID)

        assert flatten(embeds) == segments

    def test_level_color(self) -> None:
        """Embeds carry the level color, or none without a level."""
        assert pack([], AlertLevel.FATAL)[0].color == COLOR_FATAL
        assert pack([], AlertLevel.ERROR)[0].color == COLOR_ERROR
        assert pack([])[0].color is None

    def test_oversized_segment_clipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """A segment larger than an empty embed is clipped to the budget."""
        limits = DiscordLimits(embed_total_chars=100)
        segments = [Segment(SegmentKind.DESCRIPTION, "x" * 500)]

        with caplog.at_level(logging.WARNING):
            embeds = pack(segments, alert_id=ALERT_ID, limits=limits)

        assert len(embeds) == 1
        assert embeds[0].chars_count == 100
        assert embeds[0].description == "x" * (100 - CORRELATION_CHARS - 3) + "..."
        assert "exceeds an empty embed budget" in caplog.text

    def test_oversized_field_clipped(self) -> None:
        """An oversized field keeps its name and clips its value."""
        limits = DiscordLimits(embed_total_chars=100)
        segments = [Segment(SegmentKind.FIELD, EmbedField(name="name", value="v" * 500))]

        embeds = pack(segments, alert_id=ALERT_ID, limits=limits)

        field = embeds[0].fields[1]
        assert field.name == "name"
        assert embeds[0].chars_count == 100
        assert field.value.endswith("...")


# ============================================================================
# alert_to_embeds / color Tests
# ============================================================================


class TestAlertToEmbeds:
    """Tests for alert_to_embeds."""

    def test_long_title_scenario(self) -> None:
        """A 300 char title ends up as exactly 200 chars ending in the suffix."""
        embeds = alert_to_embeds(AlertInput(title="A" * 300), "...")

        assert len(embeds) == 1
        assert len(embeds[0].title) == 200
        assert embeds[0].title.endswith("...")

    def test_string_level(self) -> None:
        """String levels are coerced to AlertLevel."""
        alert = AlertInput(title="x", level="warn")
        assert alert.level is AlertLevel.WARN
        assert alert_to_embeds(alert)[0].color == get_color_for_level(AlertLevel.WARN)

    def test_invalid_level(self) -> None:
        """Unknown levels are rejected."""
        with pytest.raises(ValueError):
            AlertInput(level="debug")


class TestEmbedToDict:
    """Tests for Discord JSON rendering."""

    def test_to_dict(self) -> None:
        """Optional parts are omitted and the footer is nested."""
        embed = Embed(
            title="T",
            footer="F",
            fields=[EmbedField(name="a", value="1")],
            timestamp="2024-01-01T00:00:00+00:00",
            chars_count=4,
        )

        assert embed.to_dict() == {
            "title": "T",
            "footer": {"text": "F"},
            "timestamp": "2024-01-01T00:00:00+00:00",
            "fields": [{"name": "a", "value": "1"}],
        }

    def test_color_included(self) -> None:
        """The color is rendered when set."""
        assert Embed(color=COLOR_ERROR).to_dict()["color"] == COLOR_ERROR
