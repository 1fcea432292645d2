"""Data models for the alerter module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping


class AlertLevel(str, Enum):
    """Severity of an alert. Determines the embed color."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


@dataclass(frozen=True)
class AlertInput:
    """An alert to deliver as one or more Discord embeds.

    Oversized parts are truncated or split when the alert is packed, so any
    input is accepted. See the Discord embed limits:
    https://discord.com/developers/docs/resources/message#embed-object-embed-limits

    Attributes:
        title: Alert headline. Truncated to fit the title limit.
        description: Alert body. Split across embeds when too long, never truncated.
        footer: Footer text. Truncated to fit the footer limit.
        context: Key/value pairs rendered as embed fields, in insertion order.
            Intended for up to 25 entries; more spill into extra embeds.
        level: Severity of the alert.
    """

    title: str | None = None
    description: str | None = None
    footer: str | None = None
    context: Mapping[str, Any] | None = None
    level: AlertLevel | None = None

    def __post_init__(self) -> None:
        if self.level is not None and not isinstance(self.level, AlertLevel):
            object.__setattr__(self, "level", AlertLevel(self.level))


@dataclass(frozen=True)
class EmbedField:
    """A single name/value field of an embed."""

    name: str
    value: str

    @property
    def chars_count(self) -> int:
        return len(self.name) + len(self.value)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


class SegmentKind(str, Enum):
    """Kinds of atomic alert parts placed into embeds."""

    TITLE = "title"
    DESCRIPTION = "description"
    FOOTER = "footer"
    FIELD = "field"


@dataclass(frozen=True)
class Segment:
    """One atomic part of an alert.

    Title, description and footer segments carry a string; field segments
    carry an EmbedField.
    """

    kind: SegmentKind
    content: str | EmbedField

    @property
    def chars_count(self) -> int:
        if isinstance(self.content, EmbedField):
            return self.content.chars_count
        return len(self.content)


@dataclass
class Embed:
    """A size-bounded Discord embed built from one alert.

    Attributes:
        title: Embed title.
        description: Embed description.
        footer: Footer text, rendered as ``{"text": ...}``.
        fields: Ordered fields. The first one is always the alert correlation id.
        color: Level-derived color, or None.
        timestamp: ISO-8601 creation time.
        chars_count: Characters counted against the embed budget. Frozen
            once the embed is committed.
    """

    title: str | None = None
    description: str | None = None
    footer: str | None = None
    fields: list[EmbedField] = field(default_factory=list)
    color: int | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    chars_count: int = 0

    def to_dict(self) -> dict[str, object]:
        """Render the embed in Discord's JSON shape."""
        data: dict[str, object] = {}
        if self.color is not None:
            data["color"] = self.color
        if self.title is not None:
            data["title"] = self.title
        if self.description is not None:
            data["description"] = self.description
        if self.footer is not None:
            data["footer"] = {"text": self.footer}
        data["timestamp"] = self.timestamp
        data["fields"] = [f.to_dict() for f in self.fields]
        return data
