"""Rendering of arbitrary context values as embed text."""

from __future__ import annotations

import dataclasses
import json
import traceback
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

# Largest integer a JSON consumer can hold without losing precision
MAX_SAFE_INTEGER = 2**53 - 1


def format_exception(exc: BaseException) -> str:
    """Render an exception with its traceback, or ``Type: message`` if never raised."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()


def _json_default(value: Any) -> Any:
    """Fallback encoder for values json cannot serialize natively."""
    if isinstance(value, BaseException):
        return format_exception(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, set | frozenset):
        return list(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return str(value)


def _json_key(key: Any) -> Any:
    """Keep keys json accepts, render the rest as text."""
    if key is None or isinstance(key, str | int | float | bool):
        return key
    return str(key)


def _stringify_large_ints(value: Any) -> Any:
    """Replace integers beyond the safe range with their decimal text."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, dict):
        return {_json_key(k): _stringify_large_ints(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_stringify_large_ints(v) for v in value]
    return value


def stringify(value: Any) -> str:
    """Render a value as text.

    Strings pass through unchanged and exceptions render their traceback.
    Everything else is JSON encoded, with Decimals and integers beyond the
    safe range written as decimal strings. Values json cannot encode, such
    as circular structures, fall back to ``repr``.
    """
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return value
    if isinstance(value, BaseException):
        return format_exception(value)
    try:
        return json.dumps(_stringify_large_ints(value), default=_json_default, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        return repr(value)
