"""
Timestamp normalization for upstream perception streams.

Transcription and tracking providers encode instants in two shapes:
- String with a trailing unit suffix ("1.500s", "12s", "3")
- Seconds + fractional nanoseconds pair ({"seconds": "4", "nanos": 500000000})

Every component works in float seconds, so all parsing happens here, once,
at the system boundary. Unrecognized shapes raise TimestampParseError so
callers can tell "no data" apart from "malformed data".
"""

import logging
import math
import re
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000

_TIME_STRING_PATTERN = re.compile(r'^([+-]?(?:\d+(?:\.\d*)?|\.\d+))s?$')


class TimestampParseError(ValueError):
    """Raised when a timestamp is neither a suffixed string nor a seconds/nanos pair."""

    def __init__(self, value: Any, reason: str = "unrecognized timestamp shape"):
        self.value = value
        self.reason = reason
        super().__init__(f"Cannot parse timestamp {value!r}: {reason}")


def parse_time(value: Any) -> float:
    """
    Convert a timestamp representation to float seconds.

    Accepted shapes:
        - "1.5s", "2", " 0.300s "
        - int / float (bool excluded)
        - {"seconds": 1, "nanos": 500000000} (either key optional, values
          may be numeric strings; empty mapping means zero)
        - objects with ``seconds`` / ``nanos`` attributes (protobuf Duration)
        - datetime.timedelta

    Args:
        value: Raw timestamp from an upstream provider

    Returns:
        Time in seconds

    Raises:
        TimestampParseError: If the value has no recognized shape
    """
    if isinstance(value, bool) or value is None:
        raise TimestampParseError(value)

    if isinstance(value, (int, float)):
        return _finite(float(value), value)

    if isinstance(value, str):
        match = _TIME_STRING_PATTERN.match(value.strip())
        if not match:
            raise TimestampParseError(value, "expected a number with optional 's' suffix")
        return _finite(float(match.group(1)), value)

    if isinstance(value, timedelta):
        return value.total_seconds()

    if isinstance(value, Mapping):
        if not value:
            return 0.0
        if 'seconds' not in value and 'nanos' not in value:
            raise TimestampParseError(value, "mapping has neither 'seconds' nor 'nanos'")
        seconds = _numeric_field(value.get('seconds', 0), value)
        nanos = _numeric_field(value.get('nanos', 0), value)
        return _finite(seconds + nanos / NANOS_PER_SECOND, value)

    if hasattr(value, 'seconds') or hasattr(value, 'nanos'):
        seconds = _numeric_field(getattr(value, 'seconds', 0), value)
        nanos = _numeric_field(getattr(value, 'nanos', 0), value)
        return _finite(seconds + nanos / NANOS_PER_SECOND, value)

    raise TimestampParseError(value)


def parse_optional_time(value: Any, default: float = 0.0) -> float:
    """Parse a timestamp field that upstream may omit (protobuf drops zero values)."""
    if value is None:
        return default
    return parse_time(value)


def _numeric_field(field_value: Any, original: Any) -> float:
    if isinstance(field_value, bool) or field_value is None:
        raise TimestampParseError(original, "seconds/nanos must be numeric")
    if isinstance(field_value, (int, float)):
        return float(field_value)
    if isinstance(field_value, str):
        try:
            return float(field_value.strip())
        except ValueError:
            raise TimestampParseError(original, f"non-numeric field {field_value!r}") from None
    raise TimestampParseError(original, "seconds/nanos must be numeric")


def _finite(seconds: float, original: Any) -> float:
    if not math.isfinite(seconds):
        raise TimestampParseError(original, "timestamp is not finite")
    return seconds
