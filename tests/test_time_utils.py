"""
Unit tests for timestamp parsing.
"""

import pytest # pyright: ignore[reportMissingImports]
from datetime import timedelta
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.time_utils import TimestampParseError, parse_time, parse_optional_time


class TestParseTimeStrings:
    """Test suffixed string timestamps."""

    def test_suffixed_seconds(self):
        assert parse_time("1.500s") == pytest.approx(1.5)

    def test_integer_string(self):
        assert parse_time("12s") == 12.0
        assert parse_time("3") == 3.0

    def test_surrounding_whitespace(self):
        assert parse_time(" 0.300s ") == pytest.approx(0.3)

    def test_invalid_string_raises(self):
        with pytest.raises(TimestampParseError):
            parse_time("1.5 seconds")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_time("abc")


class TestParseTimeStructured:
    """Test seconds/nanos and numeric timestamps."""

    def test_seconds_and_nanos(self):
        assert parse_time({"seconds": 4, "nanos": 500000000}) == pytest.approx(4.5)

    def test_string_fields(self):
        assert parse_time({"seconds": "2", "nanos": "250000000"}) == pytest.approx(2.25)

    def test_nanos_only(self):
        assert parse_time({"nanos": 100000000}) == pytest.approx(0.1)

    def test_empty_mapping_is_zero(self):
        assert parse_time({}) == 0.0

    def test_mapping_without_known_keys_raises(self):
        with pytest.raises(TimestampParseError):
            parse_time({"secs": 1})

    def test_numbers(self):
        assert parse_time(2) == 2.0
        assert parse_time(0.75) == 0.75

    def test_timedelta(self):
        assert parse_time(timedelta(seconds=1, milliseconds=500)) == pytest.approx(1.5)

    def test_duration_like_object(self):
        class Duration:
            seconds = 3
            nanos = 0

        assert parse_time(Duration()) == 3.0

    def test_bool_and_none_raise(self):
        with pytest.raises(TimestampParseError):
            parse_time(True)
        with pytest.raises(TimestampParseError):
            parse_time(None)

    def test_non_finite_raises(self):
        with pytest.raises(TimestampParseError):
            parse_time(float('nan'))

    def test_error_carries_value(self):
        with pytest.raises(TimestampParseError) as excinfo:
            parse_time([1, 2])
        assert excinfo.value.value == [1, 2]


class TestParseOptionalTime:
    """Test omitted timestamps."""

    def test_none_uses_default(self):
        assert parse_optional_time(None) == 0.0
        assert parse_optional_time(None, default=7.0) == 7.0

    def test_present_value_parsed(self):
        assert parse_optional_time("2s") == 2.0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
