"""Shared utilities for the interaction analysis system."""

from .config_loader import load_config, get_nested_config
from .time_utils import TimestampParseError, parse_time, parse_optional_time

__all__ = [
    'load_config',
    'get_nested_config',
    'TimestampParseError',
    'parse_time',
    'parse_optional_time',
]
