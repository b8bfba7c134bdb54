"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Earthquake feed normalization
- Snapshot values
- Payload formatting
- Tick scheduling arithmetic
- Configuration validation

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import (
    Earthquake,
    FeedError,
    FeedFormatError,
    parse_earthquake,
    parse_earthquakes,
)
from src.core.snapshot import NEVER_UPDATED, Snapshot
from src.core.formatter import (
    encode_sse_event,
    format_earthquake,
    format_earthquakes_response,
    format_stream_payload,
)
from src.core.schedule import next_deadline
from src.core.config import Config, ConfigError, validate_config

__all__ = [
    # Earthquake
    "Earthquake",
    "FeedError",
    "FeedFormatError",
    "parse_earthquake",
    "parse_earthquakes",
    # Snapshot
    "NEVER_UPDATED",
    "Snapshot",
    # Formatter
    "encode_sse_event",
    "format_earthquake",
    "format_earthquakes_response",
    "format_stream_payload",
    # Schedule
    "next_deadline",
    # Config
    "Config",
    "ConfigError",
    "validate_config",
]
