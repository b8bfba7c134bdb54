"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field
from urllib.parse import urlparse


# USGS summary feed: all earthquakes in the past hour
USGS_ALL_HOUR_FEED = (
    "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_hour.geojson"
)


class ConfigError(Exception):
    """Raised when a configuration fails validation."""


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        feed_url: GeoJSON summary feed to poll
        refresh_interval_seconds: How often the feed is fetched
        broadcast_interval_seconds: How often stream subscribers get a snapshot
        fetch_timeout_seconds: Upper bound for a single feed request
        subscriber_queue_size: Pending events a subscriber may hold before
            it is dropped as too slow
        stale_after_seconds: Age after which the snapshot is reported stale
            (None for three refresh intervals)
        cors_allowed_origins: Origins allowed by the CORS middleware
    """
    feed_url: str = USGS_ALL_HOUR_FEED
    refresh_interval_seconds: float = 30.0
    broadcast_interval_seconds: float = 5.0
    fetch_timeout_seconds: float = 10.0
    subscriber_queue_size: int = 8
    stale_after_seconds: float | None = None
    cors_allowed_origins: list[str] = field(default_factory=lambda: ["*"])

    @property
    def stale_threshold_seconds(self) -> float:
        """Effective staleness threshold."""
        if self.stale_after_seconds is not None:
            return self.stale_after_seconds
        return 3 * self.refresh_interval_seconds


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_positive(value: float, field_name: str) -> list[ValidationError]:
    """Validate that a numeric setting is strictly positive.

    Pure function.
    """
    if value <= 0:
        return [ValidationError(
            field=field_name,
            message=f"Must be positive, got {value}",
        )]
    return []


def validate_feed_url(url: str) -> list[ValidationError]:
    """Validate the feed URL is an absolute http(s) URL.

    Pure function.
    """
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return [ValidationError(
            field="feed_url",
            message=f"Feed URL must be an absolute http(s) URL, got '{url}'",
        )]
    return []


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_feed_url(config.feed_url))
    errors.extend(validate_positive(
        config.refresh_interval_seconds, "refresh_interval_seconds",
    ))
    errors.extend(validate_positive(
        config.broadcast_interval_seconds, "broadcast_interval_seconds",
    ))
    errors.extend(validate_positive(
        config.fetch_timeout_seconds, "fetch_timeout_seconds",
    ))

    if config.subscriber_queue_size < 1:
        errors.append(ValidationError(
            field="subscriber_queue_size",
            message=f"Queue size must be at least 1, got {config.subscriber_queue_size}",
        ))

    if config.stale_after_seconds is not None:
        errors.extend(validate_positive(
            config.stale_after_seconds, "stale_after_seconds",
        ))

    # A fetch that can outlive its interval means ticks will be skipped
    if 0 < config.refresh_interval_seconds <= config.fetch_timeout_seconds:
        errors.append(ValidationError(
            field="fetch_timeout_seconds",
            message=(
                f"Fetch timeout ({config.fetch_timeout_seconds}s) is not shorter "
                f"than the refresh interval ({config.refresh_interval_seconds}s)"
            ),
            severity="warning",
        ))

    if not config.cors_allowed_origins:
        errors.append(ValidationError(
            field="cors_allowed_origins",
            message="No CORS origins configured; browsers on other origins will be blocked",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
