"""Tests for configuration models and validation."""

from src.core.config import (
    Config,
    USGS_ALL_HOUR_FEED,
    ValidationError,
    ValidationResult,
    validate_config,
    validate_feed_url,
    validate_positive,
)


class TestConfigDefaults:
    """Tests for Config defaults."""

    def test_reference_intervals(self):
        config = Config()

        assert config.refresh_interval_seconds == 30.0
        assert config.broadcast_interval_seconds == 5.0
        assert config.feed_url == USGS_ALL_HOUR_FEED
        assert config.cors_allowed_origins == ["*"]

    def test_stale_threshold_defaults_to_three_refreshes(self):
        assert Config(refresh_interval_seconds=20).stale_threshold_seconds == 60

    def test_explicit_stale_threshold(self):
        assert Config(stale_after_seconds=15).stale_threshold_seconds == 15

    def test_defaults_are_valid(self):
        result = validate_config(Config())

        assert result.valid
        assert result.errors == []


class TestValidatePositive:
    def test_positive_passes(self):
        assert validate_positive(1.5, "x") == []

    def test_zero_fails(self):
        errors = validate_positive(0, "refresh_interval_seconds")

        assert len(errors) == 1
        assert errors[0].field == "refresh_interval_seconds"


class TestValidateFeedUrl:
    def test_https_url_passes(self):
        assert validate_feed_url(USGS_ALL_HOUR_FEED) == []

    def test_relative_url_fails(self):
        assert len(validate_feed_url("/feed.geojson")) == 1

    def test_non_http_scheme_fails(self):
        assert len(validate_feed_url("ftp://example.com/feed")) == 1

    def test_empty_url_fails(self):
        assert len(validate_feed_url("")) == 1


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_non_positive_intervals_are_errors(self):
        config = Config(refresh_interval_seconds=0, broadcast_interval_seconds=-1)

        result = validate_config(config)

        assert not result.valid
        fields = {e.field for e in result.critical_errors}
        assert "refresh_interval_seconds" in fields
        assert "broadcast_interval_seconds" in fields

    def test_queue_size_must_be_at_least_one(self):
        result = validate_config(Config(subscriber_queue_size=0))

        assert not result.valid
        assert result.critical_errors[0].field == "subscriber_queue_size"

    def test_timeout_longer_than_interval_warns(self):
        config = Config(refresh_interval_seconds=5, fetch_timeout_seconds=10)

        result = validate_config(config)

        assert result.valid
        assert [w.field for w in result.warnings] == ["fetch_timeout_seconds"]

    def test_no_cors_origins_warns(self):
        result = validate_config(Config(cors_allowed_origins=[]))

        assert result.valid
        assert len(result.warnings) == 1

    def test_invalid_stale_threshold(self):
        result = validate_config(Config(stale_after_seconds=0))

        assert not result.valid


class TestValidationResult:
    def test_splits_warnings_and_errors(self):
        result = ValidationResult(
            valid=False,
            errors=[
                ValidationError(field="a", message="bad"),
                ValidationError(field="b", message="meh", severity="warning"),
            ],
        )

        assert [e.field for e in result.critical_errors] == ["a"]
        assert [e.field for e in result.warnings] == ["b"]
