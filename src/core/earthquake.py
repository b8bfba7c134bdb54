"""Earthquake data models and parsing - Pure functions.

This module normalizes the USGS GeoJSON summary feed into typed
Earthquake records. All functions are pure with no side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


class FeedError(Exception):
    """Base error for a feed that could not be turned into a snapshot."""


class FeedFormatError(FeedError):
    """Raised when the feed payload does not look like a FeatureCollection."""


@dataclass(frozen=True)
class Earthquake:
    """Immutable earthquake record.

    Attributes:
        id: USGS event ID (unique within one feed response)
        magnitude: Earthquake magnitude, always > 0
        place: Human-readable location description
        time: Event timestamp (UTC, whole seconds)
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        depth_km: Depth in kilometers
        url: USGS event detail URL (may be empty)
        alert: PAGER alert level, empty when no alert was issued
    """
    id: str
    magnitude: float
    place: str
    time: datetime
    latitude: float
    longitude: float
    depth_km: float
    url: str = ""
    alert: str = ""


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_earthquake(feature: dict[str, Any]) -> Earthquake | None:
    """Parse a single GeoJSON feature into an Earthquake.

    Pure function: takes raw dict, returns typed Earthquake or None if the
    feature is unusable (missing/non-positive magnitude, missing time,
    coordinates that are not a longitude/latitude/depth triple).

    Args:
        feature: GeoJSON feature dict from the USGS feed

    Returns:
        Earthquake object or None if the feature should be skipped
    """
    try:
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        if len(coords) != 3:
            return None

        magnitude = props.get("mag")
        if magnitude is None or isinstance(magnitude, bool):
            return None
        magnitude = float(magnitude)
        if not magnitude > 0:
            return None

        # USGS uses milliseconds since epoch; sub-second precision is dropped
        time_ms = props.get("time")
        if time_ms is None or isinstance(time_ms, bool):
            return None
        event_time = datetime.fromtimestamp(int(time_ms) // 1000, tz=timezone.utc)

        longitude, latitude, depth = (float(c) for c in coords)

        return Earthquake(
            id=_text(feature.get("id")),
            magnitude=magnitude,
            place=_text(props.get("place")),
            time=event_time,
            latitude=latitude,
            longitude=longitude,
            depth_km=depth,
            url=_text(props.get("url")),
            alert=_text(props.get("alert")),
        )
    except (AttributeError, TypeError, ValueError, OverflowError, OSError):
        return None


def parse_earthquakes(geojson: Any) -> list[Earthquake]:
    """Parse a USGS GeoJSON FeatureCollection into Earthquakes.

    Invalid features are skipped individually; upstream order is kept.

    Args:
        geojson: Decoded JSON body of the feed

    Returns:
        List of valid Earthquake objects

    Raises:
        FeedFormatError: If the payload has no ``features`` list
    """
    if not isinstance(geojson, dict):
        raise FeedFormatError(
            f"Expected a JSON object, got {type(geojson).__name__}"
        )

    features = geojson.get("features")
    if not isinstance(features, list):
        raise FeedFormatError("Feed payload has no 'features' list")

    earthquakes = []
    for feature in features:
        if not isinstance(feature, dict):
            continue
        earthquake = parse_earthquake(feature)
        if earthquake is not None:
            earthquakes.append(earthquake)

    return earthquakes
