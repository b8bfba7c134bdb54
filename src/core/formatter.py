"""Payload formatting - Pure functions.

This module turns snapshots into the JSON payloads served by the pull
endpoint, the server-sent event stream and the health check.
All functions are pure with no side effects.
"""

import json
from datetime import datetime
from typing import Any

from src.core.earthquake import Earthquake
from src.core.snapshot import Snapshot


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as ISO 8601.

    Pure function.
    """
    return value.isoformat()


def format_earthquake(earthquake: Earthquake) -> dict[str, Any]:
    """Format an earthquake as its JSON wire representation.

    Pure function.

    Args:
        earthquake: Earthquake to format

    Returns:
        Dict with id, magnitude, place, time, latitude, longitude,
        depth, url and alert
    """
    return {
        "id": earthquake.id,
        "magnitude": earthquake.magnitude,
        "place": earthquake.place,
        "time": format_timestamp(earthquake.time),
        "latitude": earthquake.latitude,
        "longitude": earthquake.longitude,
        "depth": earthquake.depth_km,
        "url": earthquake.url,
        "alert": earthquake.alert,
    }


def format_earthquakes_response(snapshot: Snapshot) -> dict[str, Any]:
    """Format a snapshot for the pull endpoint.

    Pure function.

    Args:
        snapshot: Snapshot to serve

    Returns:
        Dict with earthquakes, count and lastUpdate (the snapshot's updated_at)
    """
    return {
        "earthquakes": [format_earthquake(e) for e in snapshot.earthquakes],
        "count": snapshot.count,
        "lastUpdate": format_timestamp(snapshot.updated_at),
    }


def format_stream_payload(snapshot: Snapshot, emitted_at: datetime) -> dict[str, Any]:
    """Format a snapshot for one event of the push stream.

    Pure function. ``timestamp`` is the emission time, not updated_at.
    """
    return {
        "earthquakes": [format_earthquake(e) for e in snapshot.earthquakes],
        "count": snapshot.count,
        "timestamp": format_timestamp(emitted_at),
    }


def encode_sse_event(payload: dict[str, Any]) -> bytes:
    """Encode a payload as a single server-sent event frame.

    Pure function. Compact JSON never contains a raw newline, so the whole
    payload fits on one ``data:`` line.

    Args:
        payload: JSON-serializable payload

    Returns:
        UTF-8 bytes of ``data: <json>\\n\\n``
    """
    data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return f"data: {data}\n\n".encode("utf-8")
