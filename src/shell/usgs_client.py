"""USGS Feed Client - Imperative Shell.

This module handles HTTP communication with the USGS GeoJSON summary feed.
All I/O is contained here; normalization is in the core module.
"""

import logging
from typing import Any

import requests

from src.core.config import USGS_ALL_HOUR_FEED
from src.core.earthquake import FeedFormatError


logger = logging.getLogger(__name__)


# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 10


class USGSClient:
    """Client for fetching the USGS earthquake summary feed.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        feed_url: str = USGS_ALL_HOUR_FEED,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize USGS client.

        Args:
            feed_url: GeoJSON summary feed URL
            timeout: Request timeout in seconds (connect and read)
            session: Optional requests session for connection reuse
        """
        self.feed_url = feed_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_feed(self) -> dict[str, Any]:
        """Fetch one snapshot of the feed.

        This method performs HTTP I/O.

        Returns:
            Decoded GeoJSON FeatureCollection

        Raises:
            requests.RequestException: If the request fails or returns non-2xx
            FeedFormatError: If the body is not a JSON object
        """
        logger.debug("Fetching earthquake feed from %s", self.feed_url)

        response = self.session.get(
            self.feed_url,
            timeout=self.timeout,
            headers={"Accept": "application/geo+json, application/json"},
        )
        response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise FeedFormatError(f"Feed body is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise FeedFormatError(
                f"Expected a JSON object, got {type(data).__name__}"
            )

        metadata = data.get("metadata")
        count = metadata.get("count") if isinstance(metadata, dict) else None
        logger.debug("Feed returned %s features", count)

        return data

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()
