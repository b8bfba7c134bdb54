"""Earthquake Feed API - FastAPI service.

Serves the latest USGS earthquake snapshot two ways:
- GET /api/earthquakes returns the current snapshot as JSON
- GET /api/stream pushes the snapshot as server-sent events every
  broadcast interval

A single background refresher keeps the snapshot current; a broadcast hub
fans it out to stream subscribers.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from src.broadcast_hub import BroadcastHub
from src.core.config import Config
from src.query_service import QueryService
from src.refresher import FeedClient, Refresher
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.usgs_client import USGSClient
from src.snapshot_store import SnapshotStore


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ===== Response Models =====

class EarthquakeModel(BaseModel):
    id: str
    magnitude: float
    place: str
    time: str
    latitude: float
    longitude: float
    depth: float
    url: str
    alert: str


class EarthquakesResponse(BaseModel):
    earthquakes: list[EarthquakeModel]
    count: int
    lastUpdate: str


class HealthResponse(BaseModel):
    status: str
    lastUpdate: str
    ageSeconds: float | None
    stale: bool
    count: int
    subscribers: int
    consecutiveFailures: int
    lastError: str | None


# ===== Wiring =====

def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    return load_config_from_env()


def create_app(
    config: Config | None = None,
    feed_client: FeedClient | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        config: Application configuration (loaded from env if not provided)
        feed_client: Feed client (USGSClient if not provided)

    Returns:
        FastAPI app whose lifespan runs the refresher and broadcast hub
    """
    config = config or _get_config()
    owns_client = feed_client is None
    if owns_client:
        feed_client = USGSClient(
            feed_url=config.feed_url,
            timeout=config.fetch_timeout_seconds,
        )

    store = SnapshotStore()
    refresher = Refresher(
        store,
        feed_client,
        interval_seconds=config.refresh_interval_seconds,
        fetch_timeout_seconds=config.fetch_timeout_seconds,
    )
    hub = BroadcastHub(
        store,
        interval_seconds=config.broadcast_interval_seconds,
        queue_size=config.subscriber_queue_size,
    )
    queries = QueryService(store, stale_after_seconds=config.stale_threshold_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        result = await refresher.start()
        if not result.success:
            logger.warning("Initial refresh failed, serving empty snapshot")
        await hub.start()
        logger.info("Earthquake feed service started")
        try:
            yield
        finally:
            await hub.stop()
            await refresher.stop()
            if owns_client:
                feed_client.close()
            logger.info("Earthquake feed service stopped")

    app = FastAPI(
        title="Earthquake Feed API",
        description="Live USGS earthquake snapshot over JSON and server-sent events",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Accept", "Content-Type"],
        max_age=300,
    )

    app.state.config = config
    app.state.store = store
    app.state.refresher = refresher
    app.state.hub = hub
    app.state.queries = queries

    @app.get("/api/earthquakes", response_model=EarthquakesResponse)
    async def get_earthquakes():
        """Get the current earthquake snapshot."""
        return queries.snapshot_view().to_dict()

    @app.get("/api/stream")
    async def stream_earthquakes():
        """Stream the snapshot as server-sent events."""
        return StreamingResponse(
            hub.stream(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check with snapshot freshness."""
        return queries.health(refresher.status, hub.subscriber_count)

    return app


app = create_app()


# For local testing
if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", "8080"))
    logger.info("Earthquake Monitor running on http://localhost:%d", port)
    uvicorn.run(app, host="0.0.0.0", port=port)
