"""FastAPI application exposing the pose mirror over REST.

Endpoints:
- GET /state, /score, /overlay, /preview: what the display shows
- POST /controls/*: the four input triggers
- GET /debug/metrics: pacing, estimator and mirror counters
- GET /config: effective configuration

The lifespan starts the shared pose session and stops it on shutdown.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from posemirror.api.routers.config_router import router as config_router
from posemirror.api.routers.controls import router as controls_router
from posemirror.api.routers.debug import router as debug_router
from posemirror.api.routers.pose import router as pose_router
from posemirror.api.routers.pose import session
from posemirror.core.config import get_settings
from posemirror.core.logging_config import add_file_sink

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure file logging
    logs_dir = Path(settings.log_dir) if settings.log_dir else Path(__file__).resolve().parent.parent / "data" / "logs"
    sink_id = add_file_sink(logs_dir, settings.log_level)
    session.start()
    yield
    # Shutdown: stop threads before the process exits
    try:
        session.stop()
    except Exception as exc:  # pragma: no cover
        logger.warning("Error stopping pose session: {}", exc)
    logger.remove(sink_id)


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict:
    """Return API health status."""

    return {"status": "ok"}


# Routers
app.include_router(pose_router, prefix="", tags=["pose"])
app.include_router(controls_router, prefix="", tags=["controls"])
app.include_router(debug_router, prefix="", tags=["debug"])
app.include_router(config_router, prefix="", tags=["config"])
