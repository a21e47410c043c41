"""FastAPI application entrypoint — lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sowplan.config import get_settings
from sowplan.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from sowplan.routes import schedules

logger = logging.getLogger("sowplan")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging on startup; the scheduling kernel holds no resources."""
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "sowplan starting",
        extra={
            "log_level": settings.log_level,
            "default_harvest_window_days": settings.default_harvest_window_days,
            "default_spring_frost_risk": settings.default_spring_frost_risk.value,
        },
    )
    yield
    logger.info("sowplan shutting down")


app = FastAPI(
    title="Sowplan API",
    description=(
        "Climate-driven planting and harvest scheduling — growing-degree-day "
        "maturity, frost/cooling/soil gates, succession planting and "
        "yield-weighted plant allocation."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "sowplan",
        "version": "0.1.0",
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(schedules.router, prefix="/api/v1")
