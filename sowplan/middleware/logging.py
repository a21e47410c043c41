"""Structured JSON logging with request ID propagation.

Request log lines carry the matched schedule operation and, when a route
recorded one on ``request.state``, the plant being planned.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from sowplan.config import LogFormat, get_settings

_configured = False


def configure_structured_logging() -> None:
	"""Route stdlib and structlog output through one renderer, once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer()
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		renderer = structlog.dev.ConsoleRenderer()
		logging.basicConfig(level=log_level)

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def _schedule_fields(request: Request, started: float) -> dict[str, Any]:
	route = request.scope.get("route")
	return {
		"method": request.method,
		"path": request.url.path,
		"operation": getattr(route, "name", None),
		"plant": getattr(request.state, "plant", None),
		"duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
	}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Tag each request with an ID and log one line per planning call."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)

		logger = structlog.get_logger("sowplan.request")
		started = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception("schedule_request_failed", error=str(exc), **_schedule_fields(request, started))
			raise

		response.headers["x-request-id"] = request_id
		logger.info("schedule_request", status_code=response.status_code, **_schedule_fields(request, started))
		return response
