"""Structured logging setup and per-request timing middleware."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from cropguard.config import LogFormat, Settings, get_settings

SERVICE_NAME = "cropguard"

_configured = False
_QUIET_PATHS = ("/health", "/docs", "/redoc", "/openapi")


def _add_service_name(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", SERVICE_NAME)
	return event_dict


def _renderer(log_format: LogFormat) -> Any:
	if log_format == LogFormat.json:
		return structlog.processors.JSONRenderer(sort_keys=True)
	return structlog.dev.ConsoleRenderer(colors=False)


def configure_structured_logging(settings: Settings | None = None, force: bool = False) -> None:
	"""Configure stdlib + structlog once per process (``force`` reconfigures)."""
	global _configured
	if _configured and not force:
		return

	settings = settings or get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(level=log_level, format="%(message)s", force=force)

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			_add_service_name,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.StackInfoRenderer(),
			structlog.processors.format_exc_info,
			_renderer(settings.log_format),
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def get_logger(component: str) -> Any:
	"""Return a structlog logger namespaced under ``cropguard.<component>``."""
	return structlog.get_logger(f"{SERVICE_NAME}.{component}", component=component)


def _elapsed_ms(start: float) -> float:
	return round((time.perf_counter() - start) * 1000.0, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id to the log context and log engine call timings.

	Health and documentation paths are served without a timing line.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

		logger = get_logger("request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception("engine_request_failed", method=request.method, duration_ms=_elapsed_ms(start), error=str(exc))
			raise

		response.headers["x-request-id"] = request_id
		if request.url.path.startswith(_QUIET_PATHS):
			return response

		log = logger.warning if response.status_code >= 500 else logger.info
		log(
			"engine_request",
			method=request.method,
			status_code=response.status_code,
			duration_ms=_elapsed_ms(start),
		)
		return response
