import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response

from .config import settings
from .metrics import inc_http_request, observe_latency_ms


logger = logging.getLogger("app")
logger.setLevel(settings.LOG_LEVEL)
handler = logging.StreamHandler()
handler.setLevel(settings.LOG_LEVEL)
logger.addHandler(handler)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def route_label(request: Request) -> str:
    # route template, so ids in the path don't become separate series
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return route.path
    if request.method == "OPTIONS":
        return "preflight"
    return "unmatched"


def _request_line(request: Request, level: str, status: int, started: float) -> dict:
    return {
        "ts": iso_now(),
        "level": level,
        "request_id": request.state.request_id,
        "method": request.method,
        "path": request.url.path,
        "route": route_label(request),
        "status": status,
        "latency_ms": round((time.perf_counter() - started) * 1000.0, 2),
    }


async def logging_middleware(request: Request, call_next: Callable) -> Response:
    """One JSON log line per request, errors included."""
    started = time.perf_counter()

    # handlers read these through request.state
    request.state.request_id = str(uuid.uuid4())
    request.state.log_extra = {}

    try:
        response = await call_next(request)
    except Exception:
        logger.error(json.dumps(_request_line(request, "error", 500, started)))
        raise

    line = _request_line(request, "info", response.status_code, started)
    inc_http_request(line["route"], response.status_code)
    observe_latency_ms(line["latency_ms"])

    if isinstance(getattr(request.state, "log_extra", None), dict):
        line.update(request.state.log_extra)

    logger.info(json.dumps(line))
    return response
