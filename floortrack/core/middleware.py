# floortrack/core/middleware.py
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("floortrack.api")

REQUEST_ID_HEADER = "X-Request-ID"
PROCESS_TIME_HEADER = "X-Process-Time"

# Probed by load balancers, not worth a log line
UNLOGGED_PATHS = frozenset({"/", "/health"})


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Stamps each response with a request id and its duration in ms, and logs the request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # A caller-supplied id is kept so a request can be traced across services
        request.state.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        started = time.perf_counter()

        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request.state.request_id
        response.headers[PROCESS_TIME_HEADER] = str(elapsed_ms)
        if request.url.path not in UNLOGGED_PATHS:
            self._log(request, response.status_code, elapsed_ms)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, elapsed_ms: float):
        logger.info(
            "%s %s -> %s", request.method, request.url.path, status_code,
            extra={"request_id": request.state.request_id, "http_method": request.method,
                   "http_path": request.url.path, "http_status": status_code, "duration_ms": elapsed_ms},
        )
