"""FastAPI middleware for request tracing and metrics"""

import re
import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from statement_analyzer.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"
# Accepted caller-supplied ids; anything else gets a fresh uuid
REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def resolve_request_id(incoming: str | None) -> str:
    if incoming and REQUEST_ID_PATTERN.fullmatch(incoming):
        return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate the caller's request id (or mint one) so frontend and service logs line up"""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Record HTTP latency per route template.

    Unmatched paths share one "unmatched" label. Requests that raise are
    recorded as 500.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            request_duration_histogram.labels(
                method=request.method,
                endpoint=getattr(route, "path", "unmatched"),
                status=status,
            ).observe(time.time() - start_time)
