"""Request logging + correlation middleware.

Stamps each request with a short request id (reusing an inbound X-Request-ID
when the UI supplies one), exposes it on request.state for ApiResponse and
echoes it back in the X-Request-ID header. Write endpoints block on ledger
finality, so latency is logged for every request and 5xx are raised to
WARNING.

Log format:
    INFO [POST] /api/v1/markets/0xabc/positions → 200 (2310ms) req_a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("pm.request")

_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        inbound = request.headers.get(_HEADER, "").strip()
        request_id = inbound[:64] if inbound else f"req_{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[_HEADER] = request_id
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
