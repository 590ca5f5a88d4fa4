"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency and a
short request id. The id is stored on request.state (routers copy it into
ApiResponse.request_id) and echoed back in the X-Request-ID header.

Log format:
    INFO [POST] /api/v1/exchanges -> 200 (23ms) req_a1b2c3d4e5f6

5xx responses are logged at WARNING, unhandled exceptions at ERROR.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bx_common.response import new_request_id

logger = logging.getLogger("bx.request")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s -> unhandled error %s", request.method, request.url.path, request_id
            )
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s -> %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
