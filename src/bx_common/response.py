"""JSON envelope shared by every endpoint.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "<UTC ISO8601>", "request_id": "req_<12 hex>"}

code is 0 on success and the AppError code otherwise; data is null on error.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.bx_common.datetime_utils import utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _bind(resp: ApiResponse, request: Request | None) -> ApiResponse:
    # RequestLogMiddleware stores the id it logs and echoes in X-Request-ID
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return _bind(ApiResponse(data=data), request)


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return _bind(ApiResponse(code=code, message=message), request)
