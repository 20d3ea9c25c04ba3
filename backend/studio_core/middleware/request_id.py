# backend/studio_core/middleware/request_id.py
"""
Request id propagation.

Takes ``X-Request-ID`` from the caller (or mints a ULID), binds it to the
logging context for the lifetime of the request and echoes it back.
"""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.request_context import reset_request_id, set_request_id
from ..core.ulid_helper import generate_ulid

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_ulid()
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
