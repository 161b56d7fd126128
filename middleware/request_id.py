"""
Request ID middleware for request correlation.

Every request gets an ID, taken from the X-Request-ID header when the
device sends one and generated otherwise. The ID is echoed back in the
response, attached to structured error bodies and stamped on every log
line written while the request is being handled.
"""

import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for storing request_id across async contexts
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Header name for request ID
REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that generates or extracts a request ID for each request.

    The request ID is stored in request.state (for error handlers) and in
    request_id_var (for logging), and added to the response headers.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Reset the context variable to avoid leaking between requests
            request_id_var.reset(token)
