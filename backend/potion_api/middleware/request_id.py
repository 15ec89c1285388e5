"""
Potion API — Request ID Middleware
===================================

What:  Assigns an id to each incoming request and echoes it in the response.
Why:   Every log line and every error body of one request share that id.
How:   Stores the id in a ContextVar (coroutine-local) and in request.state,
       and sets the X-Request-ID response header.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Use the client's X-Request-ID header when present, otherwise generate a
    short (8 character) UUID prefix. Client values are cut to
    MAX_REQUEST_ID_LENGTH characters before they reach headers and logs.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        rid = rid[:MAX_REQUEST_ID_LENGTH]
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
