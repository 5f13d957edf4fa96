"""
Daily Tracker Backend — Request ID Middleware
===============================================

What:  Tags each request with a short correlation id.
Why:   Lets every log line and error body from one request be matched up,
       and lets the frontend quote the id in bug reports.
How:   Reuses the client's X-Request-ID header when present, otherwise
       generates an 8-character id. The id is stored in a ContextVar (read
       by the access log and the error handlers) and echoed back in the
       X-Request-ID response header.
When:  Runs before every other app middleware except CORS.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Why ContextVar: concurrent requests share one thread; each coroutine
# context sees its own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
