"""Middleware that assigns and propagates a request identifier.

Every incoming HTTP request receives a request identifier. The value is
read from the incoming ``X-Request-ID`` header when the client provides
one, or generated server-side otherwise. The id is stored on
``request.state`` and in a context variable so code running downstream
(the booking workflows, log filters) can reach it without passing it
explicitly.

Behavior contract:
- If the incoming request carries ``X-Request-ID``, that value is reused.
- Otherwise a new UUIDv4 is generated.
- The response includes the same id in the ``X-Request-ID`` header.
- One structured "request handled" record is logged per request.
"""

import contextvars
import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("courier.http")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Set a per-request identifier and echo it on the response.

    Attributes:
        HEADER (str): Incoming header that may carry a client-provided id.
        RESPONSE_HEADER (str): Header added to outgoing responses.
    """

    HEADER = "X-Request-ID"
    RESPONSE_HEADER = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get(self.HEADER) or str(uuid.uuid4())
        request.state.request_id = rid
        token = REQUEST_ID_CTX.set(rid)
        try:
            response = await call_next(request)
        finally:
            logger.info(
                "request handled",
                extra={"path": request.url.path, "method": request.method},
            )
            REQUEST_ID_CTX.reset(token)
        response.headers[self.RESPONSE_HEADER] = rid
        return response
