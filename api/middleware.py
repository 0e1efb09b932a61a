"""Request id middleware: one id per request, echoed in X-Request-ID."""

import re
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"

# Ids forwarded by a proxy are trusted only if they look like ids
_FORWARDED_ID = re.compile(r"^[A-Za-z0-9._-]{8,64}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Sets request.state.request_id for handlers and the response envelope.

    Reuses a well-formed incoming X-Request-ID, otherwise generates a UUID.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _FORWARDED_ID.match(incoming) else str(uuid4())

        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
