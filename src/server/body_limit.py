"""ASGI middleware rejecting oversized webhook requests before they are read."""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """Answers 413 when the declared Content-Length exceeds ``max_bytes``.

    Requests without a Content-Length (chunked uploads) pass through; the
    route re-checks the size of the body it actually read.
    """

    def __init__(self, app: ASGIApp, max_bytes: int) -> None:
        self.app = app
        self._max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_bytes:
            logger.warning(
                "Rejected %s %s: body of %s bytes exceeds %d",
                request.method, request.url.path, declared, self._max_bytes,
            )
            response = JSONResponse({"error": "Request body too large"}, status_code=413)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)
