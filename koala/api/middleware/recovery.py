# =============================================================================
# KOALA WEB TOOLKIT - RECOVERY AND CONTENT TYPE MIDDLEWARES
# =============================================================================
# File: koala/api/middleware/recovery.py
# Description: Unhandled error recovery and JSON content type enforcement
# =============================================================================

import logging
import traceback
from typing import Callable, Dict, Tuple

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp

from koala.core.context import SUPPRESS_ERROR_SCOPE_KEY


logger = logging.getLogger(__name__)

BAD_CONTENT_TYPE_MESSAGE = "Bad Content-Type or charset, expected 'application/json' and 'UTF-8'."


def parse_media_type(value: str) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type header into media type and parameters.

    Example:
        >>> parse_media_type("application/json; charset=utf-8")
        ('application/json', {'charset': 'utf-8'})
    """
    parts = value.split(";")
    media_type = parts[0].strip().lower()

    params = {}
    for part in parts[1:]:
        name, sep, param = part.partition("=")
        if sep:
            params[name.strip().lower()] = param.strip().strip('"')

    return media_type, params


class PanicRecoverMiddleware(BaseHTTPMiddleware):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    PANIC RECOVER MIDDLEWARE                              │
    │  Turns unhandled errors of inner middlewares into a 500 response        │
    └─────────────────────────────────────────────────────────────────────────┘

    The response body is the traceback, unless errors are suppressed by
    the middleware option or by the router setting.

    Usage:
        manager.add("recover", functools.partial(PanicRecoverMiddleware, suppress_error=True))
    """

    def __init__(self, app: ASGIApp, suppress_error: bool = False):
        super().__init__(app)
        self.suppress_error = suppress_error

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"{request.method} {request.url.path} - recovered - {e}")

            suppress = self.suppress_error or request.scope.get(SUPPRESS_ERROR_SCOPE_KEY, False)
            body = "" if suppress else traceback.format_exc()
            return PlainTextResponse(body, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class JSONContentTypeMiddleware(BaseHTTPMiddleware):
    """
    Rejects request bodies that are not UTF-8 JSON.

    A missing charset is read as UTF-8. Requests without a body pass.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        media_type, params = parse_media_type(request.headers.get("content-type", ""))
        charset = params.get("charset", "UTF-8")

        if _content_length(request) > 0 and not (
            media_type == "application/json" and charset.upper() == "UTF-8"
        ):
            return PlainTextResponse(
                BAD_CONTENT_TYPE_MESSAGE,
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            )

        return await call_next(request)


def _content_length(request: Request) -> int:
    try:
        return int(request.headers.get("content-length", "0"))
    except ValueError:
        return 0
