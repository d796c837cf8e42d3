# =============================================================================
# KOALA WEB TOOLKIT - ERROR RESPONSES
# =============================================================================
# File: koala/api/errors.py
# Description: JSON error bodies and the JSON error handler for routes
# =============================================================================

import logging
from typing import List

from pydantic import BaseModel, Field

from koala.api.http import Request, Response
from koala.api.router import HandlerFunc, call_handler
from koala.core.exceptions import KoalaError


logger = logging.getLogger(__name__)


class ErrorMessage(BaseModel):
    """Error body sent to clients: ``{"errors": [...]}``."""

    errors: List[str] = Field(default_factory=list)


def new_error_message(*messages: str) -> ErrorMessage:
    return ErrorMessage(errors=list(messages))


def json_error_handler(handler: HandlerFunc) -> HandlerFunc:
    """
    Error handler rendering client errors as JSON.

    Koala errors with a status code below 500 become an ``ErrorMessage``
    body with the error status. Any other error goes up to the router,
    which renders it as an Internal Server Error.

    Usage:
        router.set_error_handler(json_error_handler)
    """

    async def wrapper(response: Response, request: Request) -> Response:
        try:
            return await call_handler(handler, response, request)
        except KoalaError as e:
            if e.status_code >= 500:
                raise

            logger.debug(f"{request.method} {request.url.path} - {e.status_code} - {e.message}")
            response = Response()
            response.set_status(e.status_code)
            return response.json(new_error_message(*e.messages()))

    return wrapper
