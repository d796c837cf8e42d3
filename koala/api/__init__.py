# =============================================================================
# API MODULE INITIALIZATION
# =============================================================================
# File: koala/api/__init__.py
# Description: Router, HTTP wrappers, error bodies and middlewares
# =============================================================================

from koala.api.http import (
    Request,
    Response,
    RouteParams,
    Body,
    marshal_json,
    unmarshal_json,
    bad_request,
)
from koala.api.router import (
    Router,
    Route,
    Middleware,
    MiddlewareManager,
    MiddlewareMapper,
    convert_path,
)
from koala.api.errors import ErrorMessage, new_error_message, json_error_handler
from koala.api.middleware import (
    PanicRecoverMiddleware,
    JSONContentTypeMiddleware,
    JWTAuthMiddleware,
    LoggingMiddleware,
)

__all__ = [
    # HTTP
    "Request",
    "Response",
    "RouteParams",
    "Body",
    "marshal_json",
    "unmarshal_json",
    "bad_request",

    # Router
    "Router",
    "Route",
    "Middleware",
    "MiddlewareManager",
    "MiddlewareMapper",
    "convert_path",

    # Errors
    "ErrorMessage",
    "new_error_message",
    "json_error_handler",

    # Middlewares
    "PanicRecoverMiddleware",
    "JSONContentTypeMiddleware",
    "JWTAuthMiddleware",
    "LoggingMiddleware",
]
