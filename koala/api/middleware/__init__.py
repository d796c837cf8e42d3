# =============================================================================
# MIDDLEWARE MODULE INITIALIZATION
# =============================================================================
# File: koala/api/middleware/__init__.py
# Description: Built-in middleware exports
# =============================================================================

from koala.api.middleware.recovery import (
    PanicRecoverMiddleware,
    JSONContentTypeMiddleware,
)
from koala.api.middleware.auth_middleware import (
    JWTAuthMiddleware,
    LoggingMiddleware,
)

__all__ = [
    "PanicRecoverMiddleware",
    "JSONContentTypeMiddleware",
    "JWTAuthMiddleware",
    "LoggingMiddleware",
]
