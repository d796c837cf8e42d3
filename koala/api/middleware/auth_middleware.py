# =============================================================================
# KOALA WEB TOOLKIT - AUTH MIDDLEWARE
# =============================================================================
# File: koala/api/middleware/auth_middleware.py
# Description: JWT authentication and route request logging middlewares
# =============================================================================

import logging
import time
from typing import Callable, Optional

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from koala.api.errors import new_error_message
from koala.auth import token as token_context
from koala.auth.jwt import JWT, claims_to_context
from koala.auth.schemas import Token
from koala.core.context import ROUTE_SCOPE_KEY
from koala.core.exceptions import NotAuthorizedError
from koala.session.manager import AuthTokenStore


logger = logging.getLogger(__name__)


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    JWT AUTHENTICATION MIDDLEWARE                         │
    │  Validates bearer tokens and puts token and claims in the context       │
    └─────────────────────────────────────────────────────────────────────────┘

    This middleware:
        1. Extracts the Bearer token from the Authorization header
        2. Falls back to the token of the ``sid`` session cookie
        3. Validates the JWT signature and expiration
        4. Adds the token and its claims to the request context

    Requests without a valid token get a 401 JSON error.

    Usage:
        manager.add_silent("auth", functools.partial(
            JWTAuthMiddleware,
            jwt=JWT(config.jwt),
            token_store=AuthTokenStore(CookieStore(config.session.secret)),
        ))
    """

    def __init__(
        self,
        app: ASGIApp,
        jwt: JWT,
        token_store: Optional[AuthTokenStore] = None,
    ):
        super().__init__(app)
        self.jwt = jwt
        self.token_store = token_store

    async def get_token(self, request: Request) -> Optional[Token]:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return Token(auth_header[7:])

        if self.token_store is not None:
            return await self.token_store.get(request)

        return None

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        token = await self.get_token(request)

        if token is None or not token.value:
            return self._unauthorized("Authentication token is required.")

        try:
            claims = self.jwt.decode_token(token.value)
        except NotAuthorizedError as e:
            logger.debug(f"Token validation failed: {e}")
            return self._unauthorized(e.message)

        claims_to_context(request, claims)
        token_context.to_context(request, token)

        return await call_next(request)

    def _unauthorized(self, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=new_error_message(message).model_dump(),
        )


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its route token, status and duration.

    Example:
        users.detail - GET /users/7 - 200 - 1.52ms
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        start_time = time.perf_counter()
        route = request.scope.get(ROUTE_SCOPE_KEY, "-")
        line = f"{route} - {request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{line} - {_elapsed_ms(start_time)}ms - {e}")
            raise

        logger.info(f"{line} - {response.status_code} - {_elapsed_ms(start_time)}ms")
        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
