# =============================================================================
# KOALA WEB TOOLKIT - TOKEN SERVICE
# =============================================================================
# File: koala/auth/token.py
# Description: Bearer tokens generated for authenticated users
# =============================================================================

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any

from koala.auth.jwt import JWT, claims_from_context
from koala.auth.schemas import Token, UserDetails
from koala.auth.service import AuthService
from koala.core import context
from koala.core.config import JwtConfig
from koala.core.context import ContextHolder
from koala.core.exceptions import IllegalStateError, NotFoundError


logger = logging.getLogger(__name__)

TOKEN_CONTEXT_KEY = "koala.token.0"


class TokenService(ABC):
    """Generates tokens for user details."""

    @abstractmethod
    def generate_token(self, details: UserDetails) -> Token:
        """Generate a token for a user."""


class JwtTokenService(TokenService):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    JWT TOKEN SERVICE                                     │
    │  Authenticates with an AuthService and signs a JWT for the user         │
    └─────────────────────────────────────────────────────────────────────────┘

    Token Claims:
        - exp: now + JwtConfig.exp hours
        - iat: now
        - jti: username
        - sub: username
    """

    def __init__(
        self,
        auth_service: AuthService,
        jwt_config: JwtConfig,
        algorithm: str = "HS256",
    ):
        self.auth_service = auth_service
        self.jwt_config = jwt_config
        self.algorithm = algorithm
        self._jwt = JWT(jwt_config, algorithm)

    async def authenticate(self, username: str, password: str) -> Token:
        """
        Authenticate via the auth service and generate a token.

        Raises:
            NotAuthorizedError: If the credentials are not accepted
        """
        user = await self.auth_service.authenticate(username, password)
        return self.generate_token(user)

    def generate_token(self, details: UserDetails) -> Token:
        now = datetime.now(timezone.utc)
        claims = {
            "exp": now + timedelta(hours=self.jwt_config.exp),
            "iat": now,
            "jti": details.username,
            "sub": details.username,
        }

        logger.debug(f"Generating token for {details.username}")
        return self._jwt.generate_token(claims)


def get_jwt_claims(request: ContextHolder, key: str) -> Any:
    """
    Get a claim of the request JWT.

    Raises:
        IllegalStateError: If there are no claims in the context
        NotFoundError: If the claim is not in the token
    """
    claims = claims_from_context(request)
    if key not in claims:
        raise NotFoundError(f"JWT Claims with key {key} not found.")
    return claims[key]


def to_context(request: ContextHolder, token: Token) -> None:
    context.add(request, TOKEN_CONTEXT_KEY, token)


def from_context(request: ContextHolder) -> Token:
    """
    Get the token from the request context.

    Raises:
        IllegalStateError: If there is no token in the context
    """
    token = context.get(request, TOKEN_CONTEXT_KEY)
    if not isinstance(token, Token):
        raise IllegalStateError("The token into context is not a Token instance.")
    return token
