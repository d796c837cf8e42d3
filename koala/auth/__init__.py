# =============================================================================
# AUTH MODULE INITIALIZATION
# =============================================================================
# File: koala/auth/__init__.py
# Description: Authentication services, JWT and token exports
# =============================================================================

from koala.auth.schemas import UserDetails, Token
from koala.auth.service import (
    UserDetailsService,
    AuthService,
    DefaultService,
    new_default_service,
)
from koala.auth.jwt import JWT, claims_to_context, claims_from_context
from koala.auth.token import TokenService, JwtTokenService, get_jwt_claims

__all__ = [
    # Schemas
    "UserDetails",
    "Token",

    # Services
    "UserDetailsService",
    "AuthService",
    "DefaultService",
    "new_default_service",

    # Tokens
    "JWT",
    "claims_to_context",
    "claims_from_context",
    "TokenService",
    "JwtTokenService",
    "get_jwt_claims",
]
