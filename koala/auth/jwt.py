# =============================================================================
# KOALA WEB TOOLKIT - JWT
# =============================================================================
# File: koala/auth/jwt.py
# Description: JWT signing and verification on top of python-jose
# =============================================================================

import logging
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt

from koala.auth.schemas import Token
from koala.core import context
from koala.core.config import JwtConfig
from koala.core.context import ContextHolder
from koala.core.exceptions import IllegalStateError, NotAuthorizedError


logger = logging.getLogger(__name__)

CLAIMS_CONTEXT_KEY = "koala.jwt.claims.0"


class JWT:
    """
    Signs claims into tokens and verifies them back.

    Usage:
        jwt_service = JWT(JwtConfig(exp=1, secret="secret"))
        token = jwt_service.generate_token({"sub": "koala"})
        claims = jwt_service.decode_token(token.value)
    """

    def __init__(self, config: JwtConfig, algorithm: str = "HS256"):
        self.config = config
        self.algorithm = algorithm

    def generate_token(self, claims: Dict[str, Any]) -> Token:
        return Token(jwt.encode(claims, self.config.secret, algorithm=self.algorithm))

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims.

        Raises:
            NotAuthorizedError: If the token has expired or is invalid
        """
        try:
            return jwt.decode(token, self.config.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise NotAuthorizedError("Token has expired.") from e
        except JWTError as e:
            raise NotAuthorizedError("Invalid token.", details={"error": str(e)}) from e


def claims_to_context(request: ContextHolder, claims: Dict[str, Any]) -> None:
    context.add(request, CLAIMS_CONTEXT_KEY, claims)


def claims_from_context(request: ContextHolder) -> Dict[str, Any]:
    """
    Get the JWT claims from the request context.

    Raises:
        IllegalStateError: If there are no claims in the context
    """
    claims = context.get(request, CLAIMS_CONTEXT_KEY)
    if not isinstance(claims, dict):
        raise IllegalStateError("The claims in the context is not a dict instance.")
    return claims
