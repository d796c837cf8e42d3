# =============================================================================
# KOALA WEB TOOLKIT - SESSION MANAGER
# =============================================================================
# File: koala/session/manager.py
# Description: Named sessions and the auth token cookie
# =============================================================================

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from starlette.requests import HTTPConnection

from koala.auth.schemas import Token
from koala.session.models import SessionOptions, SessionState
from koala.session.storage import Store

if TYPE_CHECKING:
    from koala.api.http import Response


logger = logging.getLogger(__name__)

AUTH_COOKIE = "sid"
AUTH_COOKIE_MAX_AGE = 86400 * 7


class Session:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SESSION                                               │
    │  A named cookie session backed by a Store                               │
    └─────────────────────────────────────────────────────────────────────────┘

    Usage:
        session = Session("cart", CookieStore(config.session.secret))
        await session.save(request, response, {"items": [1, 2]})
        values = await session.get(request)
    """

    def __init__(self, name: str, store: Store, options: Optional[SessionOptions] = None):
        self.name = name
        self.store = store
        self.options = options

    async def start(self, request: HTTPConnection) -> SessionState:
        """Get the session state of the request, new if there is no cookie."""
        session = await self.store.get(request, self.name)
        if self.options is not None:
            session.options = self.options.model_copy()
        return session

    async def get(self, request: HTTPConnection) -> Dict[str, Any]:
        session = await self.start(request)
        return session.values

    async def save(
        self,
        request: HTTPConnection,
        response: "Response",
        values: Optional[Dict[str, Any]] = None,
    ) -> SessionState:
        """
        Replace the session values and write the session cookie.

        Args:
            request: Current request
            response: Response receiving the cookie
            values: New session values, an empty session when None
        """
        session = await self.start(request)
        session.values = dict(values or {})

        await self.store.save(request, response, session)
        return session

    async def clear(self, request: HTTPConnection, response: "Response") -> None:
        """Remove every value and expire the session cookie."""
        session = await self.start(request)
        session.values.clear()
        session.options.max_age = -1

        await self.store.save(request, response, session)
        logger.debug(f"Session {self.name} cleared")


class AuthTokenStore:
    """
    Keeps the auth token in the ``sid`` session cookie.

    The cookie is http-only, valid for 7 days on every path.
    """

    def __init__(self, store: Store):
        self.session = Session(
            AUTH_COOKIE,
            store,
            SessionOptions(path="/", max_age=AUTH_COOKIE_MAX_AGE, httponly=True),
        )

    async def save(self, request: HTTPConnection, response: "Response", token: Token) -> None:
        """Set the token key, other values of the session are kept."""
        values = await self.session.get(request)
        await self.session.save(request, response, {**values, "token": token.value})

    async def get(self, request: HTTPConnection) -> Optional[Token]:
        values = await self.session.get(request)
        value = values.get("token")
        if not isinstance(value, str) or not value:
            return None
        return Token(value)

    async def clear(self, request: HTTPConnection, response: "Response") -> None:
        await self.session.clear(request, response)
