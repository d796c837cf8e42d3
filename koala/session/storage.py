# =============================================================================
# KOALA WEB TOOLKIT - SESSION STORAGE
# =============================================================================
# File: koala/session/storage.py
# Description: Session stores keeping values in signed cookies or in Redis
# =============================================================================

import json
import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Optional

from jose import JWTError, jwt
from redis.asyncio import Redis
from starlette.requests import HTTPConnection

from koala.core import context
from koala.core.config import SessionConfig
from koala.core.exceptions import IllegalArgumentError
from koala.session.models import SessionOptions, SessionState

if TYPE_CHECKING:
    from koala.api.http import Response


logger = logging.getLogger(__name__)

CONTEXT_KEY_PREFIX = "koala.session."


class Store(ABC):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SESSION STORE                                         │
    │  Loads named sessions from a request and saves them to a response       │
    │  Sessions are cached in the request context once loaded                 │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, options: Optional[SessionOptions] = None):
        self.options = options or SessionOptions()

    async def get(self, request: HTTPConnection, name: str) -> SessionState:
        """
        Get a named session of the request.

        Returns the cached session when it was already loaded during the
        request, otherwise loads it from the request cookies.
        """
        key = f"{CONTEXT_KEY_PREFIX}{name}"
        if context.has(request, key):
            return context.get(request, key)

        session = await self.load(request, name)
        context.add(request, key, session)
        return session

    def new(self, name: str) -> SessionState:
        return SessionState(name=name, options=self.options.model_copy())

    def set_cookie(self, response: "Response", session: SessionState, value: str) -> None:
        options = session.options
        if options.max_age < 0:
            response.delete_cookie(
                session.name,
                path=options.path,
                domain=options.domain,
                secure=options.secure,
                httponly=options.httponly,
                samesite=options.samesite,
            )
            return

        response.set_cookie(
            session.name,
            value,
            max_age=options.max_age or None,
            path=options.path,
            domain=options.domain,
            secure=options.secure,
            httponly=options.httponly,
            samesite=options.samesite,
        )

    @abstractmethod
    async def load(self, request: HTTPConnection, name: str) -> SessionState:
        """Read a session from the request, or create a new one."""

    @abstractmethod
    async def save(self, request: HTTPConnection, response: "Response", session: SessionState) -> None:
        """Persist a session and write its cookie to the response."""


# =============================================================================
# COOKIE STORE
# =============================================================================

class CookieStore(Store):
    """
    Keeps session values in the cookie itself.

    Values are signed with the session secret (HS256 JWT), so clients can
    read but not change them.
    """

    ALGORITHM = "HS256"

    def __init__(self, secret: str, options: Optional[SessionOptions] = None):
        if not secret:
            raise IllegalArgumentError("Session secret is empty.")
        super().__init__(options)
        self._secret = secret

    async def load(self, request: HTTPConnection, name: str) -> SessionState:
        session = self.new(name)
        cookie = request.cookies.get(name)
        if not cookie:
            return session

        try:
            payload = jwt.decode(cookie, self._secret, algorithms=[self.ALGORITHM])
        except JWTError as e:
            logger.debug(f"Invalid session cookie {name}: {e}")
            return session

        session.values = dict(payload.get("values") or {})
        session.is_new = False
        return session

    async def save(self, request: HTTPConnection, response: "Response", session: SessionState) -> None:
        if session.options.max_age < 0:
            self.set_cookie(response, session, "")
            return

        now = datetime.now(timezone.utc)
        payload = {"values": session.values, "iat": now}
        if session.options.max_age > 0:
            payload["exp"] = now + timedelta(seconds=session.options.max_age)

        value = jwt.encode(payload, self._secret, algorithm=self.ALGORITHM)
        self.set_cookie(response, session, value)


def new_session_cookie(config: SessionConfig) -> CookieStore:
    """Create the cookie store used to keep the auth token."""
    return CookieStore(config.secret)


# =============================================================================
# REDIS STORE
# =============================================================================

class RedisStore(Store):
    """
    Keeps session values in Redis.

    Key Patterns:
        - session:{session_id} → JSON encoded session values

    The cookie only carries the random session id.
    """

    SESSION_PREFIX = "session:"

    def __init__(self, redis: Redis, options: Optional[SessionOptions] = None):
        super().__init__(options)
        self._redis = redis

    def _key(self, session_id: str) -> str:
        return f"{self.SESSION_PREFIX}{session_id}"

    async def load(self, request: HTTPConnection, name: str) -> SessionState:
        session = self.new(name)
        session_id = request.cookies.get(name)

        if session_id:
            data = await self._redis.get(self._key(session_id))
            if data is not None:
                session.values = json.loads(data)
                session.is_new = False
                session.id = session_id
                return session
            logger.debug(f"Session {name} not found in redis")

        session.id = secrets.token_urlsafe(32)
        return session

    async def save(self, request: HTTPConnection, response: "Response", session: SessionState) -> None:
        if session.id is None:
            session.id = secrets.token_urlsafe(32)

        if session.options.max_age < 0:
            await self._redis.delete(self._key(session.id))
            self.set_cookie(response, session, "")
            return

        await self._redis.set(
            self._key(session.id),
            json.dumps(session.values),
            ex=session.options.max_age or None,
        )
        self.set_cookie(response, session, session.id)
