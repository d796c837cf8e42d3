# =============================================================================
# SESSION MODULE INITIALIZATION
# =============================================================================
# File: koala/session/__init__.py
# Description: Session stores and managers exports
# =============================================================================

from koala.session.models import SessionOptions, SessionState
from koala.session.storage import Store, CookieStore, RedisStore, new_session_cookie
from koala.session.manager import Session, AuthTokenStore, AUTH_COOKIE

__all__ = [
    "SessionOptions",
    "SessionState",
    "Store",
    "CookieStore",
    "RedisStore",
    "new_session_cookie",
    "Session",
    "AuthTokenStore",
    "AUTH_COOKIE",
]
