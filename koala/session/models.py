# =============================================================================
# KOALA WEB TOOLKIT - SESSION MODELS
# =============================================================================
# File: koala/session/models.py
# Description: Cookie options and session state models
# =============================================================================

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class SessionOptions(BaseModel):
    """
    Cookie attributes of a session.

    ``max_age`` is in seconds: 0 means a browser session cookie and a
    negative value deletes the session.
    """
    path: str = Field("/", description="Cookie path")
    domain: Optional[str] = Field(None, description="Cookie domain")
    max_age: int = Field(86400 * 30, description="Cookie max age in seconds")
    secure: bool = Field(False, description="Send the cookie over HTTPS only")
    httponly: bool = Field(True, description="Hide the cookie from scripts")
    samesite: Optional[Literal["lax", "strict", "none"]] = Field("lax")


class SessionState(BaseModel):
    """Values of a named session fetched during a request."""
    name: str = Field(..., description="Cookie name")
    values: Dict[str, Any] = Field(default_factory=dict)
    options: SessionOptions = Field(default_factory=SessionOptions)
    is_new: bool = Field(True, description="Whether the session came from a cookie")
    id: Optional[str] = Field(None, description="Server side session identifier")
