# =============================================================================
# KOALA WEB TOOLKIT - CORE EXCEPTIONS MODULE
# =============================================================================
# File: koala/core/exceptions.py
# Description: Flat error hierarchy shared by every Koala package
#              Each error carries its message and the stack at creation
# =============================================================================

import traceback
from typing import Optional, Dict, Any, List

from fastapi import status


class KoalaError(Exception):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    BASE EXCEPTION CLASS                                  │
    │  All Koala errors inherit from this class                               │
    │  Carries message, stack trace and the HTTP status it maps to            │
    └─────────────────────────────────────────────────────────────────────────┘

    Attributes:
        message: Human-readable error description
        stack: Stack trace captured when the error was created
        error_code: Machine-readable error identifier
        status_code: HTTP status code used by the JSON error handler
        details: Additional context for debugging
    """

    error_code: str = "KOALA_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str = "An error occurred",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        # Drop the frame of this constructor
        self.stack = "".join(traceback.format_stack()[:-1])
        super().__init__(self.message)

    def get_stack(self) -> str:
        """Return the stack trace without the error message."""
        return self.stack

    def messages(self) -> List[str]:
        """Messages reported to clients for this error."""
        return [self.message]

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# GENERIC ERRORS
# =============================================================================

class NotFoundError(KoalaError):
    """Generic error for not found logic."""

    error_code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class IllegalStateError(KoalaError):
    """Raised when an object is asked to work in a state it cannot handle."""

    error_code = "ILLEGAL_STATE"


class IllegalArgumentError(KoalaError):
    """Raised for illegal input data."""

    error_code = "ILLEGAL_ARGUMENT"
    status_code = status.HTTP_400_BAD_REQUEST


class RelationshipError(KoalaError):
    """Raised when related records prevent an operation."""

    error_code = "RELATIONSHIP_ERROR"
    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(KoalaError):
    """Raised when settings are missing or malformed."""

    error_code = "CONFIGURATION_ERROR"


class UnmarshalError(IllegalArgumentError):
    """Raised when a request body can not be decoded."""

    error_code = "UNMARSHAL_ERROR"


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================

class NotAuthorizedError(KoalaError):
    """
    Raised when credentials or tokens are not accepted.

    Examples:
        - Password does not match the stored hash
        - Expired or malformed JWT token
        - Missing authentication token
    """

    error_code = "NOT_AUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED


class UsernameExistsError(KoalaError):
    """Raised when registering a username that is already taken."""

    error_code = "USERNAME_EXISTS"
    status_code = status.HTTP_409_CONFLICT


class UsernameNotFoundError(NotFoundError):
    """Raised by user details services for unknown usernames."""

    error_code = "USERNAME_NOT_FOUND"


# =============================================================================
# DATABASE ERRORS
# =============================================================================

class DatabaseError(KoalaError):
    """Generic error for database aspects."""

    error_code = "DATABASE_ERROR"


# =============================================================================
# TYPE CHECK HELPERS
# =============================================================================

def root_cause(err: BaseException) -> BaseException:
    """
    Walk the ``__cause__`` chain of an error.

    Returns:
        BaseException: The first error of the chain
    """
    seen = set()
    while err.__cause__ is not None and id(err) not in seen:
        seen.add(id(err))
        err = err.__cause__
    return err


def is_runtime_error(err: BaseException) -> bool:
    """Check if error is any Koala error."""
    return isinstance(err, KoalaError)


def is_not_found_error(err: BaseException) -> bool:
    return isinstance(err, NotFoundError)


def is_illegal_state_error(err: BaseException) -> bool:
    return isinstance(err, IllegalStateError)


def is_illegal_argument_error(err: BaseException) -> bool:
    return isinstance(err, IllegalArgumentError)


def is_relationship_error(err: BaseException) -> bool:
    return isinstance(err, RelationshipError)


def is_not_authorized_error(err: BaseException) -> bool:
    return isinstance(err, NotAuthorizedError)


def is_username_exists_error(err: BaseException) -> bool:
    return isinstance(err, UsernameExistsError)


def is_username_not_found_error(err: BaseException) -> bool:
    return isinstance(err, UsernameNotFoundError)


def is_unmarshal_error(err: BaseException) -> bool:
    return isinstance(err, UnmarshalError)


def is_database_error(err: BaseException) -> bool:
    """Check if error, or the error it was raised from, is a DatabaseError."""
    return isinstance(err, DatabaseError) or isinstance(root_cause(err), DatabaseError)
