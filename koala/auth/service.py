# =============================================================================
# KOALA WEB TOOLKIT - AUTHENTICATION SERVICE
# =============================================================================
# File: koala/auth/service.py
# Description: Username/password authentication over a user details service
# =============================================================================

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Union

from koala.auth.schemas import UserDetails
from koala.core import context
from koala.core.context import ContextHolder
from koala.core.exceptions import IllegalStateError, NotAuthorizedError
from koala.core.security import PasswordStrategy


logger = logging.getLogger(__name__)

USER_CONTEXT_KEY = "koala.auth.0"


class UserDetailsService(ABC):
    """
    Loads users by username.

    Implementations raise ``UsernameNotFoundError`` for unknown users.
    ``load_user_by_username`` may be a coroutine.
    """

    @abstractmethod
    def load_user_by_username(
        self,
        username: str,
    ) -> Union[UserDetails, Awaitable[UserDetails]]:
        """Load the user details of a username."""


class AuthService(ABC):
    """Authenticates a username and a password."""

    @abstractmethod
    async def authenticate(self, username: str, password: str) -> UserDetails:
        """Return the authenticated user details."""


class DefaultService(AuthService):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    DEFAULT AUTHENTICATION SERVICE                        │
    │  Loads the user and compares passwords with a password strategy         │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        user_details_service: UserDetailsService,
        password_strategy: PasswordStrategy,
    ):
        self.user_details_service = user_details_service
        self.password_strategy = password_strategy

    async def authenticate(self, username: str, password: str) -> UserDetails:
        """
        Authenticate a user.

        Args:
            username: Login username
            password: Plain text password

        Returns:
            UserDetails: The loaded user

        Raises:
            NotAuthorizedError: If the password does not match or the
                user is not active
            UsernameNotFoundError: Raised by the user details service
        """
        user = self.user_details_service.load_user_by_username(username)
        if inspect.isawaitable(user):
            user = await user

        if not self.password_strategy.verify(password, user.password):
            logger.debug(f"Password mismatch for {username}")
            raise NotAuthorizedError("Credentials not authorized.")

        if not user.is_active:
            logger.debug(f"Inactive user {username}")
            raise NotAuthorizedError("Credentials not authorized.")

        return user


def new_default_service(
    user_details_service: UserDetailsService,
    password_strategy: PasswordStrategy,
) -> DefaultService:
    return DefaultService(user_details_service, password_strategy)


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

def to_context(request: ContextHolder, details: UserDetails) -> None:
    """Put the user details in the request context."""
    context.add(request, USER_CONTEXT_KEY, details)


def from_context(request: ContextHolder) -> UserDetails:
    """
    Get the user details from the request context.

    Raises:
        IllegalStateError: If there are no user details in the context
    """
    details = context.get(request, USER_CONTEXT_KEY)
    if not isinstance(details, UserDetails):
        raise IllegalStateError("The user into context is not an UserDetails instance.")
    return details
