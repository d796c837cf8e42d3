# =============================================================================
# KOALA WEB TOOLKIT - CORE SECURITY MODULE
# =============================================================================
# File: koala/core/security.py
# Description: Password strategies used by the authentication service
# =============================================================================

import hashlib
import hmac
import logging
from abc import ABC, abstractmethod

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError


logger = logging.getLogger(__name__)


class PasswordStrategy(ABC):
    """
    Strategy used to hash and compare passwords.

    Deterministic strategies only implement ``exec``; salted strategies
    also override ``verify``.
    """

    @abstractmethod
    def exec(self, password: str) -> str:
        """Hash a plain text password."""

    def verify(self, password: str, hashed: str) -> bool:
        """
        Compare a plain text password with a stored hash.

        Args:
            password: Plain text password
            hashed: Stored password hash

        Returns:
            bool: True if the password matches
        """
        return hmac.compare_digest(self.exec(password), hashed)


class Sha256PasswordStrategy(PasswordStrategy):
    """Hex encoded SHA-256 digest of the password."""

    def exec(self, password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()


class Argon2PasswordStrategy(PasswordStrategy):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    ARGON2 PASSWORD STRATEGY                              │
    │  Salted Argon2id hashes, every call to exec gives a different hash      │
    └─────────────────────────────────────────────────────────────────────────┘

    Argon2id Parameters (OWASP recommended):
        - Memory:      64 MB (65536 KB)
        - Iterations:  3
        - Parallelism: 4
    """

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )

    def exec(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return self._hasher.verify(hashed, password)
        except (VerificationError, InvalidHash) as e:
            logger.debug(f"Argon2 verification failed: {e}")
            return False


def new_sha256_password() -> Sha256PasswordStrategy:
    return Sha256PasswordStrategy()


def sha256_password(password: str) -> str:
    """Hash a password with a Sha256PasswordStrategy."""
    return new_sha256_password().exec(password)
