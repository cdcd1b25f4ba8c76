"""
Password hashing.

Wraps passlib's bcrypt context behind a small class so the one-way hash can
be injected into the user service and swapped for a fast double in tests.
"""

import structlog
from typing import Optional
from passlib.context import CryptContext

from api.src.config import get_settings

logger = structlog.get_logger(__name__)


class PasswordHasher:
    """Salted bcrypt hashing with a configurable cost factor."""

    def __init__(self, rounds: Optional[int] = None):
        """
        Initialize the hasher.

        Args:
            rounds: BCrypt cost factor; defaults to ``password_bcrypt_rounds``
                from settings
        """
        if rounds is None:
            rounds = get_settings().password_bcrypt_rounds

        self.rounds = rounds
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed", rounds=self.rounds)
            return hashed
        except Exception as e:
            logger.error("password_hash_failed", error=str(e))
            raise
