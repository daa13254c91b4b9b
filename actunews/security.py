"""
Credential hashing for User accounts.

The lifecycle pipeline only depends on the ``CredentialHasher`` protocol:
``hash(identity, plaintext)`` returns the value stored in ``User.password``.
``BcryptHasher`` is the production implementation.  bcrypt embeds a random
salt in every hash, so two users with the same password never share a
stored value; *identity* is accepted for hashers that want to bind extra
per-account context into the digest.
"""
import logging
from typing import Any, Protocol

import bcrypt

from actunews.errors import HashingError

logger = logging.getLogger(__name__)

# bcrypt silently ignores (or, in recent releases, rejects) anything past
# the 72nd byte of the secret.
BCRYPT_MAX_BYTES = 72


class CredentialHasher(Protocol):
    def hash(self, identity: Any, plaintext: str) -> str: ...

    def verify(self, plaintext: str, hashed: str) -> bool: ...


class BcryptHasher:
    """
    bcrypt-backed ``CredentialHasher``.

    Parameters
    ----------
    rounds:
        bcrypt cost factor (log2 of the iteration count).  12 is a
        sensible production default; tests use the minimum of 4.
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError(f"bcrypt rounds must be between 4 and 31, got {rounds}")
        self._rounds = rounds

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, identity: Any, plaintext: str) -> str:
        """
        Return the bcrypt hash of *plaintext*.

        Raises ``HashingError`` when the secret is not a non-empty string
        or does not fit in bcrypt's 72-byte input window.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise HashingError("Password must be a non-empty string")
        secret = plaintext.encode("utf-8")
        if len(secret) > BCRYPT_MAX_BYTES:
            raise HashingError(
                f"Password must not exceed {BCRYPT_MAX_BYTES} bytes once UTF-8 encoded"
            )
        try:
            hashed = bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self._rounds))
        except ValueError as exc:
            raise HashingError(str(exc)) from exc
        logger.debug("Hashed credential for %r", identity)
        return hashed.decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Constant-time check of *plaintext* against a stored hash; never raises."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, AttributeError):
            return False
