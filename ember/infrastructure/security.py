"""Credentials — bcrypt password hashing and JWT access tokens.

Invariants:
    - Passwords are truncated to bcrypt's 72-byte input limit before hashing AND
      verifying, so both sides always see the same bytes
    - Access tokens are signed JWTs with sub = user UUID (string) and exp
    - JWTCredentialVerifier.verify raises UnauthenticatedError for every failure
      mode (bad signature, expired, missing/garbled sub) — callers never see JWTError

Design Decisions:
    - bcrypt used directly (no passlib): passlib is unmaintained and breaks on
      recent bcrypt releases
    - python-jose for JWT: handles exp validation and algorithm pinning
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from ember.core.domain_types import UserId
from ember.core.errors import UnauthenticatedError

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(
        _password_bytes(password), bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(
            _password_bytes(password), password_hash.encode("utf-8"),
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        logger.warning("Password hash in store is malformed")
        return False


def create_access_token(
    user_id: UUID,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 60,
) -> str:
    """Issue a signed access token for user_id."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    claims = {"sub": str(user_id), "exp": expire}
    return jwt.encode(claims, secret_key, algorithm=algorithm)


class JWTCredentialVerifier:
    """CredentialVerifier backed by HS256 JWTs."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self._secret_key = secret_key
        self._algorithm = algorithm

    def verify(self, credential: str) -> UserId:
        try:
            payload = jwt.decode(
                credential, self._secret_key, algorithms=[self._algorithm],
            )
        except JWTError as e:
            logger.info(f"Rejected access token: {e}")
            raise UnauthenticatedError("Invalid or expired token") from None

        subject = payload.get("sub")
        if not isinstance(subject, str):
            raise UnauthenticatedError("Token has no subject")
        try:
            return UserId(UUID(subject))
        except ValueError:
            raise UnauthenticatedError("Token subject is not a user id") from None
