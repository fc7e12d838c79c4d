"""
Security utilities for JWT authentication and password hashing.
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
import hashlib
import logging
import bcrypt
from jose import JWTError, jwt
from expense_tracker.core.config import settings
from expense_tracker.core.exceptions import InvalidToken

logger = logging.getLogger(__name__)


def _pre_hash_password(password: str) -> bytes:
    """
    Pre-hash password with SHA256 to support passwords longer than 72 bytes.
    Returns bytes (32 bytes) which is well under bcrypt's 72-byte limit.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pre_hashed = _pre_hash_password(plain_password)
    return bcrypt.checkpw(pre_hashed, hashed_password.encode('utf-8'))


def hash_password(password: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.
    Returned as a string for database storage.
    """
    pre_hashed = _pre_hash_password(password)
    hashed = bcrypt.hashpw(pre_hashed, bcrypt.gensalt())
    return hashed.decode('utf-8')


class TokenIssuer:
    """Issues and verifies signed bearer tokens bound to a user id."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 7):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_days = expire_days

    def issue(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token for ``user_id``."""
        if expires_delta is None:
            expires_delta = timedelta(days=self.expire_days)
        now = datetime.now(timezone.utc)
        claims = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + expires_delta,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """
        Decode and verify a JWT token.
        Returns the user id; raises InvalidToken on a bad signature,
        malformed token, passed expiry or missing subject.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Rejected token: {e}")
            raise InvalidToken() from e

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError):
            logger.warning("Rejected token without a valid subject")
            raise InvalidToken()


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Dependency returning the issuer configured from settings."""
    return TokenIssuer(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_days=settings.ACCESS_TOKEN_EXPIRE_DAYS,
    )
