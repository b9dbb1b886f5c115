"""Password hashing and JWT helpers for moderator sessions."""
from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt
from passlib.context import CryptContext

# New hashes use pbkdf2_sha256; bcrypt hashes generated elsewhere still verify.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a moderator password for the ADMIN_CREDENTIALS setting.

    Args:
        password: The plain text password

    Returns:
        str: The hashed password
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash.

    Returns:
        True if the password matches; False for a mismatch or a hash passlib
        does not recognise.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(
    subject: str,
    *,
    secret_key: str,
    algorithm: str,
    expires_minutes: int,
    extra_claims: dict[str, Any] | None = None,
) -> tuple[str, str, datetime]:
    """Create a signed JWT for a moderator session.

    Returns:
        The encoded token, its `jti` and its expiry time.
    """
    jti = secrets.token_urlsafe(16)
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    to_encode: dict[str, Any] = {"sub": subject, "jti": jti, "exp": expire}
    if extra_claims:
        to_encode.update(extra_claims)
    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=algorithm)
    return encoded_jwt, jti, expire


def decode_access_token(token: str, *, secret_key: str, algorithm: str) -> dict[str, Any]:
    """Decode and verify a token; raises `jose.JWTError` when invalid or expired."""
    payload: dict[str, Any] = jwt.decode(token, secret_key, algorithms=[algorithm])
    return payload
