"""Credential helpers: password hashing and access tokens."""
from __future__ import annotations

from datetime import timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from linkboard.core.errors import AuthenticationError
from linkboard.core.settings import settings
from linkboard.db.time import utcnow

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """Hash ``password`` with bcrypt at the configured cost."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check ``password`` against a value produced by :func:`hash_password`."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash, or a password bcrypt refuses.
        return False


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Issue a signed JWT whose subject is the user's id."""
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int:
    """Return the user id carried by ``token``.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise AuthenticationError() from err

    subject = payload.get("sub")
    if subject is None:
        raise AuthenticationError()
    try:
        return int(subject)
    except (TypeError, ValueError) as err:
        raise AuthenticationError() from err
