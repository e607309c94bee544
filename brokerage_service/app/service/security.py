"""Password hashing, access tokens and password-reset tokens."""
import datetime
import hashlib
import secrets
from typing import Any, Dict, Tuple

import bcrypt
import jwt

from brokerage_service.app.config import settings
from brokerage_service.app.service.exceptions import AuthenticationError


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def create_access_token(subject: str, role: str) -> str:
    now = datetime.datetime.now(datetime.UTC)
    payload = {
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + datetime.timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verifies signature and expiry. Raises AuthenticationError on any failure."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.PyJWTError:
        raise AuthenticationError("Not authorized to access this route")
    if not payload.get("sub"):
        raise AuthenticationError("Not authorized to access this route")
    return payload


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def new_reset_token() -> Tuple[str, str]:
    """Returns (token handed to the user, digest kept in the store)."""
    token = secrets.token_hex(20)
    return token, hash_reset_token(token)
