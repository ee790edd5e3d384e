"""
Password hashing, JWT issue/verify and the `get_current_user` dependency.
"""
from datetime import datetime, timedelta, timezone

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ..config import ACCESS_TOKEN_EXPIRE_MINUTES, SECRET_KEY
from .error_handlers import UnauthorizedError, get_error_message

ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """
    bcrypt only looks at the first 72 bytes and newer builds raise past that,
    so the limit is enforced here.
    """
    if not password:
        raise ValueError("Password is required")

    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        raise ValueError("Password must be 72 bytes or less")

    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    pw_bytes = password.encode("utf-8")
    if len(pw_bytes) > 72:
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise UnauthorizedError("Not authorized, token failed") from None
    if not claims.get("sub"):
        raise UnauthorizedError("Not authorized, token failed")
    return claims


def get_current_user(credentials: HTTPAuthorizationCredentials | None = Depends(_bearer)) -> dict:
    """Return the token claims; `sub` holds the user id as a string."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(get_error_message("unauthorized"))
    return decode_access_token(credentials.credentials)


def current_user_id(user: dict) -> int:
    try:
        return int(user.get("sub"))
    except (TypeError, ValueError):
        raise UnauthorizedError("Not authorized, token failed") from None
