import time
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext

from aintru.core.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    SESSION_TIMEOUT_MINUTES,
)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class SessionExpiredError(JWTError):
    """Token is valid but older than the allowed session window."""


# Password hashing
def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# Token generation
def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Creates a JWT carrying the user id as subject and the issue time.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": expire,
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


# Token decoding / user extraction
def decode_access_token(token: str) -> dict:
    """
    Decodes a JWT and returns {"user_id", "issued_at"}.
    Raises SessionExpiredError when the token was issued more than
    SESSION_TIMEOUT_MINUTES ago, JWTError for any other invalid token.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise SessionExpiredError(str(e))

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        raise JWTError("Token subject missing")

    issued_at = int(payload.get("iat") or 0)
    if time.time() - issued_at > SESSION_TIMEOUT_MINUTES * 60:
        raise SessionExpiredError("Session timeout exceeded")

    return {"user_id": int(sub), "issued_at": issued_at}


# OAuth state
OAUTH_STATE_EXPIRE_MINUTES = 10


def create_state_token(provider: str) -> str:
    """Signed, short-lived `state` value for the OAuth authorize redirect."""
    now = datetime.now(timezone.utc)
    to_encode = {
        "purpose": "oauth_state",
        "provider": provider,
        "nonce": secrets.token_urlsafe(16),
        "exp": now + timedelta(minutes=OAUTH_STATE_EXPIRE_MINUTES),
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_state_token(token: Optional[str], provider: str) -> bool:
    if not token:
        return False
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return False
    return payload.get("purpose") == "oauth_state" and payload.get("provider") == provider
