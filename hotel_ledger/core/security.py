"""Password hashing and bearer tokens for back office users."""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext

from hotel_ledger.config import settings


ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Seeded or imported rows may hold something that is not a bcrypt hash
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(
    subject: str | uuid.UUID,
    role: Optional[str] = None,
    expires_minutes: Optional[int] = None,
    **claims: Any,
) -> str:
    """
    Sign an access token for a user id.

    The role travels in the token for clients; permission checks always
    use the role stored on the user row.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload: Dict[str, Any] = {
        **claims,
        "sub": str(subject),
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    if role:
        payload["role"] = role

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired access token, else None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("sub"):
        return None
    return payload


def verify_access_token(token: str) -> Optional[str]:
    """User id carried by a valid access token."""
    payload = decode_access_token(token)
    return payload["sub"] if payload else None
