"""
SmartQueue — Admin session tokens (JWT, shared secret)

The admin password check itself is a placeholder: a canteen's own id or
the configured ADMIN_PASSWORD unlocks that canteen's dashboard.
"""
import hmac
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from smartqueue.core.config import get_settings

settings = get_settings()


def check_admin_password(canteen_id: str, password: str) -> bool:
    return hmac.compare_digest(password, canteen_id) or hmac.compare_digest(
        password, settings.ADMIN_PASSWORD
    )


def create_access_token(data: dict[str, Any]) -> str:
    payload = data.copy()
    expire = datetime.now(tz=timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload.update({"exp": expire, "type": "access", "jti": str(uuid.uuid4())})
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate a JWT. Raises JWTError on failure."""
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
