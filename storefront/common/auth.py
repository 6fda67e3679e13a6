import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import wraps

import jwt
from quart import g, request

from .config import settings
from .db import utcnow
from .errors import Forbidden, Unauthorized

_logger = logging.getLogger(__name__)

ROLES = ("user", "admin")


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def can_access(self, owner_id: str) -> bool:
        return self.is_admin or self.id == owner_id


def issue_token(user_id: str, role: str = "user", expires_minutes: int = None) -> str:
    if role not in ROLES:
        raise ValueError(f"unknown role: {role}")
    minutes = settings.JWT_EXPIRES_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": user_id,
        "role": role,
        "exp": utcnow() + timedelta(minutes=minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> CurrentUser:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("token_expired")
    except jwt.InvalidTokenError as e:
        _logger.info("Rejected bearer token: %s", e)
        raise Unauthorized("invalid_token")
    user_id = claims.get("sub")
    if not user_id:
        raise Unauthorized("invalid_token")
    role = claims.get("role", "user")
    return CurrentUser(id=str(user_id), role=role if role in ROLES else "user")


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("missing_token")
    return token.strip()


def current_user() -> CurrentUser:
    return g.user


def require_auth(view):
    @wraps(view)
    async def wrapper(*args, **kwargs):
        g.user = decode_token(_bearer_token())
        return await view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    async def wrapper(*args, **kwargs):
        user = g.get("user")
        if user is None or not user.is_admin:
            raise Forbidden()
        return await view(*args, **kwargs)

    return wrapper
