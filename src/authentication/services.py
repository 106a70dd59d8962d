"""JWT issuance and revocation backed by the Redis blocklist."""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Tuple

import jwt
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class BlocklistUnavailable(Exception):
    """The Redis blocklist could not be read or written; callers fail closed."""


def _lifetime(token_type: str) -> timedelta:
    if token_type == ACCESS:
        return timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)
    return timedelta(hours=settings.REFRESH_TOKEN_TTL_HOURS)


class TokenService:
    """Issue, decode and revoke access/refresh tokens.

    Every token carries the user's ``token_version`` as ``ver``; bumping the
    version (logout-all) invalidates all tokens minted before it.
    """

    ALGORITHM = "HS256"
    BLOCKLIST_PREFIX = "blocklist:token:"

    @classmethod
    def generate_tokens(cls, user) -> Tuple[str, str]:
        issued_at = datetime.now(timezone.utc)
        return cls._encode(user, ACCESS, issued_at), cls._encode(user, REFRESH, issued_at)

    @classmethod
    def _encode(cls, user, token_type: str, issued_at: datetime) -> str:
        role = user.role.name if getattr(user, "role_id", None) else None
        claims = {
            "sub": str(user.id),
            "jti": uuid.uuid4().hex,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + _lifetime(token_type)).timestamp()),
            "type": token_type,
            "role": role,
            "ver": user.token_version,
        }
        return jwt.encode(claims, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Verify signature and expiry; ``expected_type`` pins access vs refresh."""
        try:
            claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type is not None and claims.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")
        return claims

    @classmethod
    def revoke(cls, token: str, expected_type: str = ACCESS) -> dict[str, Any]:
        """Blocklist the jti of ``token`` until the token would expire anyway."""
        claims = cls.decode_token(token, expected_type=expected_type)
        cls.block_token(claims["jti"], claims["exp"])
        return claims

    @classmethod
    def block_token(cls, jti: str, exp: int) -> None:
        remaining = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(cls.BLOCKLIST_PREFIX + jti, remaining, "1")
        except Exception as exc:
            logger.error("Could not blocklist token %s: %s", jti, exc)
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def is_token_blocked(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(cls.BLOCKLIST_PREFIX + jti) is not None
        except Exception as exc:
            logger.error("Could not read token blocklist: %s", exc)
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


__all__ = ["ACCESS", "REFRESH", "BlocklistUnavailable", "TokenService"]
