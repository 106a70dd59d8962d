"""Resolve the request actor from a Bearer access token."""

import logging
from typing import Optional

from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import BlocklistUnavailable, TokenService
from core.exceptions import AUTH_MESSAGE

logger = logging.getLogger(__name__)


class JWTAuthMiddleware(MiddlewareMixin):
    """Attach ``request.user`` from the access token, or reject the request.

    A request without a Bearer header proceeds anonymously. A presented token
    must decode, must not be blocklisted, must carry the user's current
    ``token_version`` and must belong to an active user; otherwise the request
    ends here with 401. A blocklist outage fails closed with 503.
    """

    def process_request(self, request):  # type: ignore[override]
        auth_header = request.META.get("HTTP_AUTHORIZATION", "")
        if not auth_header.startswith("Bearer "):
            request.user = AnonymousUser()
            return None

        try:
            user = self._resolve(auth_header.split(" ", 1)[1])
        except AuthenticationFailed:
            return _error(AUTH_MESSAGE, status.HTTP_401_UNAUTHORIZED)
        except BlocklistUnavailable:
            logger.error("Token blocklist unavailable; rejecting request to %s", request.path)
            return _error("Authentication service unavailable (blocklist).", status.HTTP_503_SERVICE_UNAVAILABLE)

        request.user = user
        return None

    def _resolve(self, token: str) -> User:
        payload = TokenService.decode_token(token, expected_type="access")
        jti = payload.get("jti")
        if not jti or TokenService.is_token_blocked(jti):
            raise AuthenticationFailed("Token revoked")

        user = self._get_user(payload.get("sub"))
        if user is None or not user.is_active:
            raise AuthenticationFailed("User not found or inactive")
        if payload.get("ver") != user.token_version:
            raise AuthenticationFailed("Token version is stale")
        return user

    @staticmethod
    def _get_user(user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        try:
            return User.objects.select_related("role", "rubrik", "division").get(id=user_id)
        except (User.DoesNotExist, ValidationError, ValueError):
            return None


def _error(message: str, status_code: int) -> JsonResponse:
    return JsonResponse({"data": None, "errors": [message]}, status=status_code)


__all__ = ["JWTAuthMiddleware"]
