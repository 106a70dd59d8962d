"""Authentication endpoints: register, login, refresh, logout and profile."""

import logging
from typing import Any

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from core.response import BaseAPIView, api_response, no_content
from .serializers import (
    LoginSerializer,
    ProfileUpdateSerializer,
    RegisterSerializer,
    UserDetailSerializer,
)
from .services import REFRESH, TokenService

logger = logging.getLogger(__name__)

User = get_user_model()


def _token_pair(user) -> dict[str, str]:
    access, refresh = TokenService.generate_tokens(user)
    return {"access": access, "refresh": refresh}


def _get_active_user(user_id) -> User | None:
    if not user_id:
        return None
    try:
        return User.objects.select_related("role").filter(id=user_id, is_active=True).first()
    except (ValidationError, ValueError):
        return None


def _bearer_token(request) -> str | None:
    scheme, _, token = request.META.get("HTTP_AUTHORIZATION", "").partition(" ")
    if scheme != "Bearer" or not token:
        return None
    return token


class AnonymousAPIView(BaseAPIView):
    permission_classes: list[Any] = []


class AuthenticatedAPIView(BaseAPIView):
    """Base for endpoints acting on ``request.user``; anonymous callers get 401."""

    permission_classes: list[Any] = []

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        if not request.user.is_authenticated:
            raise AuthenticationFailed("Authentication required")

    @staticmethod
    def revoke_current(request) -> None:
        token = _bearer_token(request)
        if token:
            TokenService.revoke(token)


class RegisterView(AnonymousAPIView):
    def post(self, request):
        """Register a new author account and return its profile."""
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Registered user %s", user.pk)
        return api_response(UserDetailSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(AnonymousAPIView):
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return api_response(_token_pair(serializer.validated_data["user"]))


class RefreshView(AnonymousAPIView):
    def post(self, request):
        """Rotate a refresh token: the presented one is blocklisted, a new pair is issued."""
        token = request.data.get("refresh")
        if not token:
            raise AuthenticationFailed("Refresh token required")

        claims = TokenService.decode_token(token, expected_type=REFRESH)
        if TokenService.is_token_blocked(claims["jti"]):
            raise AuthenticationFailed("Invalid or revoked refresh token")

        user = _get_active_user(claims.get("sub"))
        if user is None:
            raise AuthenticationFailed("User not found or inactive")
        if claims.get("ver") != user.token_version:
            raise AuthenticationFailed("Invalid or revoked refresh token")

        TokenService.block_token(claims["jti"], claims["exp"])
        return api_response(_token_pair(user))


class LogoutView(AuthenticatedAPIView):
    """Blocklist the access token used for this request."""

    def post(self, request):
        self.revoke_current(request)
        return no_content()


class LogoutAllView(AuthenticatedAPIView):
    """Bump ``token_version`` so every token issued so far stops validating."""

    def post(self, request):
        user = request.user
        user.token_version += 1
        user.save(update_fields=["token_version"])
        self.revoke_current(request)
        logger.info("Revoked all tokens for user %s", user.pk)
        return no_content()


class MeView(AuthenticatedAPIView):
    def get(self, request):
        return api_response(UserDetailSerializer(request.user).data)

    def patch(self, request):
        """Update name fields; identity, role and organization stay untouched."""
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(UserDetailSerializer(request.user).data)

    def delete(self, request):
        """Soft-deactivate the account and blocklist the current access token."""
        self.revoke_current(request)
        request.user.is_active = False
        request.user.save(update_fields=["is_active"])
        logger.info("Deactivated user %s", request.user.pk)
        return no_content()
