"""Project exception handler: every error leaves as ``{"data": null, "errors": [...]}``."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError, IntegrityError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from core.errors import InvalidTransition, ValidationFailed

logger = logging.getLogger(__name__)

AUTH_MESSAGE = (
    "Authentication credentials were not provided or are invalid, token revoked, or user is inactive."
)
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _envelope(errors: list[Any], status_code: int) -> Response:
    return Response({"data": None, "errors": errors}, status=status_code)


def _normalize_errors(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and "detail" in payload:
        return [payload["detail"]]
    return [payload]


def _domain_response(exc: Exception) -> Response | None:
    """Responses for errors that bypass DRF's default handling."""
    if isinstance(exc, BlocklistUnavailable):
        return _envelope(["Authentication service unavailable (blocklist)."], status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, IntegrityError):
        logger.warning("Integrity error while handling request: %s", exc)
        return _envelope(["The request conflicts with existing data."], status.HTTP_409_CONFLICT)
    if isinstance(exc, DatabaseError):
        logger.error("Database error while handling request: %s", exc)
        return _envelope(["Service temporarily unavailable."], status.HTTP_503_SERVICE_UNAVAILABLE)
    if isinstance(exc, ValidationFailed):
        return _envelope([exc.field_errors], status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, InvalidTransition):
        logger.info("Rejected transition: %s", exc.detail)
        return _envelope([str(exc.detail)], exc.status_code)
    return None


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap errors in the envelope.

    Domain errors keep their detail (per-field messages, transition reason).
    Authentication failures are always 401 with a generic message unless
    ``DEBUG_AUTH_ERRORS`` is on; permission failures share one 403 message.
    """
    response = _domain_response(exc)
    if response is not None:
        return response

    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        debug = getattr(settings, "DEBUG_AUTH_ERRORS", False)
        errors = _normalize_errors(response.data) if debug else [AUTH_MESSAGE]
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        errors = [FORBIDDEN_MESSAGE]
    else:
        errors = _normalize_errors(response.data)

    response.data = {"data": None, "errors": errors}
    return response
