"""Response helpers and base classes for the ``{data, errors}`` envelope."""

from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ModelViewSet


def api_response(data: Any, status: int = http_status.HTTP_200_OK) -> Response:
    """Wrap ``data`` as ``{"data": data, "errors": []}``."""
    return Response({"data": data, "errors": []}, status=status)


def no_content() -> Response:
    """204 without a body; the envelope is never applied to it."""
    return Response(status=http_status.HTTP_204_NO_CONTENT)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "data" in payload and "errors" in payload


class EnvelopeMixin:
    """Wrap successful responses that were not built with ``api_response``."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != http_status.HTTP_204_NO_CONTENT and not _is_enveloped(response.data):
                response.data = {"data": response.data, "errors": []}
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView whose successful responses use the standard envelope."""


class BaseViewSet(EnvelopeMixin, ModelViewSet):
    """ModelViewSet whose successful responses use the standard envelope."""


__all__ = ["api_response", "no_content", "EnvelopeMixin", "BaseAPIView", "BaseViewSet"]
