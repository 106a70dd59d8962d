"""DRF authenticator surfacing the user resolved by ``JWTAuthMiddleware``.

Token parsing, blocklist and version checks all happen in the middleware; DRF
only needs to see the already-attached user so permission classes and the
article policy receive a real actor.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        # DRF wraps the Django HttpRequest as ``request._request``.
        django_request = getattr(request, "_request", None)
        user = getattr(django_request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return user, None


__all__ = ["MiddlewareUserAuthentication"]
