"""Typed domain errors raised by the article workflow and assignment services.

Each error is a DRF ``APIException`` so views can let it propagate and the
project exception handler renders it inside the standard envelope.
"""

from rest_framework import exceptions, status


class Unauthorized(exceptions.PermissionDenied):
    """The authorization policy denied the requested action."""

    default_detail = "You do not have permission to perform this action on this resource."
    default_code = "unauthorized"


class InvalidTransition(exceptions.APIException):
    """The article is not in a status from which the action may be applied."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The requested transition is not allowed from the current status."
    default_code = "invalid_transition"

    def __init__(self, action: str, current_status: str, allowed: tuple[str, ...] = ()):
        self.action = action
        self.current_status = current_status
        self.allowed = tuple(allowed)
        detail = f"Cannot {action} an article in status '{current_status}'."
        if self.allowed:
            detail += f" Allowed from: {', '.join(self.allowed)}."
        super().__init__(detail=detail)


class ValidationFailed(exceptions.ValidationError):
    """A role, rubrik, division or permission reference is invalid.

    ``detail`` is a mapping of field name to a list of messages so the caller
    can report which input was wrong.
    """

    default_code = "validation_failed"

    def __init__(self, errors: dict[str, list[str] | str]):
        self.field_errors = {
            field: [messages] if isinstance(messages, str) else list(messages)
            for field, messages in errors.items()
        }
        super().__init__(detail=self.field_errors)


class NotFound(exceptions.NotFound):
    """A referenced article, user or role does not exist."""

    default_code = "not_found"


__all__ = ["Unauthorized", "InvalidTransition", "ValidationFailed", "NotFound"]
