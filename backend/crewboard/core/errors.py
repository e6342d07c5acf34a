"""Domain error taxonomy raised by services and mapped to HTTP responses."""

from __future__ import annotations

from fastapi import status


class CrewboardError(Exception):
    """Base class for errors that carry a machine-readable code and HTTP status."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_code: str = "error"
    retryable: bool = False

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class NotFoundError(CrewboardError):
    """A referenced workspace, project, task or member does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class UnauthorizedError(CrewboardError):
    """The caller is authenticated but the policy denies the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class ConflictError(CrewboardError):
    """A state-dependent rule rejects the action (sole member, already admin, ...)."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"


class ValidationFailure(CrewboardError):
    """Input is malformed or out of range."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "validation_failed"


class UpstreamError(CrewboardError):
    """The AI matching collaborator is unreachable or returned an error."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_code = "ai_service_error"
    retryable = True
