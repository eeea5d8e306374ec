"""
Internship service errors.

Routers translate these into HTTP responses; every error carries a
machine-readable code and a context dict with the record id and, where
relevant, the state the operation required.
"""

from typing import Any


class InternshipServiceError(Exception):
    """Base exception for internship workflow errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class NotFoundError(InternshipServiceError):
    """
    Record absent, not in the state the operation requires, or not
    visible to the caller. The three cases are deliberately
    indistinguishable to the client.
    """

    def __init__(
        self,
        resource: str,
        record_id: int,
        required_state: str | None = None,
    ):
        message = f"{resource.capitalize()} {record_id} not found"
        if required_state:
            message += f" or not awaiting this action (requires {required_state})"
        context: dict[str, Any] = {"resource": resource, "id": record_id}
        if required_state:
            context["required_state"] = required_state
        super().__init__(
            message=message,
            error_code=f"{resource.upper()}_NOT_FOUND",
            status_code=404,
            context=context,
        )


class BadRequestError(InternshipServiceError):
    """Input failed a business rule (missing reason, wrong file type...)."""

    def __init__(self, message: str, error_code: str = "BAD_REQUEST", **context: Any):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            context=context,
        )


class WindowClosedError(InternshipServiceError):
    """Diary upload attempted outside the upload window."""

    def __init__(self, record_id: int, message: str, **context: Any):
        super().__init__(
            message=message,
            error_code="UPLOAD_WINDOW_CLOSED",
            status_code=409,
            context={"id": record_id, **context},
        )


class CredentialInvalidError(InternshipServiceError):
    """One-time credential missing, wrong, bound to another email, or expired."""

    def __init__(self, record_id: int | None = None):
        super().__init__(
            message="Invalid or expired one-time code.",
            error_code="CREDENTIAL_INVALID",
            status_code=401,
            context={"id": record_id} if record_id is not None else {},
        )
