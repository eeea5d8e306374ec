"""
Internship helper functions.
"""

from collections.abc import Callable
from datetime import UTC, datetime

from fastapi import HTTPException

from app.modules.internships.exceptions import InternshipServiceError

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def normalize_email(email: str | None) -> str:
    """Lower-case and strip an email for comparison."""
    return (email or "").strip().lower()


def emails_match(a: str | None, b: str | None) -> bool:
    return bool(a) and bool(b) and normalize_email(a) == normalize_email(b)


def mask_email(email: str) -> str:
    """
    Mask an email for logs: ``john.doe@firm.com`` -> ``jo***@firm.com``.
    """
    if "@" not in email:
        return "***"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


def raise_http_error(e: InternshipServiceError) -> None:
    """Convert a service error into an HTTPException."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
            "context": e.context,
        },
    ) from e
