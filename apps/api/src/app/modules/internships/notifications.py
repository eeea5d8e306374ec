"""
Workflow notifications.

The state machines hand a Notification to a Notifier after their
transaction has committed. Delivery is best-effort: a failed send is
logged and reported back in a NotificationResult, never raised, so a
mail outage cannot undo or block a decision.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from app.core import email
from app.modules.internships.helpers import mask_email

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    ADVISOR_APPROVED = "ADVISOR_APPROVED"
    APPLICATION_TO_CAREER_CENTER = "APPLICATION_TO_CAREER_CENTER"
    APPLICATION_REJECTED = "APPLICATION_REJECTED"
    CAREER_CENTER_APPROVED = "CAREER_CENTER_APPROVED"
    COMPANY_CREDENTIAL = "COMPANY_CREDENTIAL"
    COMPANY_APPROVED = "COMPANY_APPROVED"
    COMPANY_APPROVED_CAREER_CENTER = "COMPANY_APPROVED_CAREER_CENTER"
    DIARY_DECISION = "DIARY_DECISION"
    EXEMPTION_DECISION = "EXEMPTION_DECISION"


@dataclass(frozen=True)
class Notification:
    """One message to one recipient. ``context`` feeds the template."""

    kind: NotificationKind
    to_email: str
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationResult:
    delivered: bool
    error: str | None = None


class Notifier(Protocol):
    async def send(self, notification: Notification) -> NotificationResult: ...


# Template function in app.core.email for each kind, resolved at send time
_EMAIL_TEMPLATES: dict[NotificationKind, str] = {
    NotificationKind.ADVISOR_APPROVED: "send_advisor_approved_to_student",
    NotificationKind.APPLICATION_TO_CAREER_CENTER: "send_application_to_career_center",
    NotificationKind.APPLICATION_REJECTED: "send_application_rejected_to_student",
    NotificationKind.CAREER_CENTER_APPROVED: "send_career_center_approved_to_student",
    NotificationKind.COMPANY_CREDENTIAL: "send_company_credential",
    NotificationKind.COMPANY_APPROVED: "send_company_approved_to_student",
    NotificationKind.COMPANY_APPROVED_CAREER_CENTER: "send_company_approved_to_career_center",
    NotificationKind.DIARY_DECISION: "send_diary_decision_to_student",
    NotificationKind.EXEMPTION_DECISION: "send_exemption_decision_to_student",
}


class EmailNotifier:
    """Notifier backed by the Resend email templates."""

    async def send(self, notification: Notification) -> NotificationResult:
        template = getattr(email, _EMAIL_TEMPLATES[notification.kind])
        try:
            sent = await template(to_email=notification.to_email, **notification.context)
        except Exception as e:
            return NotificationResult(delivered=False, error=str(e))
        if not sent:
            return NotificationResult(delivered=False, error="email provider rejected the message")
        return NotificationResult(delivered=True)


async def notify_best_effort(notifier: Notifier, notification: Notification) -> NotificationResult:
    """Send and log the outcome. Never raises."""
    try:
        result = await notifier.send(notification)
    except Exception as e:
        result = NotificationResult(delivered=False, error=str(e))

    if result.delivered:
        logger.info(f"Sent {notification.kind.value} to {mask_email(notification.to_email)}")
    else:
        logger.error(
            f"Failed to send {notification.kind.value} to "
            f"{mask_email(notification.to_email)}: {result.error}"
        )
    return result
