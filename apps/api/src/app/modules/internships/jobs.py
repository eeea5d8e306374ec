"""
Internship Background Jobs

Scheduled reminder for applications that sit in an AWAITING_* state:
whoever currently holds the decision gets an email once the application
has been waiting ``reminder_after_days`` days, and again at most once
per day after that.

- The job is idempotent: ``reminder_sent_at`` is stamped after each send
- Each application is processed in its own session
- One failing application does not stop the rest
- The job can be triggered manually from the debug endpoints
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.email import send_pending_approval_reminder
from app.core.scheduler import register_job
from app.modules.internships.models import ApplicationStatus, InternshipApplication
from app.modules.internships.repository import ApplicationRepository

logger = logging.getLogger(__name__)

REMINDER_REPEAT_INTERVAL = timedelta(days=1)

JOB_ID_PENDING_APPROVAL_REMINDERS = "internships_pending_approval_reminders"

_STAGE_LABELS = {
    ApplicationStatus.AWAITING_ADVISOR: "advisor approval",
    ApplicationStatus.AWAITING_CAREER_CENTER: "career center approval",
    ApplicationStatus.AWAITING_COMPANY: "company confirmation",
}


def reminder_recipient(application: InternshipApplication) -> str | None:
    """Email of whoever the application is waiting on, or None."""
    if application.status == ApplicationStatus.AWAITING_ADVISOR:
        return application.advisor_email
    if application.status == ApplicationStatus.AWAITING_CAREER_CENTER:
        return settings.career_center_email
    if application.status == ApplicationStatus.AWAITING_COMPANY:
        return application.company_contact_email
    return None


def _days_waiting(application: InternshipApplication, now: datetime) -> int:
    since = application.status_changed_at or application.created_at
    if since is None:
        return 0
    return max((now - since).days, 0)


async def _process_reminder(application: InternshipApplication, now: datetime) -> dict[str, Any]:
    recipient = reminder_recipient(application)
    if recipient is None:
        return {
            "application_id": application.id,
            "status": "skipped",
            "reason": "not_awaiting",
        }

    email_sent = await send_pending_approval_reminder(
        to_email=recipient,
        stage_label=_STAGE_LABELS[application.status],
        student_name=application.student.full_name,
        company_name=application.company_name,
        days_waiting=_days_waiting(application, now),
    )
    if not email_sent:
        logger.error(f"Failed to send reminder email for application {application.id}")

    # Stamped even when the send failed; the next attempt waits a full day
    async with async_session_maker() as db:
        await ApplicationRepository(db).mark_reminder_sent(application.id, now)
        await db.commit()

    logger.info(f"Processed pending approval reminder for application {application.id}")
    return {
        "application_id": application.id,
        "status": "sent" if email_sent else "marked_sent_email_failed",
        "stage": application.status.value,
    }


async def send_pending_approval_reminders() -> dict[str, Any]:
    """
    Email reminders for applications waiting too long on one party.

    Returns:
        Dict with job execution summary:
        - executed_at: When the job ran
        - reminders: Per-application results
        - total_processed: Applications handled
        - total_errors: Applications that raised
    """
    executed_at = datetime.now(UTC)
    changed_before = executed_at - timedelta(days=settings.reminder_after_days)
    reminded_before = executed_at - REMINDER_REPEAT_INTERVAL

    logger.info(
        f"Starting pending approval reminder job. "
        f"Looking for applications waiting since before {changed_before.isoformat()}"
    )

    results: dict[str, Any] = {
        "executed_at": executed_at.isoformat(),
        "reminders": [],
        "total_processed": 0,
        "total_errors": 0,
    }

    async with async_session_maker() as db:
        applications = await ApplicationRepository(db).list_needing_reminder(
            changed_before=changed_before,
            reminded_before=reminded_before,
        )

    logger.info(f"Found {len(applications)} applications needing a reminder")

    for application in applications:
        try:
            result = await _process_reminder(application, executed_at)
            results["reminders"].append(result)
            results["total_processed"] += 1
        except Exception as e:
            logger.error(
                f"Error processing reminder for application {application.id}: {e}",
                exc_info=True,
            )
            results["reminders"].append(
                {
                    "application_id": application.id,
                    "status": "error",
                    "error": str(e),
                }
            )
            results["total_errors"] += 1

    logger.info(
        f"Pending approval reminder job completed. "
        f"Processed: {results['total_processed']}, Errors: {results['total_errors']}"
    )
    return results


def register_internship_jobs() -> None:
    """
    Register internship background jobs with the scheduler.

    Called during application startup, before the scheduler starts.
    """
    logger.info("Registering internship background jobs...")

    register_job(
        job_id=JOB_ID_PENDING_APPROVAL_REMINDERS,
        func=send_pending_approval_reminders,
        trigger=CronTrigger(hour=10, minute=0),
    )
    logger.info(f"Registered job: {JOB_ID_PENDING_APPROVAL_REMINDERS} (daily at 10:00)")
