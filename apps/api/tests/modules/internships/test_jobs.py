"""
Unit tests for the pending-approval reminder job.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.modules.internships.jobs import (
    JOB_ID_PENDING_APPROVAL_REMINDERS,
    register_internship_jobs,
    reminder_recipient,
    send_pending_approval_reminders,
)
from app.modules.internships.models import ApplicationStatus

from workflow_doubles import ADVISOR_EMAIL, CONTACT_EMAIL, NOW, build_application

JOBS = "app.modules.internships.jobs"


@pytest.fixture
def session_maker():
    """Stand-in for async_session_maker yielding an AsyncMock session."""
    session = AsyncMock()
    maker = MagicMock()
    maker.return_value.__aenter__ = AsyncMock(return_value=session)
    maker.return_value.__aexit__ = AsyncMock(return_value=False)
    maker.session = session
    return maker


@pytest.fixture
def repo():
    repository = MagicMock()
    repository.list_needing_reminder = AsyncMock(return_value=[])
    repository.mark_reminder_sent = AsyncMock()
    return repository


class TestReminderRecipient:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (ApplicationStatus.AWAITING_ADVISOR, ADVISOR_EMAIL),
            (ApplicationStatus.AWAITING_CAREER_CENTER, settings.career_center_email),
            (ApplicationStatus.AWAITING_COMPANY, CONTACT_EMAIL),
            (ApplicationStatus.APPROVED, None),
            (ApplicationStatus.CANCELLED, None),
        ],
    )
    def test_recipient_by_stage(self, student_user, status, expected):
        application = build_application(student_user, status=status)
        assert reminder_recipient(application) == expected


class TestSendPendingApprovalReminders:
    @pytest.mark.asyncio
    async def test_no_applications(self, session_maker, repo):
        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.ApplicationRepository", return_value=repo),
            patch(f"{JOBS}.send_pending_approval_reminder", new_callable=AsyncMock) as mock_email,
        ):
            result = await send_pending_approval_reminders()

        assert result["total_processed"] == 0
        assert result["total_errors"] == 0
        mock_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_reminds_and_stamps(self, session_maker, repo, student_user):
        application = build_application(
            student_user,
            status=ApplicationStatus.AWAITING_COMPANY,
            status_changed_at=NOW - timedelta(days=10),
        )
        repo.list_needing_reminder.return_value = [application]

        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.ApplicationRepository", return_value=repo),
            patch(
                f"{JOBS}.send_pending_approval_reminder",
                new_callable=AsyncMock,
                return_value=True,
            ) as mock_email,
        ):
            result = await send_pending_approval_reminders()

        assert result["total_processed"] == 1
        assert result["reminders"][0]["status"] == "sent"
        assert result["reminders"][0]["stage"] == "AWAITING_COMPANY"
        kwargs = mock_email.call_args.kwargs
        assert kwargs["to_email"] == CONTACT_EMAIL
        assert kwargs["stage_label"] == "company confirmation"
        assert kwargs["student_name"] == "Ali Yılmaz"
        assert kwargs["days_waiting"] >= 10
        repo.mark_reminder_sent.assert_awaited_once()
        assert repo.mark_reminder_sent.call_args.args[0] == application.id
        session_maker.session.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_query_windows(self, session_maker, repo):
        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.ApplicationRepository", return_value=repo),
            patch(f"{JOBS}.send_pending_approval_reminder", new_callable=AsyncMock),
        ):
            await send_pending_approval_reminders()

        kwargs = repo.list_needing_reminder.call_args.kwargs
        waited = kwargs["reminded_before"] - kwargs["changed_before"]
        assert waited == timedelta(days=settings.reminder_after_days) - timedelta(days=1)

    @pytest.mark.asyncio
    async def test_failed_email_still_stamped(self, session_maker, repo, student_user):
        repo.list_needing_reminder.return_value = [build_application(student_user)]

        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.ApplicationRepository", return_value=repo),
            patch(
                f"{JOBS}.send_pending_approval_reminder",
                new_callable=AsyncMock,
                return_value=False,
            ),
        ):
            result = await send_pending_approval_reminders()

        assert result["reminders"][0]["status"] == "marked_sent_email_failed"
        repo.mark_reminder_sent.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_rest(self, session_maker, repo, student_user):
        first = build_application(student_user, id=1)
        second = build_application(student_user, id=2)
        repo.list_needing_reminder.return_value = [first, second]

        with (
            patch(f"{JOBS}.async_session_maker", session_maker),
            patch(f"{JOBS}.ApplicationRepository", return_value=repo),
            patch(
                f"{JOBS}.send_pending_approval_reminder",
                new_callable=AsyncMock,
                side_effect=[RuntimeError("provider down"), True],
            ),
        ):
            result = await send_pending_approval_reminders()

        assert result["total_errors"] == 1
        assert result["total_processed"] == 1
        assert result["reminders"][0] == {
            "application_id": 1,
            "status": "error",
            "error": "provider down",
        }
        assert result["reminders"][1]["status"] == "sent"


class TestRegisterInternshipJobs:
    def test_registers_daily_reminder(self):
        with patch(f"{JOBS}.register_job") as mock_register:
            register_internship_jobs()

        kwargs = mock_register.call_args.kwargs
        assert kwargs["job_id"] == JOB_ID_PENDING_APPROVAL_REMINDERS
        assert kwargs["func"] is send_pending_approval_reminders
        assert isinstance(kwargs["trigger"], CronTrigger)
