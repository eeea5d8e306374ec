"""
Unit tests for the application and diary transition tables.
"""

import pytest

from app.modules.internships.models import ApplicationStatus, Decision, DiaryStatus
from app.modules.internships.transitions import (
    APPLICATION_TRANSITIONS,
    DIARY_TRANSITIONS,
    TERMINAL_APPLICATION_STATUSES,
    InvalidStatusTransitionError,
    check_application_transition,
    check_diary_transition,
    derive_application_status,
    derive_diary_status,
)

from workflow_doubles import NOW, build_application, build_diary


class TestApplicationTransitions:
    def test_every_status_has_an_entry(self):
        assert set(APPLICATION_TRANSITIONS) == set(ApplicationStatus)

    def test_terminal_statuses(self):
        assert TERMINAL_APPLICATION_STATUSES == {
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.CANCELLED,
        }

    @pytest.mark.parametrize(
        "current,target",
        [
            (ApplicationStatus.AWAITING_ADVISOR, ApplicationStatus.AWAITING_CAREER_CENTER),
            (ApplicationStatus.AWAITING_ADVISOR, ApplicationStatus.CANCELLED),
            (ApplicationStatus.AWAITING_CAREER_CENTER, ApplicationStatus.AWAITING_COMPANY),
            (ApplicationStatus.AWAITING_COMPANY, ApplicationStatus.APPROVED),
            (ApplicationStatus.AWAITING_COMPANY, ApplicationStatus.REJECTED),
        ],
    )
    def test_allowed(self, current, target):
        check_application_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (ApplicationStatus.AWAITING_ADVISOR, ApplicationStatus.AWAITING_COMPANY),
            (ApplicationStatus.AWAITING_CAREER_CENTER, ApplicationStatus.CANCELLED),
            (ApplicationStatus.AWAITING_COMPANY, ApplicationStatus.CANCELLED),
            (ApplicationStatus.REJECTED, ApplicationStatus.AWAITING_ADVISOR),
            (ApplicationStatus.CANCELLED, ApplicationStatus.AWAITING_ADVISOR),
            (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(InvalidStatusTransitionError):
            check_application_transition(current, target)

    def test_terminal_statuses_are_absorbing(self):
        for status in TERMINAL_APPLICATION_STATUSES:
            for target in ApplicationStatus:
                with pytest.raises(InvalidStatusTransitionError):
                    check_application_transition(status, target)


class TestDiaryTransitions:
    def test_every_status_has_an_entry(self):
        assert set(DIARY_TRANSITIONS) == set(DiaryStatus)

    def test_company_rejection_cannot_be_overridden(self):
        with pytest.raises(InvalidStatusTransitionError):
            check_diary_transition(DiaryStatus.COMPANY_REJECTED, DiaryStatus.AWAITING_ADVISOR)

    def test_happy_path(self):
        check_diary_transition(DiaryStatus.PENDING, DiaryStatus.AWAITING_COMPANY)
        check_diary_transition(DiaryStatus.AWAITING_COMPANY, DiaryStatus.AWAITING_ADVISOR)
        check_diary_transition(DiaryStatus.AWAITING_ADVISOR, DiaryStatus.APPROVED)


class TestDeriveApplicationStatus:
    """Status recomputed from the decision fields."""

    def test_new_application(self, student_user):
        application = build_application(student_user)
        assert derive_application_status(application) == ApplicationStatus.AWAITING_ADVISOR

    def test_each_stage(self, student_user):
        application = build_application(student_user, advisor_decision=Decision.APPROVED)
        assert derive_application_status(application) == ApplicationStatus.AWAITING_CAREER_CENTER

        application.career_center_decision = Decision.APPROVED
        assert derive_application_status(application) == ApplicationStatus.AWAITING_COMPANY

        application.company_decision = Decision.APPROVED
        assert derive_application_status(application) == ApplicationStatus.APPROVED

    def test_rejection_at_any_stage(self, student_user):
        application = build_application(
            student_user,
            advisor_decision=Decision.APPROVED,
            career_center_decision=Decision.REJECTED,
        )
        assert derive_application_status(application) == ApplicationStatus.REJECTED

    def test_cancellation_wins(self, student_user):
        application = build_application(student_user, cancelled_at=NOW)
        assert derive_application_status(application) == ApplicationStatus.CANCELLED


class TestDeriveDiaryStatus:
    def test_pending_until_file_attached(self, student_user):
        diary = build_diary(build_application(student_user))
        assert derive_diary_status(diary) == DiaryStatus.PENDING

        diary.file_path = "/storage/diaries/1/x.pdf"
        assert derive_diary_status(diary) == DiaryStatus.AWAITING_COMPANY

    def test_decisions(self, student_user):
        diary = build_diary(
            build_application(student_user),
            file_path="/storage/diaries/1/x.pdf",
            company_decision=Decision.APPROVED,
        )
        assert derive_diary_status(diary) == DiaryStatus.AWAITING_ADVISOR

        diary.advisor_decision = Decision.REJECTED
        assert derive_diary_status(diary) == DiaryStatus.ADVISOR_REJECTED

        diary.advisor_decision = Decision.APPROVED
        assert derive_diary_status(diary) == DiaryStatus.APPROVED

    def test_company_rejection(self, student_user):
        diary = build_diary(
            build_application(student_user),
            file_path="/storage/diaries/1/x.pdf",
            company_decision=Decision.REJECTED,
        )
        assert derive_diary_status(diary) == DiaryStatus.COMPANY_REJECTED
