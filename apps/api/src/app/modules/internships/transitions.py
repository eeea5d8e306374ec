"""
Status transition tables for applications and diaries.

The stored status is authoritative, but it must always agree with the
decision fields: derive_application_status() recomputes it from them and
the services assert nothing else. Tests compare the two after every
transition.
"""

from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    DiaryStatus,
    InternshipApplication,
    InternshipDiary,
)

# ============================================
# Application
# ============================================

APPLICATION_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.AWAITING_ADVISOR: {
        ApplicationStatus.AWAITING_CAREER_CENTER,
        ApplicationStatus.REJECTED,
        ApplicationStatus.CANCELLED,
    },
    ApplicationStatus.AWAITING_CAREER_CENTER: {
        ApplicationStatus.AWAITING_COMPANY,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.AWAITING_COMPANY: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    # Terminal
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
    ApplicationStatus.CANCELLED: set(),
}

TERMINAL_APPLICATION_STATUSES = frozenset(
    status for status, targets in APPLICATION_TRANSITIONS.items() if not targets
)

# Application states in which an advisor tracks the diary
DIARY_TRACKED_APPLICATION_STATUSES = (
    ApplicationStatus.AWAITING_CAREER_CENTER,
    ApplicationStatus.AWAITING_COMPANY,
    ApplicationStatus.APPROVED,
)

# ============================================
# Diary
# ============================================

DIARY_TRANSITIONS: dict[DiaryStatus, set[DiaryStatus]] = {
    DiaryStatus.PENDING: {DiaryStatus.AWAITING_COMPANY},
    DiaryStatus.AWAITING_COMPANY: {
        DiaryStatus.AWAITING_ADVISOR,
        DiaryStatus.COMPANY_REJECTED,
    },
    DiaryStatus.AWAITING_ADVISOR: {
        DiaryStatus.APPROVED,
        DiaryStatus.ADVISOR_REJECTED,
    },
    # Terminal
    DiaryStatus.COMPANY_REJECTED: set(),
    DiaryStatus.ADVISOR_REJECTED: set(),
    DiaryStatus.APPROVED: set(),
    DiaryStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """A transition not present in the table was requested."""

    def __init__(self, current_status, new_status):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(f"Invalid status transition: {current_status.value} -> {new_status.value}")


def check_application_transition(current: ApplicationStatus, target: ApplicationStatus) -> None:
    if target not in APPLICATION_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current, target)


def check_diary_transition(current: DiaryStatus, target: DiaryStatus) -> None:
    if target not in DIARY_TRANSITIONS[current]:
        raise InvalidStatusTransitionError(current, target)


def derive_application_status(application: InternshipApplication) -> ApplicationStatus:
    """Status implied by the cancellation flag and the three decisions."""
    if application.cancelled_at is not None:
        return ApplicationStatus.CANCELLED

    stages = (
        (application.advisor_decision, ApplicationStatus.AWAITING_ADVISOR),
        (application.career_center_decision, ApplicationStatus.AWAITING_CAREER_CENTER),
        (application.company_decision, ApplicationStatus.AWAITING_COMPANY),
    )
    for decision, awaiting in stages:
        if decision == Decision.REJECTED:
            return ApplicationStatus.REJECTED
        if decision == Decision.UNDECIDED:
            return awaiting
    return ApplicationStatus.APPROVED


def derive_diary_status(diary: InternshipDiary) -> DiaryStatus:
    """Status implied by the file reference and the two decisions."""
    if diary.company_decision == Decision.REJECTED:
        return DiaryStatus.COMPANY_REJECTED
    if diary.advisor_decision == Decision.REJECTED:
        return DiaryStatus.ADVISOR_REJECTED
    if diary.advisor_decision == Decision.APPROVED:
        return DiaryStatus.APPROVED
    if diary.company_decision == Decision.APPROVED:
        return DiaryStatus.AWAITING_ADVISOR
    if diary.file_path:
        return DiaryStatus.AWAITING_COMPANY
    return DiaryStatus.PENDING
