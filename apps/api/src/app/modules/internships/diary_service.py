"""
Internship Diary Service Layer

The diary approval state machine:

    PENDING -> AWAITING_COMPANY -> AWAITING_ADVISOR -> APPROVED
                      |                   |
               COMPANY_REJECTED    ADVISOR_REJECTED

The diary is created PENDING when the advisor approves the application.
Only the upload is time-gated: it must happen within 5 days after the
internship ends. Decisions afterwards are not window-gated.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.database import atomic
from app.modules.audit.models import AuditAction
from app.modules.audit.repository import AuditLogRepository
from app.modules.internships.eligibility import EligibilityWindow
from app.modules.internships.exceptions import BadRequestError, NotFoundError, WindowClosedError
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.helpers import Clock, normalize_email, utcnow
from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    DiaryStatus,
    InternshipDiary,
)
from app.modules.internships.notifications import (
    Notification,
    NotificationKind,
    Notifier,
    notify_best_effort,
)
from app.modules.internships.otp import CompanyCredential, OneTimeCredentialGate
from app.modules.internships.repository import ApplicationRepository, DiaryRepository
from app.modules.internships.service import clean_text
from app.modules.internships.transitions import (
    DIARY_TRACKED_APPLICATION_STATUSES,
    check_diary_transition,
)

logger = logging.getLogger(__name__)

MAX_DIARY_FILE_SIZE = 50 * 1024 * 1024  # 50 MB
ALLOWED_DIARY_CONTENT_TYPES = frozenset({"application/pdf"})

# Statuses that keep an overdue diary on the advisor's worklist even
# without a file
_REVIEW_STARTED_STATUSES = frozenset(
    {
        DiaryStatus.AWAITING_COMPANY,
        DiaryStatus.AWAITING_ADVISOR,
        DiaryStatus.APPROVED,
        DiaryStatus.COMPANY_REJECTED,
        DiaryStatus.ADVISOR_REJECTED,
        DiaryStatus.REJECTED,
    }
)


class DiaryDecision(str, enum.Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class DiaryUpload:
    """Reference to a diary file already written to storage."""

    file_path: str
    original_file_name: str
    file_size: int
    content_type: str


@dataclass(frozen=True)
class DiaryWorklistItem:
    """A diary plus its read-time eligibility flags."""

    diary: InternshipDiary
    internship_running: bool
    upload_window_open: bool
    upload_deadline: datetime


def window_for(diary: InternshipDiary) -> EligibilityWindow:
    return EligibilityWindow(start=diary.application.start_date, end=diary.application.end_date)


def is_visible_to_advisor(diary: InternshipDiary, window: EligibilityWindow, now: datetime) -> bool:
    """
    Hide diaries whose internship has not started, and overdue diaries
    that were never uploaded.
    """
    if not window.has_started(now):
        return False
    if (
        window.is_past_deadline(now)
        and not diary.has_file
        and diary.status not in _REVIEW_STARTED_STATUSES
    ):
        return False
    return True


def parse_decision(decision: DiaryDecision | str) -> DiaryDecision:
    try:
        return DiaryDecision(decision)
    except ValueError as e:
        raise BadRequestError(
            f"Unknown decision '{decision}'. Expected APPROVED or REJECTED.",
            "INVALID_DECISION",
        ) from e


def _validate_upload(upload: DiaryUpload) -> None:
    is_pdf = upload.content_type.lower() in ALLOWED_DIARY_CONTENT_TYPES
    if not is_pdf or not upload.original_file_name.lower().endswith(".pdf"):
        raise BadRequestError("Only PDF files can be uploaded as a diary.", "INVALID_FILE_TYPE")
    if upload.file_size <= 0:
        raise BadRequestError("The uploaded file is empty.", "EMPTY_FILE")
    if upload.file_size > MAX_DIARY_FILE_SIZE:
        raise BadRequestError(
            "The diary file must not exceed 50 MB.",
            "FILE_TOO_LARGE",
            max_size=MAX_DIARY_FILE_SIZE,
        )


class DiaryStateMachine:
    """Lifecycle operations on internship diaries."""

    def __init__(
        self,
        db: AsyncSession,
        *,
        applications: ApplicationRepository,
        diaries: DiaryRepository,
        audit: AuditLogRepository,
        guard: AuthorizationGuard,
        otp_gate: OneTimeCredentialGate,
        notifier: Notifier,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.applications = applications
        self.diaries = diaries
        self.audit = audit
        self.guard = guard
        self.otp_gate = otp_gate
        self.notifier = notifier
        self.clock = clock

    async def _load(self, diary_id: int, required: DiaryStatus) -> InternshipDiary:
        diary = await self.diaries.get_by_id(diary_id)
        if diary is None or diary.status != required:
            logger.warning(
                f"Diary {diary_id} unavailable: "
                f"status={diary.status.value if diary else None}, requires {required.value}"
            )
            raise NotFoundError("diary", diary_id, required.value)
        return diary

    async def _transition(
        self,
        diary_id: int,
        from_status: DiaryStatus,
        to_status: DiaryStatus,
        **values,
    ) -> InternshipDiary:
        check_diary_transition(from_status, to_status)
        updated = await self.diaries.transition(diary_id, from_status, to_status, **values)
        if updated is None:
            raise NotFoundError("diary", diary_id, from_status.value)
        return updated

    async def _notify_student(
        self, diary: InternshipDiary, decided_by: str, approved: bool, remark: str | None
    ) -> None:
        application = diary.application
        await notify_best_effort(
            self.notifier,
            Notification(
                NotificationKind.DIARY_DECISION,
                application.student.email,
                {
                    "student_name": application.student.full_name,
                    "company_name": application.company_name,
                    "decided_by": decided_by,
                    "approved": approved,
                    "remark": remark,
                },
            ),
        )

    # ============================================
    # Student upload
    # ============================================

    async def upload(
        self,
        application_id: int,
        student: CurrentUser,
        upload: DiaryUpload,
    ) -> InternshipDiary:
        """
        Attach the diary file and hand the diary to the company.

        Raises:
            NotFoundError: If the application is not the student's, is not
                APPROVED, or its diary is not PENDING
            WindowClosedError: Outside end < now <= end + 5 days
            BadRequestError: If the file is not a PDF of at most 50 MB
        """
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError("application", application_id, ApplicationStatus.APPROVED.value)
        self.guard.ensure_owner(application, student)
        if application.status != ApplicationStatus.APPROVED:
            raise NotFoundError("application", application_id, ApplicationStatus.APPROVED.value)

        diary = await self.diaries.get_by_application(application_id)
        if diary is None or diary.status != DiaryStatus.PENDING:
            raise NotFoundError(
                "diary", diary.id if diary else application_id, DiaryStatus.PENDING.value
            )

        now = self.clock()
        window = EligibilityWindow(start=application.start_date, end=application.end_date)
        if not window.is_upload_open(now):
            if now <= window.end:
                message = "The diary can be uploaded only after the internship has ended."
            else:
                message = "The diary upload deadline has passed."
            logger.warning(f"Diary {diary.id} upload outside window: {message}")
            raise WindowClosedError(
                diary.id,
                message,
                opens_after=window.end.isoformat(),
                deadline=window.deadline.isoformat(),
            )

        _validate_upload(upload)

        async with atomic(self.db):
            updated = await self._transition(
                diary.id,
                DiaryStatus.PENDING,
                DiaryStatus.AWAITING_COMPANY,
                file_path=upload.file_path,
                original_file_name=upload.original_file_name,
                file_size=upload.file_size,
                uploaded_at=now,
            )
            code = self.otp_gate.issue(updated)
            await self.audit.append(
                AuditAction.DIARY_UPLOADED,
                actor_id=student.id,
                actor_email=student.email,
                detail=upload.original_file_name,
                application_id=application_id,
                diary_id=diary.id,
            )

        logger.info(f"Diary {diary.id} uploaded for application {application_id}")

        await notify_best_effort(
            self.notifier,
            Notification(
                NotificationKind.COMPANY_CREDENTIAL,
                application.company_contact_email,
                {
                    "company_name": application.company_name,
                    "student_name": application.student.full_name,
                    "code": code,
                    "valid_days": self.otp_gate.ttl.days,
                    "subject_kind": "diary",
                },
            ),
        )
        return updated

    # ============================================
    # Company decision
    # ============================================

    async def company_decide(
        self,
        diary_id: int,
        credential: CompanyCredential,
        decision: DiaryDecision | str,
        remark: str | None = None,
    ) -> InternshipDiary:
        """
        Approve (-> AWAITING_ADVISOR) or reject (-> COMPANY_REJECTED).
        The code is consumed either way.

        Raises:
            BadRequestError: If ``decision`` is not APPROVED or REJECTED
            NotFoundError: If the diary is not awaiting the company
            CredentialInvalidError: If the code does not match or expired
        """
        choice = parse_decision(decision)
        diary = await self._load(diary_id, DiaryStatus.AWAITING_COMPANY)
        self.otp_gate.verify(diary, credential)
        remark = clean_text(remark)
        approved = choice == DiaryDecision.APPROVED

        async with atomic(self.db):
            updated = await self._transition(
                diary_id,
                DiaryStatus.AWAITING_COMPANY,
                DiaryStatus.AWAITING_ADVISOR if approved else DiaryStatus.COMPANY_REJECTED,
                company_decision=Decision.APPROVED if approved else Decision.REJECTED,
                company_remark=remark,
                company_decided_at=self.clock(),
                company_otp_hash=None,
                company_otp_expires_at=None,
            )
            await self.audit.append(
                (
                    AuditAction.DIARY_COMPANY_APPROVED
                    if approved
                    else AuditAction.DIARY_COMPANY_REJECTED
                ),
                actor_email=normalize_email(credential.email),
                detail=remark,
                application_id=updated.application_id,
                diary_id=diary_id,
            )

        logger.info(f"Diary {diary_id} {choice.value.lower()} by company")

        if not approved:
            await self._notify_student(updated, "company", approved=False, remark=remark)
        return updated

    # ============================================
    # Advisor decision
    # ============================================

    async def advisor_decide(
        self,
        diary_id: int,
        advisor: CurrentUser,
        decision: DiaryDecision | str,
        remark: str | None = None,
    ) -> InternshipDiary:
        """
        Final decision by the advisor of record (-> APPROVED or
        ADVISOR_REJECTED).

        Raises:
            BadRequestError: If ``decision`` is not APPROVED or REJECTED
            NotFoundError: If the diary is not awaiting the advisor or the
                advisor is not bound to its application
        """
        choice = parse_decision(decision)
        diary = await self._load(diary_id, DiaryStatus.AWAITING_ADVISOR)
        await self.guard.ensure_advisor(
            diary.application, advisor, resource="diary", record_id=diary_id
        )
        remark = clean_text(remark)
        approved = choice == DiaryDecision.APPROVED

        async with atomic(self.db):
            updated = await self._transition(
                diary_id,
                DiaryStatus.AWAITING_ADVISOR,
                DiaryStatus.APPROVED if approved else DiaryStatus.ADVISOR_REJECTED,
                advisor_decision=Decision.APPROVED if approved else Decision.REJECTED,
                advisor_remark=remark,
                advisor_decided_at=self.clock(),
            )
            await self.audit.append(
                (
                    AuditAction.DIARY_ADVISOR_APPROVED
                    if approved
                    else AuditAction.DIARY_ADVISOR_REJECTED
                ),
                actor_id=advisor.id,
                actor_email=advisor.email,
                detail=remark,
                application_id=updated.application_id,
                diary_id=diary_id,
            )

        logger.info(f"Diary {diary_id} {choice.value.lower()} by advisor {advisor.id}")
        await self._notify_student(updated, "advisor", approved=approved, remark=remark)
        return updated

    # ============================================
    # Advisor worklist
    # ============================================

    async def advisor_worklist(self, advisor: CurrentUser) -> list[DiaryWorklistItem]:
        """Diaries the advisor should see right now, with window flags."""
        diaries = await self.diaries.list_for_advisor(
            advisor.id, advisor.email, DIARY_TRACKED_APPLICATION_STATUSES
        )
        now = self.clock()

        items = []
        for diary in diaries:
            window = window_for(diary)
            if not is_visible_to_advisor(diary, window, now):
                continue
            items.append(
                DiaryWorklistItem(
                    diary=diary,
                    internship_running=window.is_running(now),
                    upload_window_open=window.is_upload_open(now),
                    upload_deadline=window.deadline,
                )
            )
        return items
