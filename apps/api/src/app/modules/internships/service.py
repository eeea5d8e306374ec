"""
Internship Application Service Layer

The application approval state machine:

    AWAITING_ADVISOR -> AWAITING_CAREER_CENTER -> AWAITING_COMPANY -> APPROVED

Any of the three gatekeepers may reject instead (REJECTED), and the
student may withdraw while the advisor has not yet decided (CANCELLED).
Both are absorbing.

Every operation follows the same shape:
1. Load the record and check the required state (NotFoundError)
2. Check the actor: AuthorizationGuard for users, the one-time
   credential gate for the company
3. In one transaction: conditional status update, side records (diary,
   credential), audit entry
4. After commit: best-effort notifications
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.config import settings
from app.core.database import atomic
from app.modules.audit.models import AuditAction
from app.modules.audit.repository import AuditLogRepository
from app.modules.internships.exceptions import BadRequestError, NotFoundError
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.helpers import Clock, mask_email, normalize_email, utcnow
from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    InternshipApplication,
)
from app.modules.internships.notifications import (
    Notification,
    NotificationKind,
    Notifier,
    notify_best_effort,
)
from app.modules.internships.otp import CompanyCredential, OneTimeCredentialGate
from app.modules.internships.repository import ApplicationRepository, DiaryRepository
from app.modules.internships.transitions import check_application_transition

logger = logging.getLogger(__name__)

CANCELLATION_REASON_MIN_LENGTH = 10


def clean_text(value: str | None) -> str | None:
    """Strip a free-text field; empty becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def require_reason(reason: str | None) -> str:
    """
    Raises:
        BadRequestError: If the reason is missing or blank
    """
    cleaned = clean_text(reason)
    if cleaned is None:
        raise BadRequestError("A rejection reason is required.", "REASON_REQUIRED")
    return cleaned


@dataclass
class ApplicationTransitionResult:
    """The updated application plus any plain-text code issued with it."""

    application: InternshipApplication
    issued_code: str | None = None


class ApplicationStateMachine:
    """Lifecycle operations on internship applications."""

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
        career_center_email: str | None = None,
    ):
        self.db = db
        self.applications = applications
        self.diaries = diaries
        self.audit = audit
        self.guard = guard
        self.otp_gate = otp_gate
        self.notifier = notifier
        self.clock = clock
        self.career_center_email = career_center_email or settings.career_center_email

    # ============================================
    # Internal helpers
    # ============================================

    async def _load(
        self, application_id: int, required: ApplicationStatus
    ) -> InternshipApplication:
        application = await self.applications.get_by_id(application_id)
        if application is None:
            logger.warning(f"Application not found: {application_id}")
            raise NotFoundError("application", application_id, required.value)
        if application.status != required:
            logger.warning(
                f"Application {application_id} is {application.status.value}, "
                f"operation requires {required.value}"
            )
            raise NotFoundError("application", application_id, required.value)
        return application

    async def _transition(
        self,
        application_id: int,
        from_status: ApplicationStatus,
        to_status: ApplicationStatus,
        **values,
    ) -> InternshipApplication:
        check_application_transition(from_status, to_status)
        updated = await self.applications.transition(
            application_id, from_status, to_status, **values
        )
        if updated is None:
            # Another request moved it first
            raise NotFoundError("application", application_id, from_status.value)
        return updated

    async def _notify(self, kind: NotificationKind, to_email: str, **context) -> None:
        await notify_best_effort(self.notifier, Notification(kind, to_email, context))

    async def _notify_rejected(
        self, application: InternshipApplication, rejected_by: str, reason: str
    ) -> None:
        await self._notify(
            NotificationKind.APPLICATION_REJECTED,
            application.student.email,
            student_name=application.student.full_name,
            company_name=application.company_name,
            rejected_by=rejected_by,
            reason=reason,
        )

    async def _send_company_credential(self, application: InternshipApplication, code: str) -> None:
        await self._notify(
            NotificationKind.COMPANY_CREDENTIAL,
            application.company_contact_email,
            company_name=application.company_name,
            student_name=application.student.full_name,
            code=code,
            valid_days=self.otp_gate.ttl.days,
            subject_kind="application",
        )

    # ============================================
    # Advisor stage
    # ============================================

    async def advisor_approve(
        self,
        application_id: int,
        advisor: CurrentUser,
        remark: str | None = None,
    ) -> InternshipApplication:
        """
        Approve as the advisor of record.

        Moves the application to AWAITING_CAREER_CENTER and creates its
        diary in PENDING within the same transaction.

        Raises:
            NotFoundError: If the application is missing, not awaiting the
                advisor, or not bound to this advisor
        """
        application = await self._load(application_id, ApplicationStatus.AWAITING_ADVISOR)
        await self.guard.ensure_advisor(application, advisor)
        remark = clean_text(remark)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_ADVISOR,
                ApplicationStatus.AWAITING_CAREER_CENTER,
                advisor_decision=Decision.APPROVED,
                advisor_remark=remark,
                advisor_decided_at=self.clock(),
            )
            await self.diaries.create_once(application_id)
            await self.audit.append(
                AuditAction.ADVISOR_APPROVED,
                actor_id=advisor.id,
                actor_email=advisor.email,
                detail=remark,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} approved by advisor {advisor.id}")

        student = updated.student
        await self._notify(
            NotificationKind.ADVISOR_APPROVED,
            student.email,
            student_name=student.full_name,
            company_name=updated.company_name,
            remark=remark,
        )
        await self._notify(
            NotificationKind.APPLICATION_TO_CAREER_CENTER,
            self.career_center_email,
            student_name=student.full_name,
            student_number=student.student_number,
            company_name=updated.company_name,
            application_id=updated.id,
        )
        return updated

    async def advisor_reject(
        self,
        application_id: int,
        advisor: CurrentUser,
        reason: str,
    ) -> InternshipApplication:
        """
        Reject as the advisor of record. No diary is created.

        Raises:
            BadRequestError: If ``reason`` is blank
            NotFoundError: As for advisor_approve
        """
        reason = require_reason(reason)
        application = await self._load(application_id, ApplicationStatus.AWAITING_ADVISOR)
        await self.guard.ensure_advisor(application, advisor)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_ADVISOR,
                ApplicationStatus.REJECTED,
                advisor_decision=Decision.REJECTED,
                advisor_remark=reason,
                advisor_decided_at=self.clock(),
            )
            await self.audit.append(
                AuditAction.ADVISOR_REJECTED,
                actor_id=advisor.id,
                actor_email=advisor.email,
                detail=reason,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} rejected by advisor {advisor.id}")
        await self._notify_rejected(updated, "advisor", reason)
        return updated

    # ============================================
    # Career center stage
    # ============================================

    async def career_center_approve(
        self,
        application_id: int,
        operator: CurrentUser,
        remark: str | None = None,
    ) -> ApplicationTransitionResult:
        """
        Approve on behalf of the career center and issue the company's
        one-time code.

        The code is stored (hashed) in the same transaction and emailed to
        the company contact after commit.
        """
        await self._load(application_id, ApplicationStatus.AWAITING_CAREER_CENTER)
        remark = clean_text(remark)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_CAREER_CENTER,
                ApplicationStatus.AWAITING_COMPANY,
                career_center_decision=Decision.APPROVED,
                career_center_remark=remark,
                career_center_decided_at=self.clock(),
            )
            code = self.otp_gate.issue(updated)
            await self.audit.append(
                AuditAction.CAREER_CENTER_APPROVED,
                actor_id=operator.id,
                actor_email=operator.email,
                detail=remark,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} approved by career center ({operator.id})")

        await self._notify(
            NotificationKind.CAREER_CENTER_APPROVED,
            updated.student.email,
            student_name=updated.student.full_name,
            company_name=updated.company_name,
            remark=remark,
        )
        await self._send_company_credential(updated, code)
        return ApplicationTransitionResult(application=updated, issued_code=code)

    async def career_center_reject(
        self,
        application_id: int,
        operator: CurrentUser,
        reason: str,
    ) -> InternshipApplication:
        reason = require_reason(reason)
        await self._load(application_id, ApplicationStatus.AWAITING_CAREER_CENTER)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_CAREER_CENTER,
                ApplicationStatus.REJECTED,
                career_center_decision=Decision.REJECTED,
                career_center_remark=reason,
                career_center_decided_at=self.clock(),
            )
            await self.audit.append(
                AuditAction.CAREER_CENTER_REJECTED,
                actor_id=operator.id,
                actor_email=operator.email,
                detail=reason,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} rejected by career center ({operator.id})")
        await self._notify_rejected(updated, "career center", reason)
        return updated

    async def resend_company_credential(
        self,
        application_id: int,
        operator: CurrentUser,
    ) -> ApplicationTransitionResult:
        """
        Replace the company's code with a fresh one and email it again.
        The previous code stops working.

        Raises:
            NotFoundError: If the application is missing or no longer
                AWAITING_COMPANY, including a company decision that lands
                between the read and the write
        """
        await self._load(application_id, ApplicationStatus.AWAITING_COMPANY)
        code, credential_values = self.otp_gate.mint()

        async with atomic(self.db):
            updated = await self.applications.update_in_status(
                application_id, ApplicationStatus.AWAITING_COMPANY, **credential_values
            )
            if updated is None:
                logger.info(f"Application {application_id} left AWAITING_COMPANY before reissue")
                raise NotFoundError(
                    "application", application_id, ApplicationStatus.AWAITING_COMPANY.value
                )
            await self.audit.append(
                AuditAction.COMPANY_CREDENTIAL_ISSUED,
                actor_id=operator.id,
                actor_email=operator.email,
                detail=f"Reissued to {mask_email(updated.company_contact_email)}",
                application_id=application_id,
            )

        logger.info(f"Company credential for application {application_id} reissued")
        await self._send_company_credential(updated, code)
        return ApplicationTransitionResult(application=updated, issued_code=code)

    # ============================================
    # Company stage
    # ============================================

    async def company_approve(
        self,
        application_id: int,
        credential: CompanyCredential,
        remark: str | None = None,
    ) -> InternshipApplication:
        """
        Confirm the internship as the company. The code is consumed.

        Raises:
            NotFoundError: If the application is not awaiting the company
            CredentialInvalidError: If the code or email does not match, or expired
        """
        application = await self._load(application_id, ApplicationStatus.AWAITING_COMPANY)
        self.otp_gate.verify(application, credential)
        remark = clean_text(remark)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_COMPANY,
                ApplicationStatus.APPROVED,
                company_decision=Decision.APPROVED,
                company_remark=remark,
                company_decided_at=self.clock(),
                company_otp_hash=None,
                company_otp_expires_at=None,
            )
            await self.audit.append(
                AuditAction.COMPANY_APPROVED,
                actor_email=normalize_email(credential.email),
                detail=remark,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} approved by company")

        await self._notify(
            NotificationKind.COMPANY_APPROVED,
            updated.student.email,
            student_name=updated.student.full_name,
            company_name=updated.company_name,
        )
        await self._notify(
            NotificationKind.COMPANY_APPROVED_CAREER_CENTER,
            self.career_center_email,
            student_name=updated.student.full_name,
            company_name=updated.company_name,
            application_id=updated.id,
        )
        return updated

    async def company_reject(
        self,
        application_id: int,
        credential: CompanyCredential,
        reason: str,
    ) -> InternshipApplication:
        reason = require_reason(reason)
        application = await self._load(application_id, ApplicationStatus.AWAITING_COMPANY)
        self.otp_gate.verify(application, credential)

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_COMPANY,
                ApplicationStatus.REJECTED,
                company_decision=Decision.REJECTED,
                company_remark=reason,
                company_decided_at=self.clock(),
                company_otp_hash=None,
                company_otp_expires_at=None,
            )
            await self.audit.append(
                AuditAction.COMPANY_REJECTED,
                actor_email=normalize_email(credential.email),
                detail=reason,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} rejected by company")
        await self._notify_rejected(updated, "company", reason)
        return updated

    # ============================================
    # Student
    # ============================================

    async def cancel(
        self,
        application_id: int,
        student: CurrentUser,
        reason: str,
    ) -> InternshipApplication:
        """
        Withdraw an application the advisor has not decided on yet.

        Raises:
            BadRequestError: If the stripped reason is shorter than 10 characters
            NotFoundError: If missing, not owned by the student, or past
                AWAITING_ADVISOR
        """
        cleaned = (reason or "").strip()
        if len(cleaned) < CANCELLATION_REASON_MIN_LENGTH:
            raise BadRequestError(
                f"Cancellation reason must be at least "
                f"{CANCELLATION_REASON_MIN_LENGTH} characters.",
                "REASON_TOO_SHORT",
                min_length=CANCELLATION_REASON_MIN_LENGTH,
            )

        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError(
                "application", application_id, ApplicationStatus.AWAITING_ADVISOR.value
            )
        self.guard.ensure_owner(application, student)
        if application.status != ApplicationStatus.AWAITING_ADVISOR:
            logger.warning(
                f"Cannot cancel application {application_id}: status={application.status.value}"
            )
            raise NotFoundError(
                "application", application_id, ApplicationStatus.AWAITING_ADVISOR.value
            )

        async with atomic(self.db):
            updated = await self._transition(
                application_id,
                ApplicationStatus.AWAITING_ADVISOR,
                ApplicationStatus.CANCELLED,
                cancellation_reason=cleaned,
                cancelled_at=self.clock(),
            )
            await self.audit.append(
                AuditAction.APPLICATION_CANCELLED,
                actor_id=student.id,
                actor_email=student.email,
                detail=cleaned,
                application_id=application_id,
            )

        logger.info(f"Application {application_id} cancelled by student {student.id}")
        return updated
