"""
Internship Repository

Database access for applications, diaries and exemption requests.

Transitions are conditional updates: ``UPDATE ... WHERE id = :id AND
status = :required``. When two requests race, only one matches a row;
the other gets None back and the service reports NotFound. Nothing here
commits; the service owns the transaction.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    DiaryStatus,
    ExemptionApplication,
    InternshipApplication,
    InternshipDiary,
)
from app.modules.users.models import DualMajorRecord

logger = logging.getLogger(__name__)


class ApplicationRepository:
    """Internship application persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select(self):
        return select(InternshipApplication).options(selectinload(InternshipApplication.student))

    async def get_by_id(
        self, application_id: int, *, refresh: bool = False
    ) -> InternshipApplication | None:
        stmt = self._select().where(InternshipApplication.id == application_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def transition(
        self,
        application_id: int,
        from_status: ApplicationStatus,
        to_status: ApplicationStatus,
        **values: Any,
    ) -> InternshipApplication | None:
        """
        Move an application from ``from_status`` to ``to_status``.

        Args:
            application_id: Application to update
            from_status: Status the row must still be in
            to_status: New status
            **values: Extra columns to set in the same statement

        Returns:
            The refreshed application, or None if no row matched
        """
        result = await self.db.execute(
            update(InternshipApplication)
            .where(
                InternshipApplication.id == application_id,
                InternshipApplication.status == from_status,
            )
            .values(status=to_status, status_changed_at=func.now(), **values)
            .returning(InternshipApplication.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            logger.info(
                f"Conditional update matched nothing: application {application_id} "
                f"{from_status.value} -> {to_status.value}"
            )
            return None
        return await self.get_by_id(application_id, refresh=True)

    async def update_in_status(
        self,
        application_id: int,
        status: ApplicationStatus,
        **values: Any,
    ) -> InternshipApplication | None:
        """Set ``values`` only while the application is still in ``status``."""
        result = await self.db.execute(
            update(InternshipApplication)
            .where(
                InternshipApplication.id == application_id,
                InternshipApplication.status == status,
            )
            .values(**values)
            .returning(InternshipApplication.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(application_id, refresh=True)

    async def advisor_has_application(self, student_id: int, advisor_email: str) -> bool:
        """True if the advisor is bound to any of the student's applications."""
        result = await self.db.execute(
            select(
                exists().where(
                    InternshipApplication.student_id == student_id,
                    func.lower(InternshipApplication.advisor_email) == advisor_email.lower(),
                )
            )
        )
        return bool(result.scalar())

    async def list_awaiting_company_for_contact(
        self, contact_email: str
    ) -> list[InternshipApplication]:
        result = await self.db.execute(
            self._select().where(
                InternshipApplication.status == ApplicationStatus.AWAITING_COMPANY,
                func.lower(InternshipApplication.company_contact_email) == contact_email.lower(),
            )
        )
        return list(result.scalars().all())

    # ============================================
    # Background Job Queries
    # ============================================

    async def list_needing_reminder(
        self,
        changed_before: datetime,
        reminded_before: datetime,
    ) -> list[InternshipApplication]:
        """
        Applications stuck in an AWAITING_* state since ``changed_before``
        that have not been reminded about since ``reminded_before``.
        """
        result = await self.db.execute(
            self._select().where(
                InternshipApplication.status.in_(
                    (
                        ApplicationStatus.AWAITING_ADVISOR,
                        ApplicationStatus.AWAITING_CAREER_CENTER,
                        ApplicationStatus.AWAITING_COMPANY,
                    )
                ),
                func.coalesce(
                    InternshipApplication.status_changed_at, InternshipApplication.created_at
                )
                < changed_before,
                (
                    InternshipApplication.reminder_sent_at.is_(None)
                    | (InternshipApplication.reminder_sent_at < reminded_before)
                ),
            )
        )
        return list(result.scalars().all())

    async def mark_reminder_sent(self, application_id: int, sent_at: datetime) -> None:
        await self.db.execute(
            update(InternshipApplication)
            .where(InternshipApplication.id == application_id)
            .values(reminder_sent_at=sent_at)
        )


class DiaryRepository:
    """Internship diary persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select(self):
        return select(InternshipDiary).options(
            selectinload(InternshipDiary.application).selectinload(InternshipApplication.student)
        )

    async def get_by_id(self, diary_id: int, *, refresh: bool = False) -> InternshipDiary | None:
        stmt = self._select().where(InternshipDiary.id == diary_id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_application(self, application_id: int) -> InternshipDiary | None:
        result = await self.db.execute(
            self._select().where(InternshipDiary.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def create_once(self, application_id: int) -> InternshipDiary:
        """
        Create the PENDING diary for an application.

        Returns the existing diary instead if one is already there; the
        unique constraint on application_id backs this up.
        """
        existing = await self.get_by_application(application_id)
        if existing is not None:
            logger.warning(f"Diary already exists for application {application_id}, not recreated")
            return existing

        diary = InternshipDiary(
            application_id=application_id,
            status=DiaryStatus.PENDING,
            company_decision=Decision.UNDECIDED,
            advisor_decision=Decision.UNDECIDED,
        )
        self.db.add(diary)
        await self.db.flush()
        logger.info(f"Created diary {diary.id} for application {application_id}")
        return diary

    async def transition(
        self,
        diary_id: int,
        from_status: DiaryStatus,
        to_status: DiaryStatus,
        **values: Any,
    ) -> InternshipDiary | None:
        """Conditional status update; None if the diary left ``from_status``."""
        result = await self.db.execute(
            update(InternshipDiary)
            .where(InternshipDiary.id == diary_id, InternshipDiary.status == from_status)
            .values(status=to_status, **values)
            .returning(InternshipDiary.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            logger.info(
                f"Conditional update matched nothing: diary {diary_id} "
                f"{from_status.value} -> {to_status.value}"
            )
            return None
        return await self.get_by_id(diary_id, refresh=True)

    async def list_for_advisor(
        self,
        advisor_id: int,
        advisor_email: str,
        application_statuses: tuple[ApplicationStatus, ...],
    ) -> list[InternshipDiary]:
        """
        Diaries the advisor may decide, ordered by end date: applications
        bound to their email, plus dual-major applications of students whose
        dual-major record names them.
        """
        advises_dual_major = exists().where(
            DualMajorRecord.student_id == InternshipApplication.student_id,
            DualMajorRecord.advisor_id == advisor_id,
        )
        result = await self.db.execute(
            self._select()
            .join(InternshipApplication, InternshipApplication.id == InternshipDiary.application_id)
            .where(
                or_(
                    func.lower(InternshipApplication.advisor_email) == advisor_email.lower(),
                    InternshipApplication.is_dual_major.is_(True) & advises_dual_major,
                ),
                InternshipApplication.status.in_(application_statuses),
            )
            .order_by(InternshipApplication.end_date.desc())
        )
        return list(result.scalars().all())

    async def list_awaiting_company_for_contact(self, contact_email: str) -> list[InternshipDiary]:
        result = await self.db.execute(
            self._select()
            .join(InternshipApplication, InternshipApplication.id == InternshipDiary.application_id)
            .where(
                InternshipDiary.status == DiaryStatus.AWAITING_COMPANY,
                func.lower(InternshipApplication.company_contact_email) == contact_email.lower(),
            )
        )
        return list(result.scalars().all())


class ExemptionRepository:
    """Exemption request persistence."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(
        self, exemption_id: int, *, refresh: bool = False
    ) -> ExemptionApplication | None:
        stmt = (
            select(ExemptionApplication)
            .options(selectinload(ExemptionApplication.student))
            .where(ExemptionApplication.id == exemption_id)
        )
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def decide(
        self,
        exemption_id: int,
        decision: Decision,
        remark: str | None,
        decided_at: datetime,
    ) -> ExemptionApplication | None:
        """Record the advisor's decision if none has been recorded yet."""
        result = await self.db.execute(
            update(ExemptionApplication)
            .where(
                ExemptionApplication.id == exemption_id,
                ExemptionApplication.advisor_decision == Decision.UNDECIDED,
            )
            .values(advisor_decision=decision, advisor_remark=remark, advisor_decided_at=decided_at)
            .returning(ExemptionApplication.id)
            .execution_options(synchronize_session=False)
        )
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(exemption_id, refresh=True)

    async def advisor_has_exemption(self, student_id: int, advisor_email: str) -> bool:
        result = await self.db.execute(
            select(
                exists().where(
                    ExemptionApplication.student_id == student_id,
                    func.lower(ExemptionApplication.advisor_email) == advisor_email.lower(),
                )
            )
        )
        return bool(result.scalar())
