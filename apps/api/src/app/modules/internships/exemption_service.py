"""
Exemption request decisions.

An exemption has a single gatekeeper, the advisor of record, and a
single write-once decision.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.database import atomic
from app.modules.audit.models import AuditAction
from app.modules.audit.repository import AuditLogRepository
from app.modules.internships.exceptions import NotFoundError
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.helpers import Clock, utcnow
from app.modules.internships.models import Decision, ExemptionApplication
from app.modules.internships.notifications import (
    Notification,
    NotificationKind,
    Notifier,
    notify_best_effort,
)
from app.modules.internships.repository import ExemptionRepository
from app.modules.internships.service import clean_text, require_reason

logger = logging.getLogger(__name__)


class ExemptionService:
    def __init__(
        self,
        db: AsyncSession,
        *,
        exemptions: ExemptionRepository,
        audit: AuditLogRepository,
        guard: AuthorizationGuard,
        notifier: Notifier,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.exemptions = exemptions
        self.audit = audit
        self.guard = guard
        self.notifier = notifier
        self.clock = clock

    async def approve(
        self, exemption_id: int, advisor: CurrentUser, remark: str | None = None
    ) -> ExemptionApplication:
        return await self._decide(exemption_id, advisor, Decision.APPROVED, clean_text(remark))

    async def reject(
        self, exemption_id: int, advisor: CurrentUser, reason: str
    ) -> ExemptionApplication:
        return await self._decide(exemption_id, advisor, Decision.REJECTED, require_reason(reason))

    async def _decide(
        self,
        exemption_id: int,
        advisor: CurrentUser,
        decision: Decision,
        remark: str | None,
    ) -> ExemptionApplication:
        exemption = await self.exemptions.get_by_id(exemption_id)
        if exemption is None or exemption.advisor_decision != Decision.UNDECIDED:
            raise NotFoundError("exemption", exemption_id, Decision.UNDECIDED.value)
        self.guard.ensure_exemption_advisor(exemption, advisor)

        approved = decision == Decision.APPROVED
        async with atomic(self.db):
            updated = await self.exemptions.decide(exemption_id, decision, remark, self.clock())
            if updated is None:
                raise NotFoundError("exemption", exemption_id, Decision.UNDECIDED.value)
            await self.audit.append(
                AuditAction.EXEMPTION_APPROVED if approved else AuditAction.EXEMPTION_REJECTED,
                actor_id=advisor.id,
                actor_email=advisor.email,
                detail=remark,
                exemption_id=exemption_id,
            )

        logger.info(f"Exemption {exemption_id} {decision.value.lower()} by advisor {advisor.id}")

        await notify_best_effort(
            self.notifier,
            Notification(
                NotificationKind.EXEMPTION_DECISION,
                updated.student.email,
                {"student_name": updated.student.full_name, "approved": approved, "remark": remark},
            ),
        )
        return updated
