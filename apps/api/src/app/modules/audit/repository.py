"""
Audit Log Repository

Entries are added to the caller's session and flushed; they commit or
roll back together with the transition they describe.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.audit.models import AuditAction, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditLogRepository:
    """Append-only access to the audit log."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        action: AuditAction,
        *,
        actor_email: str,
        actor_id: int | None = None,
        detail: str | None = None,
        application_id: int | None = None,
        diary_id: int | None = None,
        exemption_id: int | None = None,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            action=action,
            actor_id=actor_id,
            actor_email=actor_email,
            detail=detail,
            application_id=application_id,
            diary_id=diary_id,
            exemption_id=exemption_id,
        )
        self.db.add(entry)
        await self.db.flush()

        logger.info(
            f"Audit: {action.value} by {actor_email} "
            f"(application={application_id}, diary={diary_id})"
        )
        return entry

    async def list_for_application(self, application_id: int) -> list[AuditLogEntry]:
        result = await self.db.execute(
            select(AuditLogEntry)
            .where(AuditLogEntry.application_id == application_id)
            .order_by(AuditLogEntry.created_at, AuditLogEntry.id)
        )
        return list(result.scalars().all())
