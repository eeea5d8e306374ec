"""
Audit Log Models

Append-only record of every workflow transition.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AuditAction(str, enum.Enum):
    """Kinds of audited transitions."""

    ADVISOR_APPROVED = "ADVISOR_APPROVED"
    ADVISOR_REJECTED = "ADVISOR_REJECTED"
    CAREER_CENTER_APPROVED = "CAREER_CENTER_APPROVED"
    CAREER_CENTER_REJECTED = "CAREER_CENTER_REJECTED"
    COMPANY_APPROVED = "COMPANY_APPROVED"
    COMPANY_REJECTED = "COMPANY_REJECTED"
    APPLICATION_CANCELLED = "APPLICATION_CANCELLED"
    COMPANY_CREDENTIAL_ISSUED = "COMPANY_CREDENTIAL_ISSUED"
    DIARY_UPLOADED = "DIARY_UPLOADED"
    DIARY_COMPANY_APPROVED = "DIARY_COMPANY_APPROVED"
    DIARY_COMPANY_REJECTED = "DIARY_COMPANY_REJECTED"
    DIARY_ADVISOR_APPROVED = "DIARY_ADVISOR_APPROVED"
    DIARY_ADVISOR_REJECTED = "DIARY_ADVISOR_REJECTED"
    EXEMPTION_APPROVED = "EXEMPTION_APPROVED"
    EXEMPTION_REJECTED = "EXEMPTION_REJECTED"


class AuditLogEntry(Base):
    """
    One audited transition.

    ``actor_id`` is NULL for company representatives, who act through a
    one-time credential rather than an account; ``actor_email`` is always
    set. Rows are never updated or deleted.
    """

    __tablename__ = "audit_log_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, name="audit_action"), nullable=False
    )
    actor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    actor_email: Mapped[str] = mapped_column(String(255), nullable=False)
    detail: Mapped[str | None] = mapped_column(Text, nullable=True)
    application_id: Mapped[int | None] = mapped_column(
        ForeignKey("internship_applications.id", ondelete="SET NULL"), nullable=True
    )
    diary_id: Mapped[int | None] = mapped_column(
        ForeignKey("internship_diaries.id", ondelete="SET NULL"), nullable=True
    )
    exemption_id: Mapped[int | None] = mapped_column(
        ForeignKey("exemption_applications.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_audit_log_application", "application_id"),
        Index("idx_audit_log_diary", "diary_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLogEntry(id={self.id}, action={self.action.value})>"
