"""
Internship Models

Applications, their post-internship diaries and exemption requests.

Status columns hold the literal tokens below; they are what the API
returns and what the UI switches on, so the values must not change.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.shared import BaseModel
from app.modules.users.models import User


class InternshipType(str, enum.Enum):
    """Course / internship kinds offered by the faculty."""

    IMU_402 = "IMU_402"
    IMU_404 = "IMU_404"
    MESLEKI_EGITIM_UYGULAMALI_DERS = "MESLEKI_EGITIM_UYGULAMALI_DERS"
    ISTEGE_BAGLI_STAJ = "ISTEGE_BAGLI_STAJ"
    ZORUNLU_STAJ = "ZORUNLU_STAJ"


class ApplicationStatus(str, enum.Enum):
    """Overall status of an internship application."""

    AWAITING_ADVISOR = "AWAITING_ADVISOR"
    AWAITING_CAREER_CENTER = "AWAITING_CAREER_CENTER"
    AWAITING_COMPANY = "AWAITING_COMPANY"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class DiaryStatus(str, enum.Enum):
    """Status of an internship diary."""

    PENDING = "PENDING"
    AWAITING_COMPANY = "AWAITING_COMPANY"
    COMPANY_REJECTED = "COMPANY_REJECTED"
    AWAITING_ADVISOR = "AWAITING_ADVISOR"
    ADVISOR_REJECTED = "ADVISOR_REJECTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, enum.Enum):
    """One actor's verdict at one stage. Written at most once."""

    UNDECIDED = "UNDECIDED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


_decision_enum = Enum(Decision, name="decision")


class InternshipApplication(BaseModel):
    """
    A student's request to do an internship at a company.

    Created in AWAITING_ADVISOR and never deleted; REJECTED and CANCELLED
    are absorbing. Each gatekeeper owns one decision/remark pair.
    """

    __tablename__ = "internship_applications"

    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Company
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    company_contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    company_officer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    company_officer_title: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Internship
    internship_type: Mapped[InternshipType] = mapped_column(
        Enum(InternshipType, name="internship_type"), nullable=False
    )
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_days: Mapped[int] = mapped_column(Integer, nullable=False)

    # Advisor of record, bound by email at submission
    advisor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Dual-major (CAP) snapshot taken at submission
    is_dual_major: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dual_major_faculty: Mapped[str | None] = mapped_column(String(200), nullable=True)
    dual_major_department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    dual_major_programme: Mapped[str | None] = mapped_column(String(200), nullable=True)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.AWAITING_ADVISOR,
    )
    status_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    advisor_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    advisor_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    advisor_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    career_center_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    career_center_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    career_center_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    company_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    company_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # One-time company credential, SHA-256 hashed
    company_otp_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    company_otp_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    reminder_sent_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    student: Mapped[User] = relationship("User", lazy="raise")
    diary: Mapped["InternshipDiary | None"] = relationship(
        "InternshipDiary",
        back_populates="application",
        uselist=False,
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_internship_applications_status", "status"),
        Index("idx_internship_applications_contact", "company_contact_email"),
    )

    def __repr__(self) -> str:
        return f"<InternshipApplication(id={self.id}, status={self.status.value})>"

    @property
    def contact_email(self) -> str:
        """Company contact email, used to bind the one-time credential."""
        return self.company_contact_email


class InternshipDiary(BaseModel):
    """
    Post-internship logbook. At most one per application, created
    PENDING when the advisor approves the application.
    """

    __tablename__ = "internship_diaries"

    application_id: Mapped[int] = mapped_column(
        ForeignKey("internship_applications.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )
    status: Mapped[DiaryStatus] = mapped_column(
        Enum(DiaryStatus, name="diary_status"),
        nullable=False,
        default=DiaryStatus.PENDING,
    )

    # Stored file reference
    file_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    original_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    uploaded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    company_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    company_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    company_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    advisor_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    advisor_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    advisor_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    company_otp_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    company_otp_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    application: Mapped[InternshipApplication] = relationship(
        "InternshipApplication",
        back_populates="diary",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<InternshipDiary(id={self.id}, status={self.status.value})>"

    @property
    def contact_email(self) -> str:
        return self.application.company_contact_email

    @property
    def has_file(self) -> bool:
        return bool(self.file_path)


class ExemptionApplication(BaseModel):
    """
    Request to be exempted from an internship, decided by the advisor alone.
    """

    __tablename__ = "exemption_applications"

    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    advisor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    internship_type: Mapped[InternshipType] = mapped_column(
        Enum(InternshipType, name="internship_type"), nullable=False
    )
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    document_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    advisor_decision: Mapped[Decision] = mapped_column(
        _decision_enum, nullable=False, default=Decision.UNDECIDED
    )
    advisor_remark: Mapped[str | None] = mapped_column(Text, nullable=True)
    advisor_decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    student: Mapped[User] = relationship("User", lazy="raise")

    def __repr__(self) -> str:
        return f"<ExemptionApplication(id={self.id}, decision={self.advisor_decision.value})>"
