"""
User Models

Students, academic advisors and career center staff, plus the
dual-major (CAP) record that links a student to a second programme and
its own advisor.
"""

from enum import Enum

from sqlalchemy import ForeignKey, String
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.shared import BaseModel


class UserRole(str, Enum):
    """User roles in the system."""

    STUDENT = "STUDENT"
    ADVISOR = "ADVISOR"
    CAREER_CENTER = "CAREER_CENTER"
    ADMIN = "ADMIN"


class User(BaseModel):
    """
    Identity record for every human actor.

    Student-only columns (student number, faculty, department, class and
    primary advisor) stay NULL for staff.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        ENUM(UserRole, name="user_role", create_type=True),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Student academic record (primary programme)
    student_number: Mapped[str | None] = mapped_column(
        String(20), unique=True, index=True, nullable=True
    )
    faculty: Mapped[str | None] = mapped_column(String(200), nullable=True)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    class_name: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # ON DELETE SET NULL: students outlive advisor accounts
    advisor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    advisor: Mapped["User | None"] = relationship(
        "User",
        remote_side="User.id",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class DualMajorRecord(BaseModel):
    """
    Dual-major (CAP) enrolment of a student.

    ``advisor_id`` is the advisor designated for the second programme; they
    may act on the student's dual-major internship work.
    """

    __tablename__ = "dual_major_records"

    student_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    faculty: Mapped[str | None] = mapped_column(String(200), nullable=True)
    department: Mapped[str | None] = mapped_column(String(200), nullable=True)
    programme: Mapped[str | None] = mapped_column(String(200), nullable=True)
    class_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    advisor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )

    student: Mapped[User] = relationship("User", foreign_keys=[student_id], lazy="raise")
    advisor: Mapped[User | None] = relationship("User", foreign_keys=[advisor_id], lazy="raise")

    def __repr__(self) -> str:
        return f"<DualMajorRecord(student_id={self.student_id}, advisor_id={self.advisor_id})>"

    @property
    def display_class(self) -> str | None:
        """``department - programme`` when both exist, else whichever is set."""
        if self.department and self.programme:
            return f"{self.department} - {self.programme}"
        return self.department or self.programme
