"""create internship workflow tables

Revision ID: 3b1f0c9a7d21
Revises:
Create Date: 2026-09-28 12:00:00.000000

This migration creates the full schema for the internship approval workflow:
1. users and dual_major_records
2. internship_applications, internship_diaries and exemption_applications
3. audit_log_entries

Enum types are created up front with checkfirst so the migration can be
rerun against a database where an earlier attempt created them.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b1f0c9a7d21"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


user_role = postgresql.ENUM(
    "STUDENT", "ADVISOR", "CAREER_CENTER", "ADMIN", name="user_role", create_type=False
)
internship_type = postgresql.ENUM(
    "IMU_402",
    "IMU_404",
    "MESLEKI_EGITIM_UYGULAMALI_DERS",
    "ISTEGE_BAGLI_STAJ",
    "ZORUNLU_STAJ",
    name="internship_type",
    create_type=False,
)
application_status = postgresql.ENUM(
    "AWAITING_ADVISOR",
    "AWAITING_CAREER_CENTER",
    "AWAITING_COMPANY",
    "APPROVED",
    "REJECTED",
    "CANCELLED",
    name="application_status",
    create_type=False,
)
diary_status = postgresql.ENUM(
    "PENDING",
    "AWAITING_COMPANY",
    "COMPANY_REJECTED",
    "AWAITING_ADVISOR",
    "ADVISOR_REJECTED",
    "APPROVED",
    "REJECTED",
    name="diary_status",
    create_type=False,
)
decision = postgresql.ENUM(
    "UNDECIDED", "APPROVED", "REJECTED", name="decision", create_type=False
)
audit_action = postgresql.ENUM(
    "ADVISOR_APPROVED",
    "ADVISOR_REJECTED",
    "CAREER_CENTER_APPROVED",
    "CAREER_CENTER_REJECTED",
    "COMPANY_APPROVED",
    "COMPANY_REJECTED",
    "APPLICATION_CANCELLED",
    "COMPANY_CREDENTIAL_ISSUED",
    "DIARY_UPLOADED",
    "DIARY_COMPANY_APPROVED",
    "DIARY_COMPANY_REJECTED",
    "DIARY_ADVISOR_APPROVED",
    "DIARY_ADVISOR_REJECTED",
    "EXEMPTION_APPROVED",
    "EXEMPTION_REJECTED",
    name="audit_action",
    create_type=False,
)

_ENUMS = (user_role, internship_type, application_status, diary_status, decision, audit_action)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _decision_columns(prefix: str) -> list[sa.Column]:
    return [
        sa.Column(
            f"{prefix}_decision",
            decision,
            server_default="UNDECIDED",
            nullable=False,
        ),
        sa.Column(f"{prefix}_remark", sa.Text(), nullable=True),
        sa.Column(f"{prefix}_decided_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create enum types and workflow tables."""
    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.create(bind, checkfirst=True)

    # users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("student_number", sa.String(length=20), nullable=True),
        sa.Column("faculty", sa.String(length=200), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("class_name", sa.String(length=50), nullable=True),
        sa.Column("advisor_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["advisor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_student_number", "users", ["student_number"], unique=True)
    op.create_index("ix_users_advisor_id", "users", ["advisor_id"], unique=False)

    # dual_major_records
    op.create_table(
        "dual_major_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("faculty", sa.String(length=200), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("programme", sa.String(length=200), nullable=True),
        sa.Column("class_name", sa.String(length=50), nullable=True),
        sa.Column("advisor_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["advisor_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_dual_major_records_student_id", "dual_major_records", ["student_id"], unique=True
    )
    op.create_index(
        "ix_dual_major_records_advisor_id", "dual_major_records", ["advisor_id"], unique=False
    )

    # internship_applications
    op.create_table(
        "internship_applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("company_phone", sa.String(length=30), nullable=True),
        sa.Column("company_contact_email", sa.String(length=255), nullable=False),
        sa.Column("company_officer_name", sa.String(length=200), nullable=True),
        sa.Column("company_officer_title", sa.String(length=200), nullable=True),
        sa.Column("internship_type", internship_type, nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_days", sa.Integer(), nullable=False),
        sa.Column("advisor_email", sa.String(length=255), nullable=False),
        sa.Column("is_dual_major", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("dual_major_faculty", sa.String(length=200), nullable=True),
        sa.Column("dual_major_department", sa.String(length=200), nullable=True),
        sa.Column("dual_major_programme", sa.String(length=200), nullable=True),
        sa.Column(
            "status",
            application_status,
            server_default="AWAITING_ADVISOR",
            nullable=False,
        ),
        sa.Column("status_changed_at", sa.DateTime(timezone=True), nullable=True),
        *_decision_columns("advisor"),
        *_decision_columns("career_center"),
        *_decision_columns("company"),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("company_otp_hash", sa.String(length=64), nullable=True),
        sa.Column("company_otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_internship_applications_student_id",
        "internship_applications",
        ["student_id"],
        unique=False,
    )
    op.create_index(
        "ix_internship_applications_advisor_email",
        "internship_applications",
        ["advisor_email"],
        unique=False,
    )
    op.create_index(
        "idx_internship_applications_status", "internship_applications", ["status"], unique=False
    )
    op.create_index(
        "idx_internship_applications_contact",
        "internship_applications",
        ["company_contact_email"],
        unique=False,
    )

    # internship_diaries
    op.create_table(
        "internship_diaries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("status", diary_status, server_default="PENDING", nullable=False),
        sa.Column("file_path", sa.String(length=500), nullable=True),
        sa.Column("original_file_name", sa.String(length=255), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        *_decision_columns("company"),
        *_decision_columns("advisor"),
        sa.Column("company_otp_hash", sa.String(length=64), nullable=True),
        sa.Column("company_otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["application_id"], ["internship_applications.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id"),
    )

    # exemption_applications
    op.create_table(
        "exemption_applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("advisor_email", sa.String(length=255), nullable=False),
        sa.Column("internship_type", internship_type, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("document_path", sa.String(length=500), nullable=True),
        *_decision_columns("advisor"),
        sa.ForeignKeyConstraint(["student_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_exemption_applications_student_id",
        "exemption_applications",
        ["student_id"],
        unique=False,
    )
    op.create_index(
        "ix_exemption_applications_advisor_email",
        "exemption_applications",
        ["advisor_email"],
        unique=False,
    )

    # audit_log_entries
    op.create_table(
        "audit_log_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("actor_email", sa.String(length=255), nullable=False),
        sa.Column("detail", sa.Text(), nullable=True),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.Column("diary_id", sa.Integer(), nullable=True),
        sa.Column("exemption_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["application_id"], ["internship_applications.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["diary_id"], ["internship_diaries.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(
            ["exemption_id"], ["exemption_applications.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_audit_log_application", "audit_log_entries", ["application_id"], unique=False
    )
    op.create_index("idx_audit_log_diary", "audit_log_entries", ["diary_id"], unique=False)


def downgrade() -> None:
    """Drop workflow tables and enum types."""
    op.drop_index("idx_audit_log_diary", table_name="audit_log_entries")
    op.drop_index("idx_audit_log_application", table_name="audit_log_entries")
    op.drop_table("audit_log_entries")

    op.drop_index("ix_exemption_applications_advisor_email", table_name="exemption_applications")
    op.drop_index("ix_exemption_applications_student_id", table_name="exemption_applications")
    op.drop_table("exemption_applications")

    op.drop_table("internship_diaries")

    op.drop_index("idx_internship_applications_contact", table_name="internship_applications")
    op.drop_index("idx_internship_applications_status", table_name="internship_applications")
    op.drop_index(
        "ix_internship_applications_advisor_email", table_name="internship_applications"
    )
    op.drop_index("ix_internship_applications_student_id", table_name="internship_applications")
    op.drop_table("internship_applications")

    op.drop_index("ix_dual_major_records_advisor_id", table_name="dual_major_records")
    op.drop_index("ix_dual_major_records_student_id", table_name="dual_major_records")
    op.drop_table("dual_major_records")

    op.drop_index("ix_users_advisor_id", table_name="users")
    op.drop_index("ix_users_student_number", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in reversed(_ENUMS):
        enum_type.drop(bind, checkfirst=True)
