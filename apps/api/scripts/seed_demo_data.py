"""
Seed Demo Data

Creates a small set of users and one pending application so the workflow
can be exercised locally:
- a career center officer
- a primary advisor and a dual-major advisor
- a dual-major student with a pending application

Prints a signed access token for each account.

Usage:
    cd apps/api
    python scripts/seed_demo_data.py
"""

import asyncio
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.security import create_access_token
from app.modules.audit.models import AuditLogEntry  # noqa: F401 - needed for mapper setup
from app.modules.internships.models import (
    ApplicationStatus,
    InternshipApplication,
    InternshipType,
)
from app.modules.users.models import DualMajorRecord, User, UserRole


async def _get_or_create_user(db: AsyncSession, **fields) -> User:
    result = await db.execute(select(User).where(User.email == fields["email"]))
    user = result.scalar_one_or_none()
    if user:
        print(f"User already exists: {user.email} (ID: {user.id})")
        return user

    user = User(**fields)
    db.add(user)
    await db.flush()
    print(f"Created {user.role.value.lower()}: {user.email} (ID: {user.id})")
    return user


def _print_tokens(user: User) -> None:
    token = create_access_token(
        str(user.id), email=user.email, role=user.role.value, name=user.full_name
    )
    print(f"  {user.email}")
    print(f"    {token}")


async def seed_demo_data() -> None:
    """Create demo accounts and a pending application if missing."""
    engine = create_async_engine(settings.database_url, echo=False)
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as db:
        career_center = await _get_or_create_user(
            db,
            email=settings.career_center_email,
            first_name="Kariyer",
            last_name="Merkezi",
            role=UserRole.CAREER_CENTER,
        )
        advisor = await _get_or_create_user(
            db,
            email="ayse.demir@university.edu.tr",
            first_name="Ayşe",
            last_name="Demir",
            role=UserRole.ADVISOR,
        )
        dual_major_advisor = await _get_or_create_user(
            db,
            email="mehmet.kaya@university.edu.tr",
            first_name="Mehmet",
            last_name="Kaya",
            role=UserRole.ADVISOR,
        )
        student = await _get_or_create_user(
            db,
            email="ali.yilmaz@student.university.edu.tr",
            first_name="Ali",
            last_name="Yılmaz",
            role=UserRole.STUDENT,
            student_number="2021123456",
            faculty="Faculty of Engineering",
            department="Computer Engineering",
            class_name="4",
            advisor_id=advisor.id,
        )

        result = await db.execute(
            select(DualMajorRecord).where(DualMajorRecord.student_id == student.id)
        )
        if result.scalar_one_or_none() is None:
            db.add(
                DualMajorRecord(
                    student_id=student.id,
                    faculty="Faculty of Economics",
                    department="Economics",
                    programme="Economics (Dual Major)",
                    class_name="3",
                    advisor_id=dual_major_advisor.id,
                )
            )
            print(f"Created dual-major record for student {student.id}")

        result = await db.execute(
            select(InternshipApplication).where(InternshipApplication.student_id == student.id)
        )
        if result.scalars().first() is None:
            start = datetime.now(UTC) + timedelta(days=14)
            application = InternshipApplication(
                student_id=student.id,
                company_name="Acme Yazılım A.Ş.",
                company_address="Maslak, İstanbul",
                company_contact_email="hr@acme.example.com",
                company_officer_name="Zeynep Arslan",
                company_officer_title="HR Manager",
                internship_type=InternshipType.ZORUNLU_STAJ,
                start_date=start,
                end_date=start + timedelta(days=27),
                total_days=20,
                advisor_email=advisor.email,
                is_dual_major=True,
                dual_major_faculty="Faculty of Economics",
                dual_major_department="Economics",
                dual_major_programme="Economics (Dual Major)",
                status=ApplicationStatus.AWAITING_ADVISOR,
                status_changed_at=datetime.now(UTC),
            )
            db.add(application)
            await db.flush()
            print(f"Created application {application.id} awaiting advisor")

        await db.commit()

        print()
        print("Tokens:")
        for user in (career_center, advisor, dual_major_advisor, student):
            _print_tokens(user)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
