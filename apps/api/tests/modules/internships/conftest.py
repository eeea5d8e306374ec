"""
Fixtures for internship workflow tests.

Services run against the in-memory repositories in workflow_doubles. The
session itself is an AsyncMock; only commit and rollback are observed.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from workflow_doubles import (
    ADVISOR_EMAIL,
    CONTACT_EMAIL,
    DUAL_MAJOR_ADVISOR_EMAIL,
    FakeApplicationRepository,
    FakeAuditLog,
    FakeDiaryRepository,
    FakeDualMajorRepository,
    FakeExemptionRepository,
    FakeUserRepository,
    FixedClock,
    RecordingNotifier,
    build_application,
    build_user,
)

from app.core.auth import CurrentUser
from app.modules.internships.cap import CapResolver
from app.modules.internships.diary_service import DiaryStateMachine
from app.modules.internships.exemption_service import ExemptionService
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.otp import CompanyCredential, OneTimeCredentialGate
from app.modules.internships.service import ApplicationStateMachine
from app.modules.users.models import DualMajorRecord, UserRole


# ============================================
# Fixtures
# ============================================


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def applications():
    return FakeApplicationRepository()


@pytest.fixture
def diaries(applications, dual_majors):
    return FakeDiaryRepository(applications, dual_majors)


@pytest.fixture
def exemptions():
    return FakeExemptionRepository()


@pytest.fixture
def users():
    return FakeUserRepository()


@pytest.fixture
def dual_majors():
    return FakeDualMajorRepository()


@pytest.fixture
def audit():
    return FakeAuditLog()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def otp_gate(clock):
    return OneTimeCredentialGate(length=6, ttl=timedelta(days=30), clock=clock)


@pytest.fixture
def cap_resolver(dual_majors, applications, exemptions, users):
    return CapResolver(
        dual_majors=dual_majors,
        applications=applications,
        exemptions=exemptions,
        users=users,
    )


@pytest.fixture
def guard(cap_resolver):
    return AuthorizationGuard(cap_resolver)


@pytest.fixture
def advisor_user(users):
    return users.add(build_user(10, ADVISOR_EMAIL, UserRole.ADVISOR, first_name="Ayşe"))


@pytest.fixture
def dual_major_advisor_user(users):
    return users.add(
        build_user(11, DUAL_MAJOR_ADVISOR_EMAIL, UserRole.ADVISOR, first_name="Mehmet")
    )


@pytest.fixture
def student_user(users, advisor_user):
    return users.add(
        build_user(
            100,
            "ali.yilmaz@student.university.edu.tr",
            first_name="Ali",
            last_name="Yılmaz",
            student_number="2021123456",
            faculty="Faculty of Engineering",
            department="Computer Engineering",
            class_name="4",
            advisor_id=advisor_user.id,
        )
    )


@pytest.fixture
def advisor(advisor_user):
    return CurrentUser(id=advisor_user.id, email=ADVISOR_EMAIL, role=UserRole.ADVISOR)


@pytest.fixture
def dual_major_advisor(dual_major_advisor_user):
    return CurrentUser(
        id=dual_major_advisor_user.id, email=DUAL_MAJOR_ADVISOR_EMAIL, role=UserRole.ADVISOR
    )


@pytest.fixture
def other_advisor():
    return CurrentUser(id=12, email="someone.else@university.edu.tr", role=UserRole.ADVISOR)


@pytest.fixture
def career_center():
    return CurrentUser(id=1, email="kariyer@university.edu.tr", role=UserRole.CAREER_CENTER)


@pytest.fixture
def student(student_user):
    return CurrentUser(id=student_user.id, email=student_user.email, role=UserRole.STUDENT)


@pytest.fixture
def application(applications, student_user):
    return applications.add(build_application(student_user))


@pytest.fixture
def dual_major_record(dual_majors, student_user, dual_major_advisor_user):
    record = DualMajorRecord(
        id=1,
        student_id=student_user.id,
        faculty="Faculty of Economics",
        department="Economics",
        programme="Economics (Dual Major)",
        class_name="3",
        advisor_id=dual_major_advisor_user.id,
    )
    record.student = student_user
    record.advisor = dual_major_advisor_user
    return dual_majors.add(record)


@pytest.fixture
def machine(mock_db, applications, diaries, audit, guard, otp_gate, notifier, clock):
    return ApplicationStateMachine(
        mock_db,
        applications=applications,
        diaries=diaries,
        audit=audit,
        guard=guard,
        otp_gate=otp_gate,
        notifier=notifier,
        clock=clock,
        career_center_email="kariyer@university.edu.tr",
    )


@pytest.fixture
def diary_machine(mock_db, applications, diaries, audit, guard, otp_gate, notifier, clock):
    return DiaryStateMachine(
        mock_db,
        applications=applications,
        diaries=diaries,
        audit=audit,
        guard=guard,
        otp_gate=otp_gate,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def exemption_service(mock_db, exemptions, audit, guard, notifier, clock):
    return ExemptionService(
        mock_db,
        exemptions=exemptions,
        audit=audit,
        guard=guard,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def company_credential():
    def _make(code: str, email: str = CONTACT_EMAIL) -> CompanyCredential:
        return CompanyCredential(email=email, code=code)

    return _make
