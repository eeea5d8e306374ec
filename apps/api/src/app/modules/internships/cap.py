"""
Dual-major (CAP) resolution.

A student enrolled in a second programme has two academic identities and
two advisors. Given a student and the advisor asking, the resolver
decides which identity (faculty, department, class) applies and whether
the advisor may see the student at all.

Resolution order, first match wins:

1. The student has a dual-major record whose designated advisor is the
   caller: dual-major identity. Each field prefers the application's CAP
   snapshot, then the dual-major record, then the primary record.
2. The caller is advisor of record on one of the student's applications
   or exemption requests: primary identity.
3. Otherwise the caller is not authorized and ``resolve`` returns None.
"""

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from app.core.auth import CurrentUser
from app.modules.internships.helpers import emails_match
from app.modules.internships.models import InternshipApplication
from app.modules.internships.repository import ApplicationRepository, ExemptionRepository
from app.modules.users.models import DualMajorRecord, User
from app.modules.users.repository import DualMajorRepository, UserRepository

logger = logging.getLogger(__name__)


class AcademicPath(str, enum.Enum):
    DUAL_MAJOR = "DUAL_MAJOR"
    PRIMARY = "PRIMARY"


@dataclass(frozen=True)
class AcademicIdentity:
    """The academic identity that applies to one student for one advisor."""

    path: AcademicPath
    faculty: str | None
    department: str | None
    class_name: str | None
    advisor: User | None
    dual_major_record: DualMajorRecord | None = None


DisplayLookup = Callable[[DualMajorRepository, User, int | None], Awaitable[DualMajorRecord | None]]


async def _by_student_number_and_advisor(
    repo: DualMajorRepository, student: User, advisor_id: int | None
) -> DualMajorRecord | None:
    if not student.student_number or advisor_id is None:
        return None
    return await repo.find_by_student_number_and_advisor(student.student_number, advisor_id)


async def _by_student_and_advisor(
    repo: DualMajorRepository, student: User, advisor_id: int | None
) -> DualMajorRecord | None:
    if advisor_id is None:
        return None
    return await repo.find_by_student_and_advisor(student.id, advisor_id)


async def _by_student(
    repo: DualMajorRepository, student: User, advisor_id: int | None
) -> DualMajorRecord | None:
    return await repo.find_by_student(student.id)


# Tried in order; the first non-empty result wins
DISPLAY_LOOKUP_STRATEGIES: tuple[DisplayLookup, ...] = (
    _by_student_number_and_advisor,
    _by_student_and_advisor,
    _by_student,
)


def _first_present(*values: str | None) -> str | None:
    for value in values:
        if value:
            return value
    return None


def is_dual_major_advisor(record: DualMajorRecord | None, operator: CurrentUser) -> bool:
    """True if ``operator`` is the advisor designated on ``record``."""
    if record is None or record.advisor_id is None:
        return False
    if record.advisor_id == operator.id:
        return True
    return record.advisor is not None and emails_match(record.advisor.email, operator.email)


class CapResolver:
    """Resolve academic identity and advisor visibility for a student."""

    def __init__(
        self,
        *,
        dual_majors: DualMajorRepository,
        applications: ApplicationRepository,
        exemptions: ExemptionRepository,
        users: UserRepository,
    ):
        self.dual_majors = dual_majors
        self.applications = applications
        self.exemptions = exemptions
        self.users = users

    async def resolve(
        self,
        student: User,
        operator: CurrentUser,
        application: InternshipApplication | None = None,
    ) -> AcademicIdentity | None:
        """
        Resolve the identity ``operator`` sees for ``student``.

        Returns:
            The identity, or None when the operator has no relation to the student
        """
        record = await self.dual_majors.find_by_student(student.id)
        if is_dual_major_advisor(record, operator):
            return self._dual_major_identity(student, record, application)

        if await self._is_advisor_of_record(student, operator):
            advisor = await self.users.get_by_email(operator.email)
            return AcademicIdentity(
                path=AcademicPath.PRIMARY,
                faculty=student.faculty,
                department=student.department,
                class_name=student.class_name,
                advisor=advisor,
            )

        logger.info(f"Advisor {operator.id} has no relation to student {student.id}")
        return None

    async def find_display_record(
        self, student: User, advisor_id: int | None
    ) -> DualMajorRecord | None:
        """
        Best-available dual-major record for display, trying each lookup
        strategy in turn.
        """
        for strategy in DISPLAY_LOOKUP_STRATEGIES:
            record = await strategy(self.dual_majors, student, advisor_id)
            if record is not None:
                return record
        return None

    async def display_identity(
        self, application: InternshipApplication, advisor_id: int | None = None
    ) -> AcademicIdentity:
        """
        Identity to show on an application without an authorization
        decision (company view, notification emails).
        """
        student = application.student
        if application.is_dual_major:
            if advisor_id is None:
                bound_advisor = await self.users.get_by_email(application.advisor_email)
                advisor_id = bound_advisor.id if bound_advisor else None
            record = await self.find_display_record(student, advisor_id)
            return self._dual_major_identity(student, record, application)
        return AcademicIdentity(
            path=AcademicPath.PRIMARY,
            faculty=student.faculty,
            department=student.department,
            class_name=student.class_name,
            advisor=None,
        )

    async def _is_advisor_of_record(self, student: User, operator: CurrentUser) -> bool:
        if await self.applications.advisor_has_application(student.id, operator.email):
            return True
        return await self.exemptions.advisor_has_exemption(student.id, operator.email)

    @staticmethod
    def _dual_major_identity(
        student: User,
        record: DualMajorRecord | None,
        application: InternshipApplication | None,
    ) -> AcademicIdentity:
        snapshot_faculty = application.dual_major_faculty if application else None
        snapshot_department = application.dual_major_department if application else None
        return AcademicIdentity(
            path=AcademicPath.DUAL_MAJOR,
            faculty=_first_present(
                snapshot_faculty, record.faculty if record else None, student.faculty
            ),
            department=_first_present(
                snapshot_department, record.department if record else None, student.department
            ),
            class_name=_first_present(
                record.display_class if record else None, student.class_name
            ),
            advisor=record.advisor if record else None,
            dual_major_record=record,
        )
