"""
Authorization guard.

Checked before every transition, after the record has been loaded:

- Advisor-stage operations: the caller is the advisor bound to the
  application by email, or, for a dual-major application, the advisor
  designated on the student's dual-major record.
- Advisor reads of a student: CapResolver must resolve an identity.
- Cancellation: the caller owns the application.
- Company operations go through the OneTimeCredentialGate instead.

A failed check raises NotFoundError, so callers cannot discover records
they are not allowed to see.
"""

import logging

from app.core.auth import CurrentUser
from app.modules.internships.cap import AcademicIdentity, CapResolver, is_dual_major_advisor
from app.modules.internships.exceptions import NotFoundError
from app.modules.internships.helpers import emails_match
from app.modules.internships.models import ExemptionApplication, InternshipApplication
from app.modules.users.models import User

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Record-level scoping for authenticated actors."""

    def __init__(self, cap_resolver: CapResolver):
        self.cap_resolver = cap_resolver

    async def may_advise(self, application: InternshipApplication, advisor: CurrentUser) -> bool:
        if emails_match(application.advisor_email, advisor.email):
            return True
        if not application.is_dual_major:
            return False
        record = await self.cap_resolver.dual_majors.find_by_student(application.student_id)
        return is_dual_major_advisor(record, advisor)

    async def ensure_advisor(
        self,
        application: InternshipApplication,
        advisor: CurrentUser,
        *,
        resource: str = "application",
        record_id: int | None = None,
    ) -> None:
        """
        Raises:
            NotFoundError: If ``advisor`` may not act on the application
        """
        if not await self.may_advise(application, advisor):
            logger.warning(
                f"Advisor {advisor.id} is not bound to application {application.id}"
            )
            raise NotFoundError(resource, record_id if record_id is not None else application.id)

    @staticmethod
    def ensure_exemption_advisor(exemption: ExemptionApplication, advisor: CurrentUser) -> None:
        if not emails_match(exemption.advisor_email, advisor.email):
            logger.warning(f"Advisor {advisor.id} is not bound to exemption {exemption.id}")
            raise NotFoundError("exemption", exemption.id)

    @staticmethod
    def ensure_owner(application: InternshipApplication, student: CurrentUser) -> None:
        if application.student_id != student.id:
            logger.warning(f"Student {student.id} does not own application {application.id}")
            raise NotFoundError("application", application.id)

    async def resolve_student(
        self,
        student: User,
        advisor: CurrentUser,
        application: InternshipApplication | None = None,
    ) -> AcademicIdentity:
        """
        Resolve the identity ``advisor`` may see for ``student``.

        Raises:
            NotFoundError: If the advisor has no relation to the student
        """
        identity = await self.cap_resolver.resolve(student, advisor, application)
        if identity is None:
            if application is not None:
                raise NotFoundError("application", application.id)
            raise NotFoundError("student", student.id)
        return identity
