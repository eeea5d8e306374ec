"""
Read-side services: what an advisor may see about a student, and what a
company representative may open with a one-time code.
"""

import logging
from dataclasses import dataclass

from app.core.auth import CurrentUser
from app.modules.internships.cap import AcademicIdentity, CapResolver
from app.modules.internships.exceptions import CredentialInvalidError, NotFoundError
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.helpers import mask_email
from app.modules.internships.models import InternshipApplication, InternshipDiary
from app.modules.internships.otp import CompanyCredential, OneTimeCredentialGate
from app.modules.internships.repository import ApplicationRepository, DiaryRepository
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApplicationView:
    application: InternshipApplication
    identity: AcademicIdentity


@dataclass(frozen=True)
class StudentView:
    student: User
    identity: AcademicIdentity


@dataclass(frozen=True)
class CompanyAccessView:
    """The record a company code unlocks. ``diary`` is set for diary codes."""

    application: InternshipApplication
    identity: AcademicIdentity
    diary: InternshipDiary | None = None

    @property
    def kind(self) -> str:
        return "diary" if self.diary is not None else "application"


class AdvisorReadService:
    """CAP-scoped reads for advisors."""

    def __init__(
        self,
        *,
        applications: ApplicationRepository,
        users: UserRepository,
        guard: AuthorizationGuard,
    ):
        self.applications = applications
        self.users = users
        self.guard = guard

    async def get_application(
        self, application_id: int, advisor: CurrentUser
    ) -> ApplicationView:
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError("application", application_id)
        identity = await self.guard.resolve_student(application.student, advisor, application)
        return ApplicationView(application=application, identity=identity)

    async def get_student(self, student_id: int, advisor: CurrentUser) -> StudentView:
        student = await self.users.get_by_id(student_id)
        if student is None:
            raise NotFoundError("student", student_id)
        identity = await self.guard.resolve_student(student, advisor)
        return StudentView(student=student, identity=identity)


class CompanyAccessService:
    """Open the application or diary a company code was issued for."""

    def __init__(
        self,
        *,
        applications: ApplicationRepository,
        diaries: DiaryRepository,
        cap_resolver: CapResolver,
        otp_gate: OneTimeCredentialGate,
    ):
        self.applications = applications
        self.diaries = diaries
        self.cap_resolver = cap_resolver
        self.otp_gate = otp_gate

    async def open(self, credential: CompanyCredential) -> CompanyAccessView:
        """
        Raises:
            CredentialInvalidError: If no awaiting record matches the code
        """
        for application in await self.applications.list_awaiting_company_for_contact(
            credential.email
        ):
            if self.otp_gate.is_valid(application, credential):
                identity = await self.cap_resolver.display_identity(application)
                return CompanyAccessView(application=application, identity=identity)

        for diary in await self.diaries.list_awaiting_company_for_contact(credential.email):
            if self.otp_gate.is_valid(diary, credential):
                identity = await self.cap_resolver.display_identity(diary.application)
                return CompanyAccessView(
                    application=diary.application, identity=identity, diary=diary
                )

        logger.warning(f"No record matches company code for {mask_email(credential.email)}")
        raise CredentialInvalidError()
