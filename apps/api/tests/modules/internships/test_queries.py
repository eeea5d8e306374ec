"""
Unit tests for advisor reads and company code access.
"""

import pytest

from app.modules.internships.cap import AcademicPath
from app.modules.internships.exceptions import CredentialInvalidError, NotFoundError
from app.modules.internships.models import ApplicationStatus, DiaryStatus
from app.modules.internships.queries import AdvisorReadService, CompanyAccessService

from workflow_doubles import CONTACT_EMAIL, build_application, build_diary


@pytest.fixture
def read_service(applications, users, guard):
    return AdvisorReadService(applications=applications, users=users, guard=guard)


@pytest.fixture
def access_service(applications, diaries, cap_resolver, otp_gate):
    return CompanyAccessService(
        applications=applications,
        diaries=diaries,
        cap_resolver=cap_resolver,
        otp_gate=otp_gate,
    )


class TestAdvisorReadService:
    @pytest.mark.asyncio
    async def test_get_application(self, read_service, application, advisor):
        view = await read_service.get_application(application.id, advisor)

        assert view.application is application
        assert view.identity.path == AcademicPath.PRIMARY

    @pytest.mark.asyncio
    async def test_get_application_hidden_from_unrelated_advisor(
        self, read_service, application, other_advisor
    ):
        with pytest.raises(NotFoundError):
            await read_service.get_application(application.id, other_advisor)

    @pytest.mark.asyncio
    async def test_get_missing_application(self, read_service, advisor):
        with pytest.raises(NotFoundError):
            await read_service.get_application(77, advisor)

    @pytest.mark.asyncio
    async def test_get_student_as_dual_major_advisor(
        self, read_service, student_user, dual_major_record, dual_major_advisor
    ):
        view = await read_service.get_student(student_user.id, dual_major_advisor)

        assert view.student is student_user
        assert view.identity.path == AcademicPath.DUAL_MAJOR
        assert view.identity.department == "Economics"

    @pytest.mark.asyncio
    async def test_get_student_unrelated(self, read_service, student_user, other_advisor):
        with pytest.raises(NotFoundError) as exc_info:
            await read_service.get_student(student_user.id, other_advisor)

        assert exc_info.value.error_code == "STUDENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_get_missing_student(self, read_service, advisor):
        with pytest.raises(NotFoundError):
            await read_service.get_student(404, advisor)


class TestCompanyAccessService:
    @pytest.mark.asyncio
    async def test_opens_application(
        self, access_service, applications, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.AWAITING_COMPANY)
        )
        code = otp_gate.issue(application)

        view = await access_service.open(company_credential(code))

        assert view.kind == "application"
        assert view.application is application
        assert view.diary is None
        assert view.identity.department == "Computer Engineering"

    @pytest.mark.asyncio
    async def test_opens_diary(
        self, access_service, applications, diaries, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.APPROVED)
        )
        diary = diaries.add(
            build_diary(
                application,
                status=DiaryStatus.AWAITING_COMPANY,
                file_path="storage/diaries/1/3f2a.pdf",
            )
        )
        code = otp_gate.issue(diary)

        view = await access_service.open(company_credential(code))

        assert view.kind == "diary"
        assert view.diary is diary
        assert view.application is application

    @pytest.mark.asyncio
    async def test_unknown_code(
        self, access_service, applications, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.AWAITING_COMPANY)
        )
        code = otp_gate.issue(application)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(CredentialInvalidError):
            await access_service.open(company_credential(wrong))

    @pytest.mark.asyncio
    async def test_code_for_other_contact(
        self, access_service, applications, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.AWAITING_COMPANY)
        )
        code = otp_gate.issue(application)

        with pytest.raises(CredentialInvalidError):
            await access_service.open(company_credential(code, "someone@else.example.com"))

    @pytest.mark.asyncio
    async def test_decided_application_no_longer_opens(
        self, access_service, applications, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.AWAITING_COMPANY)
        )
        code = otp_gate.issue(application)
        application.status = ApplicationStatus.REJECTED

        with pytest.raises(CredentialInvalidError):
            await access_service.open(company_credential(code))

    @pytest.mark.asyncio
    async def test_contact_email_case_insensitive(
        self, access_service, applications, student_user, otp_gate, company_credential
    ):
        application = applications.add(
            build_application(student_user, status=ApplicationStatus.AWAITING_COMPANY)
        )
        code = otp_gate.issue(application)

        view = await access_service.open(company_credential(code, CONTACT_EMAIL.upper()))

        assert view.application is application
