"""
Unit tests for the authorization guard.
"""

import pytest

from app.core.auth import CurrentUser
from app.modules.internships.cap import AcademicPath
from app.modules.internships.exceptions import NotFoundError
from app.modules.users.models import UserRole

from workflow_doubles import DUAL_MAJOR_ADVISOR_EMAIL, build_application, build_exemption


class TestMayAdvise:
    """Tests for AuthorizationGuard.may_advise."""

    @pytest.mark.asyncio
    async def test_bound_advisor(self, guard, application, advisor):
        assert await guard.may_advise(application, advisor) is True

    @pytest.mark.asyncio
    async def test_email_match_ignores_case(self, guard, application):
        caller = CurrentUser(id=10, email="Ayse.Demir@University.edu.tr", role=UserRole.ADVISOR)
        assert await guard.may_advise(application, caller) is True

    @pytest.mark.asyncio
    async def test_other_advisor(self, guard, application, other_advisor):
        assert await guard.may_advise(application, other_advisor) is False

    @pytest.mark.asyncio
    async def test_dual_major_advisor_on_dual_major_application(
        self, guard, student_user, dual_major_record, dual_major_advisor
    ):
        application = build_application(student_user, is_dual_major=True)
        assert await guard.may_advise(application, dual_major_advisor) is True

    @pytest.mark.asyncio
    async def test_dual_major_advisor_on_primary_application(
        self, guard, application, dual_major_record, dual_major_advisor
    ):
        """A dual-major record alone does not open primary-programme applications."""
        assert await guard.may_advise(application, dual_major_advisor) is False


class TestEnsureAdvisor:
    @pytest.mark.asyncio
    async def test_passes_for_bound_advisor(self, guard, application, advisor):
        await guard.ensure_advisor(application, advisor)

    @pytest.mark.asyncio
    async def test_raises_not_found(self, guard, application, other_advisor):
        with pytest.raises(NotFoundError) as exc_info:
            await guard.ensure_advisor(application, other_advisor)

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_reports_given_resource(self, guard, application, other_advisor):
        with pytest.raises(NotFoundError) as exc_info:
            await guard.ensure_advisor(application, other_advisor, resource="diary", record_id=500)

        assert exc_info.value.error_code == "DIARY_NOT_FOUND"
        assert exc_info.value.context["id"] == 500


class TestEnsureOwner:
    def test_owner_passes(self, guard, application, student):
        guard.ensure_owner(application, student)

    def test_other_student_gets_not_found(self, guard, application):
        intruder = CurrentUser(
            id=101, email="veli@student.university.edu.tr", role=UserRole.STUDENT
        )

        with pytest.raises(NotFoundError):
            guard.ensure_owner(application, intruder)


class TestEnsureExemptionAdvisor:
    def test_bound_advisor(self, guard, student_user, advisor):
        guard.ensure_exemption_advisor(build_exemption(student_user), advisor)

    def test_other_advisor(self, guard, student_user, dual_major_advisor):
        exemption = build_exemption(student_user)

        with pytest.raises(NotFoundError) as exc_info:
            guard.ensure_exemption_advisor(exemption, dual_major_advisor)

        assert exc_info.value.error_code == "EXEMPTION_NOT_FOUND"


class TestResolveStudent:
    @pytest.mark.asyncio
    async def test_returns_identity(self, guard, application, student_user, advisor):
        identity = await guard.resolve_student(student_user, advisor)
        assert identity.path == AcademicPath.PRIMARY

    @pytest.mark.asyncio
    async def test_unrelated_advisor_gets_student_not_found(
        self, guard, student_user, other_advisor
    ):
        with pytest.raises(NotFoundError) as exc_info:
            await guard.resolve_student(student_user, other_advisor)

        assert exc_info.value.error_code == "STUDENT_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unrelated_advisor_gets_application_not_found(
        self, guard, application, student_user, other_advisor
    ):
        with pytest.raises(NotFoundError) as exc_info:
            await guard.resolve_student(student_user, other_advisor, application)

        assert exc_info.value.error_code == "APPLICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_dual_major_advisor_without_application(
        self, guard, student_user, dual_major_record
    ):
        caller = CurrentUser(id=11, email=DUAL_MAJOR_ADVISOR_EMAIL, role=UserRole.ADVISOR)

        identity = await guard.resolve_student(student_user, caller)

        assert identity.path == AcademicPath.DUAL_MAJOR
