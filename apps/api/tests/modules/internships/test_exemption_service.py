"""
Unit tests for exemption decisions.
"""

from unittest.mock import AsyncMock

import pytest

from app.modules.audit.models import AuditAction
from app.modules.internships.exceptions import BadRequestError, NotFoundError
from app.modules.internships.models import Decision
from app.modules.internships.notifications import NotificationKind

from workflow_doubles import NOW, build_exemption


@pytest.fixture
def exemption(exemptions, student_user):
    return exemptions.add(build_exemption(student_user))


class TestExemptionDecisions:
    @pytest.mark.asyncio
    async def test_approve(self, exemption_service, exemption, audit, notifier, advisor):
        updated = await exemption_service.approve(exemption.id, advisor, " Equivalent ")

        assert updated.advisor_decision == Decision.APPROVED
        assert updated.advisor_remark == "Equivalent"
        assert updated.advisor_decided_at == NOW
        assert audit.actions == [AuditAction.EXEMPTION_APPROVED]
        assert audit.entries[0]["exemption_id"] == exemption.id
        assert notifier.kinds() == [NotificationKind.EXEMPTION_DECISION]
        assert notifier.sent[0].context["approved"] is True

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, exemption_service, exemption, advisor):
        with pytest.raises(BadRequestError):
            await exemption_service.reject(exemption.id, advisor, "")

        assert exemption.advisor_decision == Decision.UNDECIDED

    @pytest.mark.asyncio
    async def test_reject(self, exemption_service, exemption, audit, notifier, advisor):
        updated = await exemption_service.reject(exemption.id, advisor, "No supporting document")

        assert updated.advisor_decision == Decision.REJECTED
        assert audit.actions == [AuditAction.EXEMPTION_REJECTED]
        assert notifier.sent[0].context["approved"] is False

    @pytest.mark.asyncio
    async def test_decision_is_write_once(self, exemption_service, exemption, advisor):
        await exemption_service.approve(exemption.id, advisor)

        with pytest.raises(NotFoundError) as exc_info:
            await exemption_service.reject(exemption.id, advisor, "Changed my mind")

        assert exc_info.value.error_code == "EXEMPTION_NOT_FOUND"
        assert exemption.advisor_decision == Decision.APPROVED

    @pytest.mark.asyncio
    async def test_other_advisor_gets_not_found(
        self, exemption_service, exemption, audit, other_advisor
    ):
        with pytest.raises(NotFoundError):
            await exemption_service.approve(exemption.id, other_advisor)

        assert audit.entries == []

    @pytest.mark.asyncio
    async def test_unknown_exemption(self, exemption_service, advisor):
        with pytest.raises(NotFoundError):
            await exemption_service.approve(12345, advisor)

    @pytest.mark.asyncio
    async def test_lost_race_rolls_back(
        self, exemption_service, exemptions, exemption, audit, mock_db, advisor
    ):
        exemptions.decide = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await exemption_service.approve(exemption.id, advisor)

        mock_db.rollback.assert_awaited_once()
        assert audit.entries == []
