"""
Service wiring for FastAPI.

Builds each service from a request-scoped session. Tests override these
dependencies to inject doubles.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.audit.repository import AuditLogRepository
from app.modules.internships.cap import CapResolver
from app.modules.internships.diary_service import DiaryStateMachine
from app.modules.internships.exemption_service import ExemptionService
from app.modules.internships.guard import AuthorizationGuard
from app.modules.internships.notifications import EmailNotifier
from app.modules.internships.otp import OneTimeCredentialGate
from app.modules.internships.queries import AdvisorReadService, CompanyAccessService
from app.modules.internships.repository import (
    ApplicationRepository,
    DiaryRepository,
    ExemptionRepository,
)
from app.modules.internships.service import ApplicationStateMachine
from app.modules.internships.storage import DiaryFileStore
from app.modules.users.repository import DualMajorRepository, UserRepository


def _cap_resolver(db: AsyncSession) -> CapResolver:
    return CapResolver(
        dual_majors=DualMajorRepository(db),
        applications=ApplicationRepository(db),
        exemptions=ExemptionRepository(db),
        users=UserRepository(db),
    )


async def get_application_state_machine(
    db: AsyncSession = Depends(get_db),
) -> ApplicationStateMachine:
    return ApplicationStateMachine(
        db,
        applications=ApplicationRepository(db),
        diaries=DiaryRepository(db),
        audit=AuditLogRepository(db),
        guard=AuthorizationGuard(_cap_resolver(db)),
        otp_gate=OneTimeCredentialGate(),
        notifier=EmailNotifier(),
    )


async def get_diary_state_machine(db: AsyncSession = Depends(get_db)) -> DiaryStateMachine:
    return DiaryStateMachine(
        db,
        applications=ApplicationRepository(db),
        diaries=DiaryRepository(db),
        audit=AuditLogRepository(db),
        guard=AuthorizationGuard(_cap_resolver(db)),
        otp_gate=OneTimeCredentialGate(),
        notifier=EmailNotifier(),
    )


async def get_exemption_service(db: AsyncSession = Depends(get_db)) -> ExemptionService:
    return ExemptionService(
        db,
        exemptions=ExemptionRepository(db),
        audit=AuditLogRepository(db),
        guard=AuthorizationGuard(_cap_resolver(db)),
        notifier=EmailNotifier(),
    )


async def get_advisor_read_service(db: AsyncSession = Depends(get_db)) -> AdvisorReadService:
    return AdvisorReadService(
        applications=ApplicationRepository(db),
        users=UserRepository(db),
        guard=AuthorizationGuard(_cap_resolver(db)),
    )


def get_diary_file_store() -> DiaryFileStore:
    return DiaryFileStore()


async def get_company_access_service(
    db: AsyncSession = Depends(get_db),
) -> CompanyAccessService:
    return CompanyAccessService(
        applications=ApplicationRepository(db),
        diaries=DiaryRepository(db),
        cap_resolver=_cap_resolver(db),
        otp_gate=OneTimeCredentialGate(),
    )
