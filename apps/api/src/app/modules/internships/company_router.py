"""
Company Router

Endpoints for company representatives. There is no account: each request
carries the contact email and the one-time code that was emailed to it.

Endpoints:
- POST /company/access                        - Open the record a code was issued for
- POST /company/applications/{id}/approve     - Confirm the internship
- POST /company/applications/{id}/reject      - Decline the internship
- POST /company/diaries/{id}/decide           - Approve or reject the diary

Security:
- Every endpoint is rate limited per client address and contact email
- Wrong, expired or mismatched codes return 401 CREDENTIAL_INVALID
"""

import logging

from fastapi import APIRouter, Depends, Request

from app.core.rate_limit import enforce_credential_rate_limit
from app.modules.internships.dependencies import (
    get_application_state_machine,
    get_company_access_service,
    get_diary_state_machine,
)
from app.modules.internships.diary_service import DiaryStateMachine
from app.modules.internships.exceptions import InternshipServiceError
from app.modules.internships.helpers import raise_http_error
from app.modules.internships.queries import CompanyAccessService
from app.modules.internships.schemas import (
    AcademicIdentityResponse,
    ApplicationResponse,
    CompanyAccessResponse,
    CompanyApplicationSummary,
    CompanyApproveRequest,
    CompanyCredentialIn,
    CompanyDiaryDecisionRequest,
    CompanyRejectRequest,
    DiaryResponse,
)
from app.modules.internships.service import ApplicationStateMachine

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    401: {"description": "Invalid or expired one-time code"},
    404: {"description": "Record not found or not awaiting the company"},
    429: {"description": "Too many attempts"},
}


@router.post(
    "/access",
    response_model=CompanyAccessResponse,
    summary="Open Record",
    responses=_ERROR_RESPONSES,
)
async def open_record(
    request: Request,
    data: CompanyCredentialIn,
    access: CompanyAccessService = Depends(get_company_access_service),
) -> CompanyAccessResponse:
    """Find the application or diary awaiting this company's decision."""
    await enforce_credential_rate_limit(request, str(data.email))
    try:
        view = await access.open(data.to_credential())
    except InternshipServiceError as e:
        raise_http_error(e)

    student = view.application.student
    return CompanyAccessResponse(
        kind=view.kind,
        application=CompanyApplicationSummary.model_validate(view.application),
        student_name=student.full_name,
        student_number=student.student_number,
        identity=AcademicIdentityResponse.from_identity(view.identity),
        diary=DiaryResponse.model_validate(view.diary) if view.diary else None,
    )


@router.post(
    "/applications/{application_id}/approve",
    response_model=ApplicationResponse,
    summary="Confirm Internship",
    responses=_ERROR_RESPONSES,
)
async def approve_application(
    request: Request,
    application_id: int,
    data: CompanyApproveRequest,
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    await enforce_credential_rate_limit(request, str(data.credential.email))
    try:
        application = await machine.company_approve(
            application_id, data.credential.to_credential(), data.remark
        )
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/reject",
    response_model=ApplicationResponse,
    summary="Decline Internship",
    responses={**_ERROR_RESPONSES, 400: {"description": "Reason missing"}},
)
async def reject_application(
    request: Request,
    application_id: int,
    data: CompanyRejectRequest,
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    await enforce_credential_rate_limit(request, str(data.credential.email))
    try:
        application = await machine.company_reject(
            application_id, data.credential.to_credential(), data.reason
        )
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/diaries/{diary_id}/decide",
    response_model=DiaryResponse,
    summary="Decide Diary",
    responses=_ERROR_RESPONSES,
)
async def decide_diary(
    request: Request,
    diary_id: int,
    data: CompanyDiaryDecisionRequest,
    machine: DiaryStateMachine = Depends(get_diary_state_machine),
) -> DiaryResponse:
    await enforce_credential_rate_limit(request, str(data.credential.email))
    try:
        diary = await machine.company_decide(
            diary_id, data.credential.to_credential(), data.decision, data.remark
        )
    except InternshipServiceError as e:
        raise_http_error(e)
    return DiaryResponse.model_validate(diary)
