"""
Career Center Router

Endpoints for career center staff (CAREER_CENTER or ADMIN tokens).

Endpoints:
- POST /career-center/applications/{id}/approve            - Forward to the company
- POST /career-center/applications/{id}/reject             - Reject with a reason
- POST /career-center/applications/{id}/resend-credential  - Reissue the company code
"""

import logging

from fastapi import APIRouter, Depends

from app.core.auth import CurrentUser, get_current_career_center
from app.modules.internships.dependencies import get_application_state_machine
from app.modules.internships.exceptions import InternshipServiceError
from app.modules.internships.helpers import raise_http_error
from app.modules.internships.schemas import (
    ApplicationResponse,
    ApproveRequest,
    CareerCenterApproveResponse,
    RejectRequest,
)
from app.modules.internships.service import ApplicationStateMachine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/applications/{application_id}/approve",
    response_model=CareerCenterApproveResponse,
    summary="Approve Application",
    description="""
Approve an application on behalf of the career center.

**Requirements:**
- Application is `AWAITING_CAREER_CENTER`

**Effects:**
- Status becomes `AWAITING_COMPANY`
- A one-time code is issued and emailed to the company contact
""",
)
async def approve_application(
    application_id: int,
    data: ApproveRequest,
    operator: CurrentUser = Depends(get_current_career_center),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> CareerCenterApproveResponse:
    try:
        result = await machine.career_center_approve(application_id, operator, data.remark)
    except InternshipServiceError as e:
        raise_http_error(e)
    return CareerCenterApproveResponse(
        application=ApplicationResponse.model_validate(result.application)
    )


@router.post(
    "/applications/{application_id}/reject",
    response_model=ApplicationResponse,
    summary="Reject Application",
)
async def reject_application(
    application_id: int,
    data: RejectRequest,
    operator: CurrentUser = Depends(get_current_career_center),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    try:
        application = await machine.career_center_reject(application_id, operator, data.reason)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/resend-credential",
    response_model=CareerCenterApproveResponse,
    summary="Resend Company Code",
)
async def resend_company_credential(
    application_id: int,
    operator: CurrentUser = Depends(get_current_career_center),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> CareerCenterApproveResponse:
    """Issue a fresh code to the company contact; the old one stops working."""
    try:
        result = await machine.resend_company_credential(application_id, operator)
    except InternshipServiceError as e:
        raise_http_error(e)
    return CareerCenterApproveResponse(
        application=ApplicationResponse.model_validate(result.application),
        message="A new confirmation code was sent to the company.",
    )
