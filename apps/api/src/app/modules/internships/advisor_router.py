"""
Advisor Router

Endpoints for academic advisors. All require an ADVISOR token; which
records an advisor may touch is decided by the AuthorizationGuard.

Endpoints:
- GET  /advisor/applications/{id}          - Application with resolved academic identity
- POST /advisor/applications/{id}/approve  - Approve (creates the diary)
- POST /advisor/applications/{id}/reject   - Reject with a reason
- GET  /advisor/students/{id}              - Student with resolved academic identity
- GET  /advisor/diaries                    - Diary worklist
- POST /advisor/diaries/{id}/decide        - Final diary decision
- POST /advisor/exemptions/{id}/approve    - Approve an exemption request
- POST /advisor/exemptions/{id}/reject     - Reject an exemption request
"""

import logging

from fastapi import APIRouter, Depends

from app.core.auth import CurrentUser, get_current_advisor
from app.modules.internships.dependencies import (
    get_advisor_read_service,
    get_application_state_machine,
    get_diary_state_machine,
    get_exemption_service,
)
from app.modules.internships.diary_service import DiaryStateMachine
from app.modules.internships.exceptions import InternshipServiceError
from app.modules.internships.exemption_service import ExemptionService
from app.modules.internships.helpers import raise_http_error
from app.modules.internships.queries import AdvisorReadService
from app.modules.internships.schemas import (
    AcademicIdentityResponse,
    AdvisorApplicationDetail,
    ApplicationResponse,
    ApproveRequest,
    DiaryDecisionRequest,
    DiaryResponse,
    DiaryWorklistItemResponse,
    ExemptionResponse,
    RejectRequest,
    StudentDetailResponse,
    StudentSummary,
)
from app.modules.internships.service import ApplicationStateMachine

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES = {
    401: {"description": "Unauthorized - invalid or missing token"},
    403: {"description": "Forbidden - not an advisor"},
    404: {"description": "Not found, not in the required state, or not yours"},
}


# ============================================
# Applications
# ============================================


@router.get(
    "/applications/{application_id}",
    response_model=AdvisorApplicationDetail,
    summary="Get Application",
    responses=_ERROR_RESPONSES,
)
async def get_application(
    application_id: int,
    advisor: CurrentUser = Depends(get_current_advisor),
    reads: AdvisorReadService = Depends(get_advisor_read_service),
) -> AdvisorApplicationDetail:
    """Application detail with the academic identity that applies to this advisor."""
    try:
        view = await reads.get_application(application_id, advisor)
    except InternshipServiceError as e:
        raise_http_error(e)
    return AdvisorApplicationDetail(
        application=ApplicationResponse.model_validate(view.application),
        student=StudentSummary.model_validate(view.application.student),
        identity=AcademicIdentityResponse.from_identity(view.identity),
    )


@router.post(
    "/applications/{application_id}/approve",
    response_model=ApplicationResponse,
    summary="Approve Application",
    description="""
Approve an application as its advisor of record.

**Requirements:**
- Application is `AWAITING_ADVISOR`
- Caller is the bound advisor (or the student's dual-major advisor)

**Effects:**
- Status becomes `AWAITING_CAREER_CENTER`
- The internship diary is created in `PENDING`
- Student and career center are notified
""",
    responses=_ERROR_RESPONSES,
)
async def approve_application(
    application_id: int,
    data: ApproveRequest,
    advisor: CurrentUser = Depends(get_current_advisor),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    try:
        application = await machine.advisor_approve(application_id, advisor, data.remark)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/reject",
    response_model=ApplicationResponse,
    summary="Reject Application",
    responses={**_ERROR_RESPONSES, 400: {"description": "Reason missing"}},
)
async def reject_application(
    application_id: int,
    data: RejectRequest,
    advisor: CurrentUser = Depends(get_current_advisor),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    try:
        application = await machine.advisor_reject(application_id, advisor, data.reason)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


# ============================================
# Students
# ============================================


@router.get(
    "/students/{student_id}",
    response_model=StudentDetailResponse,
    summary="Get Student",
    responses=_ERROR_RESPONSES,
)
async def get_student(
    student_id: int,
    advisor: CurrentUser = Depends(get_current_advisor),
    reads: AdvisorReadService = Depends(get_advisor_read_service),
) -> StudentDetailResponse:
    try:
        view = await reads.get_student(student_id, advisor)
    except InternshipServiceError as e:
        raise_http_error(e)
    return StudentDetailResponse(
        student=StudentSummary.model_validate(view.student),
        identity=AcademicIdentityResponse.from_identity(view.identity),
    )


# ============================================
# Diaries
# ============================================


@router.get(
    "/diaries",
    response_model=list[DiaryWorklistItemResponse],
    summary="Diary Worklist",
)
async def diary_worklist(
    advisor: CurrentUser = Depends(get_current_advisor),
    machine: DiaryStateMachine = Depends(get_diary_state_machine),
) -> list[DiaryWorklistItemResponse]:
    """
    Diaries of the advisor's students whose internship has started.

    Overdue diaries that were never uploaded are left out.
    """
    items = await machine.advisor_worklist(advisor)
    return [
        DiaryWorklistItemResponse(
            diary=DiaryResponse.model_validate(item.diary),
            student=StudentSummary.model_validate(item.diary.application.student),
            company_name=item.diary.application.company_name,
            start_date=item.diary.application.start_date,
            end_date=item.diary.application.end_date,
            internship_running=item.internship_running,
            upload_window_open=item.upload_window_open,
            upload_deadline=item.upload_deadline,
        )
        for item in items
    ]


@router.post(
    "/diaries/{diary_id}/decide",
    response_model=DiaryResponse,
    summary="Decide Diary",
    responses=_ERROR_RESPONSES,
)
async def decide_diary(
    diary_id: int,
    data: DiaryDecisionRequest,
    advisor: CurrentUser = Depends(get_current_advisor),
    machine: DiaryStateMachine = Depends(get_diary_state_machine),
) -> DiaryResponse:
    try:
        diary = await machine.advisor_decide(diary_id, advisor, data.decision, data.remark)
    except InternshipServiceError as e:
        raise_http_error(e)
    return DiaryResponse.model_validate(diary)


# ============================================
# Exemptions
# ============================================


@router.post(
    "/exemptions/{exemption_id}/approve",
    response_model=ExemptionResponse,
    summary="Approve Exemption",
    responses=_ERROR_RESPONSES,
)
async def approve_exemption(
    exemption_id: int,
    data: ApproveRequest,
    advisor: CurrentUser = Depends(get_current_advisor),
    service: ExemptionService = Depends(get_exemption_service),
) -> ExemptionResponse:
    try:
        exemption = await service.approve(exemption_id, advisor, data.remark)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ExemptionResponse.model_validate(exemption)


@router.post(
    "/exemptions/{exemption_id}/reject",
    response_model=ExemptionResponse,
    summary="Reject Exemption",
    responses={**_ERROR_RESPONSES, 400: {"description": "Reason missing"}},
)
async def reject_exemption(
    exemption_id: int,
    data: RejectRequest,
    advisor: CurrentUser = Depends(get_current_advisor),
    service: ExemptionService = Depends(get_exemption_service),
) -> ExemptionResponse:
    try:
        exemption = await service.reject(exemption_id, advisor, data.reason)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ExemptionResponse.model_validate(exemption)
