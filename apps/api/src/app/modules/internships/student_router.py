"""
Student Router

Endpoints:
- POST /students/applications/{id}/cancel - Withdraw an application
- POST /students/applications/{id}/diary  - Upload the internship diary (PDF)
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.core.auth import CurrentUser, get_current_student
from app.modules.internships.dependencies import (
    get_application_state_machine,
    get_diary_file_store,
    get_diary_state_machine,
)
from app.modules.internships.diary_service import (
    MAX_DIARY_FILE_SIZE,
    DiaryStateMachine,
    DiaryUpload,
)
from app.modules.internships.exceptions import InternshipServiceError
from app.modules.internships.helpers import raise_http_error
from app.modules.internships.schemas import ApplicationResponse, CancelRequest, DiaryResponse
from app.modules.internships.service import ApplicationStateMachine
from app.modules.internships.storage import DiaryFileStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/applications/{application_id}/cancel",
    response_model=ApplicationResponse,
    summary="Cancel Application",
    description="""
Withdraw an application before the advisor has decided.

**Requirements:**
- Caller owns the application
- Application is `AWAITING_ADVISOR`
- Reason is at least 10 characters after trimming
""",
    responses={
        400: {"description": "Reason shorter than 10 characters"},
        404: {"description": "Not found, not yours, or no longer cancellable"},
    },
)
async def cancel_application(
    application_id: int,
    data: CancelRequest,
    student: CurrentUser = Depends(get_current_student),
    machine: ApplicationStateMachine = Depends(get_application_state_machine),
) -> ApplicationResponse:
    try:
        application = await machine.cancel(application_id, student, data.reason)
    except InternshipServiceError as e:
        raise_http_error(e)
    return ApplicationResponse.model_validate(application)


@router.post(
    "/applications/{application_id}/diary",
    response_model=DiaryResponse,
    summary="Upload Diary",
    description="""
Upload the internship diary for an approved application.

**Requirements:**
- Caller owns the application and it is `APPROVED`
- The diary is still `PENDING`
- The internship has ended, at most 5 days ago
- PDF, at most 50 MB

**Effects:**
- Diary becomes `AWAITING_COMPANY`
- A one-time code is emailed to the company contact
""",
    responses={
        400: {"description": "Not a PDF, empty, or too large"},
        404: {"description": "Not found, not yours, or not awaiting a diary"},
        409: {"description": "Outside the upload window"},
    },
)
async def upload_diary(
    application_id: int,
    file: UploadFile = File(...),
    student: CurrentUser = Depends(get_current_student),
    machine: DiaryStateMachine = Depends(get_diary_state_machine),
    store: DiaryFileStore = Depends(get_diary_file_store),
) -> DiaryResponse:
    # One byte past the limit is enough to reject the file
    content = await file.read(MAX_DIARY_FILE_SIZE + 1)
    file_path = await store.save(application_id, content)
    upload = DiaryUpload(
        file_path=file_path,
        original_file_name=file.filename or "diary.pdf",
        file_size=len(content),
        content_type=file.content_type or "",
    )
    try:
        diary = await machine.upload(application_id, student, upload)
    except InternshipServiceError as e:
        await store.delete(file_path)
        raise_http_error(e)
    except Exception:
        await store.delete(file_path)
        raise
    return DiaryResponse.model_validate(diary)
