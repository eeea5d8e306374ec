"""
Internship Schemas

Pydantic schemas for request validation and response serialization.

Business rules on free text (non-blank rejection reasons, the 10
character cancellation minimum) are enforced by the services so they
surface as 400 responses with an error code, not as 422s.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.modules.internships.cap import AcademicIdentity, AcademicPath
from app.modules.internships.diary_service import DiaryDecision
from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    DiaryStatus,
    InternshipType,
)
from app.modules.internships.otp import CompanyCredential

# ============================================
# Requests
# ============================================


class ApproveRequest(BaseModel):
    remark: str | None = Field(None, max_length=2000)


class RejectRequest(BaseModel):
    reason: str = Field(..., max_length=2000)


class CancelRequest(BaseModel):
    reason: str = Field(..., max_length=2000)


class CompanyCredentialIn(BaseModel):
    """Contact email plus the one-time code sent to it."""

    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)

    def to_credential(self) -> CompanyCredential:
        return CompanyCredential(email=str(self.email), code=self.code)


class CompanyApproveRequest(BaseModel):
    credential: CompanyCredentialIn
    remark: str | None = Field(None, max_length=2000)


class CompanyRejectRequest(BaseModel):
    credential: CompanyCredentialIn
    reason: str = Field(..., max_length=2000)


class DiaryDecisionRequest(BaseModel):
    decision: DiaryDecision
    remark: str | None = Field(None, max_length=2000)


class CompanyDiaryDecisionRequest(BaseModel):
    credential: CompanyCredentialIn
    decision: DiaryDecision
    remark: str | None = Field(None, max_length=2000)


# ============================================
# Responses
# ============================================


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    company_name: str
    company_contact_email: str
    internship_type: InternshipType
    start_date: datetime
    end_date: datetime
    total_days: int
    advisor_email: str
    is_dual_major: bool
    status: ApplicationStatus
    advisor_decision: Decision
    advisor_remark: str | None = None
    career_center_decision: Decision
    career_center_remark: str | None = None
    company_decision: Decision
    company_remark: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CareerCenterApproveResponse(BaseModel):
    application: ApplicationResponse
    message: str = "Application forwarded to the company. A confirmation code was sent."


class DiaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    status: DiaryStatus
    original_file_name: str | None = None
    uploaded_at: datetime | None = None
    company_decision: Decision
    company_remark: str | None = None
    advisor_decision: Decision
    advisor_remark: str | None = None


class StudentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    student_number: str | None = None


class AcademicIdentityResponse(BaseModel):
    path: AcademicPath
    faculty: str | None = None
    department: str | None = None
    class_name: str | None = None
    advisor_name: str | None = None
    advisor_email: str | None = None

    @classmethod
    def from_identity(cls, identity: AcademicIdentity) -> "AcademicIdentityResponse":
        advisor = identity.advisor
        return cls(
            path=identity.path,
            faculty=identity.faculty,
            department=identity.department,
            class_name=identity.class_name,
            advisor_name=advisor.full_name if advisor else None,
            advisor_email=advisor.email if advisor else None,
        )


class AdvisorApplicationDetail(BaseModel):
    application: ApplicationResponse
    student: StudentSummary
    identity: AcademicIdentityResponse


class StudentDetailResponse(BaseModel):
    student: StudentSummary
    identity: AcademicIdentityResponse


class DiaryWorklistItemResponse(BaseModel):
    diary: DiaryResponse
    student: StudentSummary
    company_name: str
    start_date: datetime
    end_date: datetime
    internship_running: bool
    upload_window_open: bool
    upload_deadline: datetime


class CompanyApplicationSummary(BaseModel):
    """What a company representative sees; no internal remarks."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    company_name: str
    internship_type: InternshipType
    start_date: datetime
    end_date: datetime
    total_days: int
    status: ApplicationStatus


class CompanyAccessResponse(BaseModel):
    kind: str
    application: CompanyApplicationSummary
    student_name: str
    student_number: str | None = None
    identity: AcademicIdentityResponse
    diary: DiaryResponse | None = None


class ExemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    internship_type: InternshipType
    advisor_decision: Decision
    advisor_remark: str | None = None
    advisor_decided_at: datetime | None = None
