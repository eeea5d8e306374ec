from fastapi import APIRouter

from app.modules.internships import (
    advisor_router,
    career_center_router,
    company_router,
    student_router,
)

api_router = APIRouter()

api_router.include_router(advisor_router, prefix="/advisor", tags=["Advisor"])

api_router.include_router(
    career_center_router, prefix="/career-center", tags=["Career Center"]
)

api_router.include_router(company_router, prefix="/company", tags=["Company"])

api_router.include_router(student_router, prefix="/students", tags=["Students"])
