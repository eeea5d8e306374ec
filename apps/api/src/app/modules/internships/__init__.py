"""
Internships Module

Approval workflow for student internships:
1. Advisor approves or rejects the application (approval creates the diary)
2. Career center approves or rejects; approval emails the company a one-time code
3. The company confirms or declines using that code
4. After the internship ends the student uploads a diary, which the
   company and then the advisor review

Students may cancel while the application still awaits the advisor.
Advisors also decide exemption requests.

API Endpoints:
- /advisor/...        - Advisor decisions, CAP-scoped reads, diary worklist
- /career-center/...  - Career center decisions, code reissue
- /company/...        - One-time-code access and company decisions
- /students/...       - Application cancellation, diary upload

Security Features:
- Company codes stored as SHA-256 hashes, bound to the contact email
- Rate limiting on every code-bearing endpoint
- Conditional status updates, so concurrent decisions cannot both apply
- Authorization failures are reported as 404s

Background Jobs (via APScheduler):
- send_pending_approval_reminders: Daily, reminds whoever holds a stale application
"""

from .advisor_router import router as advisor_router
from .career_center_router import router as career_center_router
from .company_router import router as company_router
from .jobs import register_internship_jobs
from .student_router import router as student_router

__all__ = [
    "advisor_router",
    "career_center_router",
    "company_router",
    "register_internship_jobs",
    "student_router",
]
