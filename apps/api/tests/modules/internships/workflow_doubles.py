"""
Test doubles and builders for internship workflow tests.

The fake repositories mimic the conditional updates of the real ones:
a transition only applies when the row is still in the expected status.
ORM rows are built in memory with every column set explicitly, since
column defaults only apply on INSERT.
"""

from datetime import UTC, datetime, timedelta
from itertools import count

from app.modules.internships.models import (
    ApplicationStatus,
    Decision,
    DiaryStatus,
    ExemptionApplication,
    InternshipApplication,
    InternshipDiary,
    InternshipType,
)
from app.modules.internships.notifications import NotificationResult
from app.modules.users.models import DualMajorRecord, User, UserRole

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

ADVISOR_EMAIL = "ayse.demir@university.edu.tr"
DUAL_MAJOR_ADVISOR_EMAIL = "mehmet.kaya@university.edu.tr"
CONTACT_EMAIL = "hr@acme.example.com"


# ============================================
# Test doubles
# ============================================


class FixedClock:
    """Callable clock that tests move by hand."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeApplicationRepository:
    def __init__(self):
        self.rows: dict[int, InternshipApplication] = {}
        self.reminders: dict[int, datetime] = {}

    def add(self, application: InternshipApplication) -> InternshipApplication:
        self.rows[application.id] = application
        return application

    async def get_by_id(self, application_id, *, refresh=False):
        return self.rows.get(application_id)

    async def transition(self, application_id, from_status, to_status, **values):
        application = self.rows.get(application_id)
        if application is None or application.status != from_status:
            return None
        application.status = to_status
        for key, value in values.items():
            setattr(application, key, value)
        return application

    async def update_in_status(self, application_id, status, **values):
        application = self.rows.get(application_id)
        if application is None or application.status != status:
            return None
        for key, value in values.items():
            setattr(application, key, value)
        return application

    async def advisor_has_application(self, student_id, advisor_email):
        return any(
            a.student_id == student_id and a.advisor_email.lower() == advisor_email.lower()
            for a in self.rows.values()
        )

    async def list_awaiting_company_for_contact(self, contact_email):
        return [
            a
            for a in self.rows.values()
            if a.status == ApplicationStatus.AWAITING_COMPANY
            and a.company_contact_email.lower() == contact_email.lower()
        ]

    async def mark_reminder_sent(self, application_id, sent_at):
        self.reminders[application_id] = sent_at


class FakeDiaryRepository:
    def __init__(
        self,
        applications: FakeApplicationRepository,
        dual_majors: "FakeDualMajorRepository | None" = None,
    ):
        self.applications = applications
        self.dual_majors = dual_majors
        self.rows: dict[int, InternshipDiary] = {}
        self._ids = count(500)

    def add(self, diary: InternshipDiary) -> InternshipDiary:
        self.rows[diary.id] = diary
        return diary

    async def get_by_id(self, diary_id, *, refresh=False):
        return self.rows.get(diary_id)

    async def get_by_application(self, application_id):
        for diary in self.rows.values():
            if diary.application_id == application_id:
                return diary
        return None

    async def create_once(self, application_id):
        existing = await self.get_by_application(application_id)
        if existing is not None:
            return existing
        diary = build_diary(
            id=next(self._ids),
            application=self.applications.rows[application_id],
        )
        return self.add(diary)

    async def transition(self, diary_id, from_status, to_status, **values):
        diary = self.rows.get(diary_id)
        if diary is None or diary.status != from_status:
            return None
        diary.status = to_status
        for key, value in values.items():
            setattr(diary, key, value)
        return diary

    def _advises_dual_major(self, application, advisor_id):
        if not application.is_dual_major or self.dual_majors is None:
            return False
        return any(
            r.student_id == application.student_id and r.advisor_id == advisor_id
            for r in self.dual_majors.rows
        )

    async def list_for_advisor(self, advisor_id, advisor_email, application_statuses):
        return [
            d
            for d in self.rows.values()
            if (
                d.application.advisor_email.lower() == advisor_email.lower()
                or self._advises_dual_major(d.application, advisor_id)
            )
            and d.application.status in application_statuses
        ]

    async def list_awaiting_company_for_contact(self, contact_email):
        return [
            d
            for d in self.rows.values()
            if d.status == DiaryStatus.AWAITING_COMPANY
            and d.application.company_contact_email.lower() == contact_email.lower()
        ]


class FakeExemptionRepository:
    def __init__(self):
        self.rows: dict[int, ExemptionApplication] = {}

    def add(self, exemption: ExemptionApplication) -> ExemptionApplication:
        self.rows[exemption.id] = exemption
        return exemption

    async def get_by_id(self, exemption_id, *, refresh=False):
        return self.rows.get(exemption_id)

    async def decide(self, exemption_id, decision, remark, decided_at):
        exemption = self.rows.get(exemption_id)
        if exemption is None or exemption.advisor_decision != Decision.UNDECIDED:
            return None
        exemption.advisor_decision = decision
        exemption.advisor_remark = remark
        exemption.advisor_decided_at = decided_at
        return exemption

    async def advisor_has_exemption(self, student_id, advisor_email):
        return any(
            e.student_id == student_id and e.advisor_email.lower() == advisor_email.lower()
            for e in self.rows.values()
        )


class FakeUserRepository:
    def __init__(self):
        self.rows: dict[int, User] = {}

    def add(self, user: User) -> User:
        self.rows[user.id] = user
        return user

    async def get_by_id(self, user_id):
        return self.rows.get(user_id)

    async def get_by_email(self, email):
        for user in self.rows.values():
            if user.email.lower() == email.strip().lower():
                return user
        return None


class FakeDualMajorRepository:
    def __init__(self):
        self.rows: list[DualMajorRecord] = []
        self.calls: list[str] = []

    def add(self, record: DualMajorRecord) -> DualMajorRecord:
        self.rows.append(record)
        return record

    async def find_by_student(self, student_id):
        self.calls.append("find_by_student")
        return next((r for r in self.rows if r.student_id == student_id), None)

    async def find_by_student_and_advisor(self, student_id, advisor_id):
        self.calls.append("find_by_student_and_advisor")
        return next(
            (r for r in self.rows if r.student_id == student_id and r.advisor_id == advisor_id),
            None,
        )

    async def find_by_student_number_and_advisor(self, student_number, advisor_id):
        self.calls.append("find_by_student_number_and_advisor")
        return next(
            (
                r
                for r in self.rows
                if r.student.student_number == student_number and r.advisor_id == advisor_id
            ),
            None,
        )


class FakeAuditLog:
    def __init__(self):
        self.entries: list[dict] = []

    async def append(self, action, **fields):
        self.entries.append({"action": action, **fields})

    @property
    def actions(self):
        return [entry["action"] for entry in self.entries]


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    async def send(self, notification):
        self.sent.append(notification)
        return NotificationResult(delivered=True)

    def kinds(self):
        return [n.kind for n in self.sent]


class FailingNotifier:
    def __init__(self):
        self.attempts = 0

    async def send(self, notification):
        self.attempts += 1
        raise RuntimeError("SMTP relay unreachable")


# ============================================
# Builders
# ============================================


def build_user(id: int, email: str, role: UserRole = UserRole.STUDENT, **fields) -> User:
    values = {
        "first_name": "Test",
        "last_name": f"User{id}",
        "student_number": None,
        "faculty": None,
        "department": None,
        "class_name": None,
        "advisor_id": None,
    }
    values.update(fields)
    return User(id=id, email=email, role=role, **values)


def build_application(student: User, **fields) -> InternshipApplication:
    values = {
        "id": 1,
        "student_id": student.id,
        "company_name": "Acme Yazılım",
        "company_contact_email": CONTACT_EMAIL,
        "internship_type": InternshipType.ZORUNLU_STAJ,
        "start_date": NOW + timedelta(days=7),
        "end_date": NOW + timedelta(days=52),
        "total_days": 30,
        "advisor_email": ADVISOR_EMAIL,
        "is_dual_major": False,
        "dual_major_faculty": None,
        "dual_major_department": None,
        "dual_major_programme": None,
        "status": ApplicationStatus.AWAITING_ADVISOR,
        "status_changed_at": NOW,
        "advisor_decision": Decision.UNDECIDED,
        "advisor_remark": None,
        "career_center_decision": Decision.UNDECIDED,
        "career_center_remark": None,
        "company_decision": Decision.UNDECIDED,
        "company_remark": None,
        "cancellation_reason": None,
        "cancelled_at": None,
        "company_otp_hash": None,
        "company_otp_expires_at": None,
        "reminder_sent_at": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(fields)
    application = InternshipApplication(**values)
    application.student = student
    return application


def build_diary(application: InternshipApplication, **fields) -> InternshipDiary:
    values = {
        "id": 500,
        "application_id": application.id,
        "status": DiaryStatus.PENDING,
        "file_path": None,
        "original_file_name": None,
        "file_size": None,
        "uploaded_at": None,
        "company_decision": Decision.UNDECIDED,
        "company_remark": None,
        "advisor_decision": Decision.UNDECIDED,
        "advisor_remark": None,
        "company_otp_hash": None,
        "company_otp_expires_at": None,
    }
    values.update(fields)
    diary = InternshipDiary(**values)
    diary.application = application
    return diary


def build_exemption(student: User, **fields) -> ExemptionApplication:
    values = {
        "id": 900,
        "student_id": student.id,
        "advisor_email": ADVISOR_EMAIL,
        "internship_type": InternshipType.ISTEGE_BAGLI_STAJ,
        "reason": "Previously completed an equivalent internship abroad.",
        "advisor_decision": Decision.UNDECIDED,
        "advisor_remark": None,
        "advisor_decided_at": None,
    }
    values.update(fields)
    exemption = ExemptionApplication(**values)
    exemption.student = student
    return exemption

