"""
User Repository

Lookups for users and dual-major records. Repositories are bound to a
session so they can be injected into the internship services.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.modules.users.models import DualMajorRecord, User

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Case-insensitive email lookup."""
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()


class DualMajorRepository:
    """
    Dual-major record lookups.

    Each finder eager-loads the designated advisor, since callers compare
    the advisor's email against the acting user.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    def _select(self):
        return select(DualMajorRecord).options(selectinload(DualMajorRecord.advisor))

    async def find_by_student(self, student_id: int) -> DualMajorRecord | None:
        result = await self.db.execute(
            self._select().where(DualMajorRecord.student_id == student_id)
        )
        return result.scalar_one_or_none()

    async def find_by_student_and_advisor(
        self, student_id: int, advisor_id: int
    ) -> DualMajorRecord | None:
        result = await self.db.execute(
            self._select().where(
                DualMajorRecord.student_id == student_id,
                DualMajorRecord.advisor_id == advisor_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_student_number_and_advisor(
        self, student_number: str, advisor_id: int
    ) -> DualMajorRecord | None:
        """Match through the student's number rather than the row id."""
        result = await self.db.execute(
            self._select()
            .join(User, User.id == DualMajorRecord.student_id)
            .where(
                User.student_number == student_number,
                DualMajorRecord.advisor_id == advisor_id,
            )
        )
        return result.scalars().first()
