"""
Users module - students, advisors, career center staff and CAP records.
"""

from app.modules.users.models import DualMajorRecord, User, UserRole
from app.modules.users.repository import DualMajorRepository, UserRepository

__all__ = ["DualMajorRecord", "DualMajorRepository", "User", "UserRole", "UserRepository"]
