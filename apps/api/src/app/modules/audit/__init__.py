"""
Audit module - append-only log of workflow transitions.
"""

from app.modules.audit.models import AuditAction, AuditLogEntry
from app.modules.audit.repository import AuditLogRepository

__all__ = ["AuditAction", "AuditLogEntry", "AuditLogRepository"]
