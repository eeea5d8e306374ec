"""
Diary eligibility window.

Pure date arithmetic over an internship's start and end. All inputs are
timezone-aware datetimes; nothing here touches the database or a clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

# Days after the internship ends during which the diary may be uploaded
UPLOAD_GRACE_PERIOD = timedelta(days=5)


def upload_deadline(end: datetime) -> datetime:
    return end + UPLOAD_GRACE_PERIOD


def internship_running(now: datetime, start: datetime, end: datetime) -> bool:
    """True while start <= now <= end (both bounds inclusive)."""
    return start <= now <= end


def upload_window_open(now: datetime, start: datetime, end: datetime) -> bool:
    """
    True when end < now <= end + 5 days.

    The window opens strictly after the end instant; at exactly ``end`` the
    internship is still running. ``start`` is accepted for symmetry with
    internship_running.
    """
    return end < now <= upload_deadline(end)


@dataclass(frozen=True)
class EligibilityWindow:
    """Read-time flags for one internship at one instant."""

    start: datetime
    end: datetime

    @property
    def deadline(self) -> datetime:
        return upload_deadline(self.end)

    def has_started(self, now: datetime) -> bool:
        return now >= self.start

    def is_running(self, now: datetime) -> bool:
        return internship_running(now, self.start, self.end)

    def is_upload_open(self, now: datetime) -> bool:
        return upload_window_open(now, self.start, self.end)

    def is_past_deadline(self, now: datetime) -> bool:
        return now > self.deadline
