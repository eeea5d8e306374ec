"""
One-time credential gate for company representatives.

Company officers have no accounts. When an application (or diary)
reaches AWAITING_COMPANY a short numeric code is issued, emailed to the
company contact, and stored on the record as a SHA-256 hash plus an
expiry. Every company action presents the code together with the
contact email; the code is revoked once the company decides.

Security considerations:
- Codes come from ``secrets`` and are never stored or logged in plain text
- Comparison uses ``hmac.compare_digest``
- The code is bound to the record's contact email (case-insensitive)
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Protocol

from app.core.config import settings
from app.modules.internships.exceptions import CredentialInvalidError
from app.modules.internships.helpers import Clock, emails_match, mask_email, utcnow

logger = logging.getLogger(__name__)


class CredentialHolder(Protocol):
    """Anything carrying a company credential: applications and diaries."""

    id: int
    company_otp_hash: str | None
    company_otp_expires_at: datetime | None

    @property
    def contact_email(self) -> str: ...


@dataclass(frozen=True)
class CompanyCredential:
    """What a company representative presents: contact email and code."""

    email: str
    code: str


def hash_code(code: str) -> str:
    """SHA-256 hex digest of a code."""
    return hashlib.sha256(code.encode()).hexdigest()


class OneTimeCredentialGate:
    """Issue, verify and revoke company one-time codes."""

    def __init__(
        self,
        *,
        length: int | None = None,
        ttl: timedelta | None = None,
        clock: Clock = utcnow,
    ):
        self.length = length or settings.otp_length
        self.ttl = ttl or timedelta(days=settings.otp_expiry_days)
        self.clock = clock

    def generate(self) -> str:
        """A zero-padded numeric code of ``length`` digits."""
        return f"{secrets.randbelow(10**self.length):0{self.length}d}"

    def mint(self) -> tuple[str, dict[str, Any]]:
        """A fresh plain-text code and the column values that store it."""
        code = self.generate()
        return code, {
            "company_otp_hash": hash_code(code),
            "company_otp_expires_at": self.clock() + self.ttl,
        }

    def issue(self, record: CredentialHolder) -> str:
        """
        Store a fresh code on ``record`` and return it in plain text.

        Any previous code is overwritten. The caller persists the record
        and delivers the code.
        """
        code, values = self.mint()
        for column, value in values.items():
            setattr(record, column, value)
        logger.info(
            f"Issued company credential for {type(record).__name__} {record.id} "
            f"to {mask_email(record.contact_email)}"
        )
        return code

    def is_valid(self, record: CredentialHolder, credential: CompanyCredential) -> bool:
        if not record.company_otp_hash or record.company_otp_expires_at is None:
            return False
        if not emails_match(record.contact_email, credential.email):
            return False
        if record.company_otp_expires_at < self.clock():
            return False
        presented = hash_code(credential.code.strip())
        return hmac.compare_digest(presented, record.company_otp_hash)

    def verify(self, record: CredentialHolder, credential: CompanyCredential) -> None:
        """
        Raises:
            CredentialInvalidError: If the code is absent, wrong, bound to
                another email, or expired
        """
        if not self.is_valid(record, credential):
            logger.warning(
                f"Company credential rejected for {type(record).__name__} {record.id} "
                f"({mask_email(credential.email)})"
            )
            raise CredentialInvalidError(record.id)

    @staticmethod
    def revoke(record: CredentialHolder) -> None:
        record.company_otp_hash = None
        record.company_otp_expires_at = None
