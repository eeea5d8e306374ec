"""
Unit tests for the company one-time credential gate.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from app.modules.internships.exceptions import CredentialInvalidError
from app.modules.internships.otp import CompanyCredential, OneTimeCredentialGate, hash_code

from workflow_doubles import CONTACT_EMAIL, build_application


class TestHashCode:
    def test_returns_sha256_hex(self):
        result = hash_code("123456")
        assert isinstance(result, str)
        assert len(result) == 64

    def test_is_deterministic(self):
        assert hash_code("654321") == hash_code("654321")
        assert hash_code("654321") != hash_code("654320")


class TestGenerate:
    def test_codes_are_numeric_and_fixed_length(self, otp_gate):
        for _ in range(50):
            code = otp_gate.generate()
            assert len(code) == 6
            assert code.isdigit()

    def test_length_is_configurable(self, clock):
        gate = OneTimeCredentialGate(length=8, clock=clock)
        assert len(gate.generate()) == 8


class TestIssue:
    def test_mint_returns_column_values_only(self, otp_gate, clock):
        with patch.object(otp_gate, "generate", return_value="482913"):
            code, values = otp_gate.mint()

        assert code == "482913"
        assert values == {
            "company_otp_hash": hash_code("482913"),
            "company_otp_expires_at": clock.now + timedelta(days=30),
        }

    def test_stores_hash_and_expiry_not_plain_code(self, otp_gate, student_user, clock):
        application = build_application(student_user)

        code = otp_gate.issue(application)

        assert application.company_otp_hash == hash_code(code)
        assert application.company_otp_hash != code
        assert application.company_otp_expires_at == clock.now + timedelta(days=30)

    def test_reissue_invalidates_previous_code(self, otp_gate, student_user):
        application = build_application(student_user)
        with patch.object(otp_gate, "generate", side_effect=["111111", "222222"]):
            first = otp_gate.issue(application)
            second = otp_gate.issue(application)

        assert otp_gate.is_valid(application, CompanyCredential(CONTACT_EMAIL, first)) is False
        assert otp_gate.is_valid(application, CompanyCredential(CONTACT_EMAIL, second)) is True


class TestVerify:
    """Tests for is_valid / verify."""

    def test_valid_code_and_email(self, otp_gate, student_user):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        otp_gate.verify(application, CompanyCredential(CONTACT_EMAIL, code))

    def test_email_match_is_case_insensitive(self, otp_gate, student_user):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        assert otp_gate.is_valid(application, CompanyCredential("HR@Acme.Example.com ", code))

    def test_wrong_code_rejected(self, otp_gate, student_user):
        application = build_application(student_user)
        code = otp_gate.issue(application)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(CredentialInvalidError) as exc_info:
            otp_gate.verify(application, CompanyCredential(CONTACT_EMAIL, wrong))

        assert exc_info.value.status_code == 401
        assert exc_info.value.error_code == "CREDENTIAL_INVALID"

    def test_code_bound_to_contact_email(self, otp_gate, student_user):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        with pytest.raises(CredentialInvalidError):
            otp_gate.verify(application, CompanyCredential("intruder@example.com", code))

    def test_expired_code_rejected(self, otp_gate, student_user, clock):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        clock.advance(days=30, seconds=1)

        with pytest.raises(CredentialInvalidError):
            otp_gate.verify(application, CompanyCredential(CONTACT_EMAIL, code))

    def test_code_valid_until_expiry_instant(self, otp_gate, student_user, clock):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        clock.advance(days=30)

        assert otp_gate.is_valid(application, CompanyCredential(CONTACT_EMAIL, code))

    def test_no_code_issued(self, otp_gate, student_user):
        application = build_application(student_user)

        assert otp_gate.is_valid(application, CompanyCredential(CONTACT_EMAIL, "123456")) is False

    def test_revoke_clears_code(self, otp_gate, student_user):
        application = build_application(student_user)
        code = otp_gate.issue(application)

        OneTimeCredentialGate.revoke(application)

        assert application.company_otp_hash is None
        assert application.company_otp_expires_at is None
        assert otp_gate.is_valid(application, CompanyCredential(CONTACT_EMAIL, code)) is False
