"""
Unit tests for the verification state machine and code generation.

VerificationRecord.check() is pure; these tests pin its precedence
order and the shape of generated codes and tokens.
"""

import re
from datetime import datetime, timedelta, timezone

import pytest

from account_engine.domain.codes import generate_otp, generate_token, otp_matches
from account_engine.domain.models import VerificationRecord, VerificationType, VerifyResult

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_record(**overrides) -> VerificationRecord:
    values = {
        "id": 1,
        "account_id": 10,
        "type": VerificationType.EMAIL_VERIFICATION,
        "token": "t" * 64,
        "otp_code": "123456",
        "email": "a@x.io",
        "expires_at": NOW + timedelta(minutes=10),
    }
    values.update(overrides)
    return VerificationRecord(**values)


class TestCheckPrecedence:
    """used -> expired -> attempts -> code."""

    def test_success(self) -> None:
        assert make_record().check(NOW, otp_matches=True) == VerifyResult.SUCCESS

    def test_invalid_code(self) -> None:
        assert make_record().check(NOW, otp_matches=False) == VerifyResult.INVALID_CODE

    def test_used_wins_over_everything(self) -> None:
        record = make_record(is_used=True, attempts_used=3)
        later = NOW + timedelta(hours=1)

        assert record.check(later, otp_matches=False) == VerifyResult.ALREADY_USED

    def test_expired_wins_over_attempts(self) -> None:
        record = make_record(attempts_used=3)
        later = NOW + timedelta(minutes=11)

        assert record.check(later, otp_matches=True) == VerifyResult.EXPIRED

    def test_attempts_win_over_correct_code(self) -> None:
        record = make_record(attempts_used=3)

        assert record.check(NOW, otp_matches=True) == VerifyResult.ATTEMPTS_EXCEEDED

    def test_two_failed_attempts_still_allow_success(self) -> None:
        record = make_record(attempts_used=2)

        assert record.check(NOW, otp_matches=True) == VerifyResult.SUCCESS

    @pytest.mark.parametrize(
        "offset, expired",
        [(timedelta(minutes=10), False), (timedelta(minutes=10, microseconds=1), True)],
    )
    def test_expiry_boundary(self, offset: timedelta, expired: bool) -> None:
        record = make_record()

        assert record.is_expired(NOW + offset) is expired
        assert record.is_active(NOW + offset) is not expired


class TestCodes:
    """Tests for OTP and token generation."""

    def test_otp_is_six_digits(self) -> None:
        for _ in range(50):
            assert re.match(r"^\d{6}$", generate_otp())

    def test_otps_vary(self) -> None:
        assert len({generate_otp() for _ in range(20)}) > 1

    def test_token_is_64_hex_chars(self) -> None:
        token = generate_token()

        assert re.match(r"^[0-9a-f]{64}$", token)

    def test_tokens_unique(self) -> None:
        assert len({generate_token() for _ in range(100)}) == 100

    def test_otp_matches(self) -> None:
        assert otp_matches("012345", "012345")
        assert not otp_matches("012345", "12345")
        assert not otp_matches("012345", "")
