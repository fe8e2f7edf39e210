"""
Tests for utility helpers: member codes, capping windows, error taxonomy.
"""

from datetime import UTC, date, datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError, OperationalError

from binary_mlm.utils.datetime_utils import capping_day, week_start
from binary_mlm.utils.exceptions import (
    InvalidPositionError,
    MemberNotFoundError,
    PlacementError,
    is_transient_store_error,
)
from binary_mlm.utils.member_code import generate_member_code, is_valid_member_code


class TestMemberCode:
    """Test member code generation."""

    def test_generated_codes_are_valid(self):
        """Test generated codes are 8 digits without leading zero."""
        for _ in range(200):
            code = generate_member_code()
            assert is_valid_member_code(code)
            assert code[0] != "0"

    def test_invalid_codes(self):
        """Test malformed codes are rejected."""
        assert not is_valid_member_code("1234567")
        assert not is_valid_member_code("123456789")
        assert not is_valid_member_code("1234abcd")
        assert not is_valid_member_code("")


class TestCappingWindows:
    """Test daily and weekly capping windows."""

    def test_capping_day_uses_utc(self):
        """Test a late evening in UTC-5 belongs to the next UTC day."""
        moment = datetime(2026, 10, 12, 22, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert capping_day(moment) == date(2026, 10, 13)

    def test_capping_day_naive_is_utc(self):
        """Test naive datetimes are taken as UTC."""
        assert capping_day(datetime(2026, 10, 12, 23, 59)) == date(2026, 10, 12)

    def test_week_start_is_monday(self):
        """Test week window starts on Monday."""
        assert week_start(date(2026, 10, 12)) == date(2026, 10, 12)
        assert week_start(date(2026, 10, 18)) == date(2026, 10, 12)
        assert week_start(date(2026, 10, 19)) == date(2026, 10, 19)

    def test_capping_day_of_aware_utc(self):
        """Test aware UTC datetime keeps its date."""
        assert capping_day(datetime(2026, 10, 12, 0, 0, tzinfo=UTC)) == date(2026, 10, 12)


class TestExceptions:
    """Test error taxonomy."""

    def test_not_found_message(self):
        """Test not-found message names the role."""
        error = MemberNotFoundError(42, role="Sponsor")
        assert str(error) == "Sponsor 42 not found"
        assert error.member_id == 42

    def test_placement_errors_share_base(self):
        """Test constraint violations are placement errors."""
        assert issubclass(InvalidPositionError, PlacementError)

    def test_transient_store_errors(self):
        """Test connectivity failures are transient, integrity ones are not."""
        operational = OperationalError("SELECT 1", {}, Exception("server closed"))
        integrity = IntegrityError("INSERT", {}, Exception("duplicate"))
        assert is_transient_store_error(operational)
        assert is_transient_store_error(ConnectionError("reset"))
        assert is_transient_store_error(TimeoutError())
        assert not is_transient_store_error(integrity)
        assert not is_transient_store_error(ValueError("bad"))
