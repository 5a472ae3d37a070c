"""
Request lifecycle and validation tests for TidyUp
Tests the status transition table, status normalisation and schedule checks
"""
import pytest
from datetime import datetime

from dateutil import tz

from errors import InvalidTransition, ValidationError
from lifecycle import (
    PENDING, ACCEPTED, CONFIRMED, COMPLETED, REJECTED, REQUEST_STATUSES,
    can_transition, normalize_status, transition,
)
from validators import (
    parse_request_date, parse_request_time, validate_email, validate_password,
    validate_schedule,
)
from conftest import reload


class TestTransitions:
    """Test the closed set of request statuses"""

    @pytest.mark.parametrize('current,new', [
        (PENDING, ACCEPTED),
        (PENDING, REJECTED),
        (ACCEPTED, CONFIRMED),
        (ACCEPTED, PENDING),
        (CONFIRMED, COMPLETED),
    ])
    def test_allowed(self, current, new):
        assert can_transition(current, new)

    @pytest.mark.parametrize('current,new', [
        (PENDING, COMPLETED),
        (PENDING, CONFIRMED),
        (CONFIRMED, PENDING),
        (COMPLETED, PENDING),
        (REJECTED, PENDING),
        (COMPLETED, REJECTED),
    ])
    def test_forbidden(self, current, new):
        assert not can_transition(current, new)

    def test_terminal_statuses_have_no_exits(self):
        for status in REQUEST_STATUSES:
            assert not can_transition(COMPLETED, status)
            assert not can_transition(REJECTED, status)

    def test_normalize_status(self):
        assert normalize_status('completed') == COMPLETED
        assert normalize_status('CONFIRMED') == CONFIRMED
        assert normalize_status(' Pending ') == PENDING
        assert normalize_status('archived') is None
        assert normalize_status(None) is None

    def test_transition_writes_status(self, app, accepted_request):
        transition(accepted_request, 'confirmed')
        assert reload(accepted_request).status == CONFIRMED

    def test_transition_refuses_table_violation(self, app, pending_request):
        with pytest.raises(InvalidTransition) as excinfo:
            transition(pending_request, COMPLETED)

        assert excinfo.value.code == 'invalid_transition'
        assert reload(pending_request).status == PENDING


class TestScheduleValidation:
    """Test request date and time validation"""

    NOW = datetime(2030, 6, 15, 12, 0, tzinfo=tz.gettz('UTC'))

    def test_parse_date(self):
        assert parse_request_date('2030-06-16').day == 16
        assert parse_request_date('2030-6-16') is None
        assert parse_request_date('2030-02-30') is None
        assert parse_request_date(None) is None

    def test_parse_time(self):
        assert parse_request_time('10:00 AM').hour == 10
        assert parse_request_time('12:30 am').hour == 0
        assert parse_request_time('1:05 PM').hour == 13
        assert parse_request_time('13:00 PM') is None
        assert parse_request_time('10:00') is None

    def test_future_is_accepted(self):
        assert validate_schedule('2030-06-15', '12:01 pm', 'UTC', now=self.NOW) == ('2030-06-15', '12:01 PM')

    def test_now_is_not_the_future(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_schedule('2030-06-15', '12:00 PM', 'UTC', now=self.NOW)
        assert excinfo.value.code == 'invalid_time'

    def test_past_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_schedule('2030-06-14', '11:00 PM', 'UTC', now=self.NOW)

    def test_timezone_is_respected(self):
        """11 AM in New York is after noon UTC on the same day"""
        assert validate_schedule('2030-06-15', '11:00 AM', 'America/New_York', now=self.NOW)

    def test_bad_shapes(self):
        with pytest.raises(ValidationError) as excinfo:
            validate_schedule('06/15/2030', '10:00 AM', 'UTC', now=self.NOW)
        assert excinfo.value.code == 'invalid_date'

        with pytest.raises(ValidationError) as excinfo:
            validate_schedule('2030-06-16', '25:00 AM', 'UTC', now=self.NOW)
        assert excinfo.value.code == 'invalid_time_format'


class TestAccountValidation:
    """Test email and password rules"""

    def test_validate_email(self):
        assert validate_email('jane@example.com')
        assert not validate_email('jane@')
        assert not validate_email('')

    def test_validate_password(self):
        assert validate_password('abcdefg1') == (True, None)
        assert not validate_password('abc1')[0]
        assert not validate_password('12345678')[0]
        assert not validate_password('abcdefgh')[0]
