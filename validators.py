"""
Validation utilities
"""
import re
from datetime import datetime

from dateutil import tz

from errors import ValidationError

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^(0?[1-9]|1[0-2]):([0-5][0-9]) (AM|PM)$', re.IGNORECASE)

DATE_FORMAT = '%Y-%m-%d'
TIME_FORMAT = '%I:%M %p'


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_password(password):
    """
    Validate password strength
    Requirements: min 8 chars, 1 letter, 1 number
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters"
    if not re.search(r'[A-Za-z]', password):
        return False, "Password must contain at least one letter"
    if not re.search(r'\d', password):
        return False, "Password must contain at least one number"
    return True, None


def parse_request_date(value):
    """
    Parse a YYYY-MM-DD calendar date

    Returns:
        date: Date object or None if the shape or the date itself is invalid
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_request_time(value):
    """
    Parse a 12-hour clock time such as "10:00 AM" or "9:15 pm"

    Returns:
        time: Time object or None if invalid
    """
    if not isinstance(value, str):
        return None
    match = TIME_PATTERN.match(value.strip())
    if not match:
        return None
    hour, minute, meridiem = match.groups()
    return datetime.strptime(
        '{:02d}:{} {}'.format(int(hour), minute, meridiem.upper()), TIME_FORMAT
    ).time()


def scheduled_at(day, clock, tz_name):
    """Combine a date and a time into an aware datetime in ``tz_name``."""
    return datetime.combine(day, clock).replace(tzinfo=tz.gettz(tz_name))


def validate_schedule(date_value, time_value, tz_name, now=None):
    """
    Validate a requested date and time

    Args:
        date_value (str): YYYY-MM-DD
        time_value (str): hh:mm AM/PM, case-insensitive
        tz_name (str): zone the customer's wall-clock values are read in
        now (datetime): reference instant, defaults to the current time

    Returns:
        tuple: normalised (date, time) strings for storage

    Raises:
        ValidationError: malformed values or a date-time not strictly in the future
    """
    day = parse_request_date(date_value)
    if day is None:
        raise ValidationError("Please enter a valid date in YYYY-MM-DD format.", code="invalid_date")

    clock = parse_request_time(time_value)
    if clock is None:
        raise ValidationError("Please enter a valid time in HH:MM AM/PM format.", code="invalid_time_format")

    when = scheduled_at(day, clock, tz_name)
    now = now or datetime.now(tz.gettz(tz_name))
    if when <= now:
        raise ValidationError("Invalid time: You cannot select a past date or time.", code="invalid_time")

    return day.strftime(DATE_FORMAT), clock.strftime(TIME_FORMAT)
