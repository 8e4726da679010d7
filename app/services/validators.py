"""Field validation shared by the availability, pricing and scheduling services.

Every helper raises InvalidParameterError with a human-readable reason and
returns the normalized value.
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from app.config import settings
from app.exceptions import InvalidParameterError
from app.models.inspection import FOUNDATION_TYPES
from app.models.inspector import WEEKDAYS

DATESTAMP_FORMAT = "%Y%m%d"
MINUTES_PER_DAY = 1440

DATESTAMP_PATTERN = re.compile(r"^\d{8}$")
NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z .'-]*$")
STATE_PATTERN = re.compile(r"^[A-Z]{2}$")
ZIP_PATTERN = re.compile(r"^\d{5}$")
PHONE_PATTERN = re.compile(r"^\+?[0-9 ()-]{7,20}$")

PHONE_TYPES = ("mobile", "office", "home", "fax", "other")

_email_adapter = TypeAdapter(EmailStr)


def is_integer(value: Any) -> bool:
    """True for real ints only (bools are ints in Python but never valid here)."""
    return isinstance(value, int) and not isinstance(value, bool)


def parse_datestamp(value: Any, label: str = "date") -> date:
    """Strictly parse a YYYYMMDD string into a date."""
    if not isinstance(value, str) or not DATESTAMP_PATTERN.match(value):
        raise InvalidParameterError(f"Invalid {label}")
    try:
        return datetime.strptime(value, DATESTAMP_FORMAT).date()
    except ValueError:
        raise InvalidParameterError(f"Invalid {label}")


def format_datestamp(day: date) -> str:
    return day.strftime(DATESTAMP_FORMAT)


def validate_minute(value: Any, label: str = "time") -> int:
    """Minute of day in [0, 1440)."""
    if not is_integer(value) or value < 0 or value >= MINUTES_PER_DAY:
        raise InvalidParameterError(f"Invalid {label}")
    return value


def validate_weekday(value: Any) -> str:
    if value not in WEEKDAYS:
        raise InvalidParameterError("Invalid day of the week")
    return value


def weekday_of(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def validate_foundation(value: Any) -> str:
    if value not in FOUNDATION_TYPES:
        raise InvalidParameterError("Invalid foundation type")
    return value


def validate_name(value: Any, label: str) -> str:
    if (
        not isinstance(value, str)
        or len(value) > settings.NAME_MAX_LENGTH
        or not NAME_PATTERN.match(value)
    ):
        raise InvalidParameterError(f"Invalid {label}")
    return value


def normalize_email(value: Any) -> Optional[str]:
    """Lower-cased, stripped email; None when blank."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidParameterError("Invalid email")
    value = value.strip().lower()
    return value or None


def validate_email(value: Any, label: str = "email") -> str:
    email = normalize_email(value)
    if not email or len(email) > 255:
        raise InvalidParameterError(f"Invalid {label}")
    try:
        _email_adapter.validate_python(email)
    except ValidationError:
        raise InvalidParameterError(f"Invalid {label}")
    return email


def validate_phone(value: Any, label: str = "phone number") -> str:
    if not isinstance(value, str) or not PHONE_PATTERN.match(value.strip()):
        raise InvalidParameterError(f"Invalid {label}")
    return value.strip()


def validate_phone_type(value: Any, label: str = "phone type") -> str:
    if value not in PHONE_TYPES:
        raise InvalidParameterError(f"Invalid {label}")
    return value


def validate_address_line(value: Any, label: str = "address", required: bool = True) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidParameterError(f"Invalid {label}")
        return None
    if not isinstance(value, str) or len(value) > settings.ADDRESS_MAX_LENGTH:
        raise InvalidParameterError(f"Invalid {label}")
    return value.strip()


def validate_city(value: Any) -> str:
    if (
        not isinstance(value, str)
        or len(value) > settings.CITY_MAX_LENGTH
        or not NAME_PATTERN.match(value)
    ):
        raise InvalidParameterError("Invalid city")
    return value


def validate_state(value: Any) -> str:
    if not isinstance(value, str) or not STATE_PATTERN.match(value):
        raise InvalidParameterError("Invalid state")
    return value


def validate_zip(value: Any) -> str:
    if not isinstance(value, str) or not ZIP_PATTERN.match(value):
        raise InvalidParameterError("Invalid zip code")
    return value


def validate_sqft(value: Any) -> int:
    if not is_integer(value) or value <= 0 or value > settings.SQFT_MAX:
        raise InvalidParameterError("Invalid square footage")
    return value


def validate_year_built(value: Any, today: Optional[date] = None) -> int:
    current_year = (today or date.today()).year
    if not is_integer(value) or value < settings.YEAR_BUILT_MIN or value > current_year:
        raise InvalidParameterError("Invalid year built")
    return value
