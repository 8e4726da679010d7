"""Human-readable renderings of addresses, dates and times used in responses and emails."""

from app.services.validators import parse_datestamp


def format_property_address(inspection) -> str:
    """"addr1[ addr2], City, ST 12345"."""
    street = inspection.address1
    if inspection.address2:
        street = f"{street} {inspection.address2}"
    return f"{street}, {inspection.city}, {inspection.state} {inspection.zip}"


def format_minute(minute: int) -> str:
    """540 -> "9:00 AM"."""
    hours, minutes = divmod(minute, 60)
    suffix = "AM" if hours < 12 else "PM"
    hours = hours % 12 or 12
    return f"{hours}:{minutes:02d} {suffix}"


def format_date(datestamp: str) -> str:
    """"20240101" -> "Monday, January 1, 2024"."""
    day = parse_datestamp(datestamp)
    return f"{day.strftime('%A, %B')} {day.day}, {day.year}"
