from datetime import date, datetime
import re

from .errors import InvalidArgument

DATE_FORMAT = "%Y-%m-%d"
_DATE_LITERAL = re.compile(r"^\d{4}-\d{2}-\d{2}$")
# Largest dose count a 32-bit INTEGER column holds
MAX_DOSES = 2**31 - 1


def parse_date(value) -> date:
    """Parse a ``YYYY-MM-DD`` literal into a real calendar date.

    ``date`` instances pass through unchanged. Anything else, including
    well-shaped literals such as ``2024-02-30``, is rejected.
    """
    if isinstance(value, datetime):
        raise InvalidArgument("Error while entering date! The format should be YYYY-MM-DD.")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_LITERAL.match(value):
        raise InvalidArgument("Error while entering date! The format should be YYYY-MM-DD.")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidArgument(f"{value} is not a valid calendar date!") from exc


def parse_dose_amount(value) -> int:
    """Parse a non-negative whole number of doses."""
    if isinstance(value, bool):
        raise InvalidArgument("Number of doses must be a non-negative integer!")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and re.fullmatch(r"\+?\d+", value.strip()):
        amount = int(value)
    else:
        raise InvalidArgument("Number of doses must be a non-negative integer!")
    if amount < 0 or amount > MAX_DOSES:
        raise InvalidArgument("Number of doses must be a non-negative integer!")
    return amount


def require_name(value, label: str = "Vaccine name") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{label} must not be empty!")
    return value.strip()
