"""
Date and amount normalization for statement text.
"""
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple
import logging

from ..models.schema import DateFormat, DEBIT, CREDIT

logger = logging.getLogger(__name__)

# Either separator is accepted in either position, whatever the declared format.
_DAY_MONTH_FIRST = r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})"
_YEAR_FIRST = r"(\d{4})[/-](\d{1,2})[/-](\d{1,2})"

# Loose date shape used before the format is applied (e.g. data-start search).
DATE_SHAPE_RE = re.compile(r"^(\d{1,2}[/-]\d{1,2}[/-]\d{2,4}|\d{4}[/-]\d{1,2}[/-]\d{1,2})")

AMOUNT_MARKER = r"(?:DEBIT|CREDIT|DR|CR)(?![A-Za-z])"
NUMBER = r"(?<![\w.,])\d(?:[\d.,]*\d)?"

# Optional leading or trailing minus ("-4.500", "4.500-"); the sign is dropped.
_AMOUNT_TOKEN_RE = re.compile(
    r"^(?:-\s*)?(\d(?:[\d.,]*\d)?)-?\s*(DEBIT|CREDIT|DR|CR)?$", re.IGNORECASE
)


def _date_pattern(date_format: DateFormat) -> str:
    return _YEAR_FIRST if date_format.year_first else _DAY_MONTH_FIRST


def date_token_pattern(date_format: DateFormat) -> str:
    """
    Regex fragment (no groups, no anchors) for one date token in the format's field order.
    """
    if date_format.year_first:
        return r"\d{4}[/-]\d{1,2}[/-]\d{1,2}"
    return r"\d{1,2}[/-]\d{1,2}[/-]\d{4}"


def _split_date(candidate: str, date_format: DateFormat) -> Optional[Tuple[int, int, int]]:
    """Return (year, month, day) for a full-match candidate, or None."""
    match = re.fullmatch(_date_pattern(date_format), candidate.strip())
    if not match:
        return None

    first, second, third = (int(g) for g in match.groups())
    if date_format.year_first:
        return first, second, third
    if date_format.month_first:
        return third, first, second
    return third, second, first


def is_valid_date(candidate: str, date_format: DateFormat) -> bool:
    """
    Validate a date string against the declared format.

    Args:
        candidate: Date string, '/' or '-' separated
        date_format: Declared statement date format

    Returns:
        True if the string is a real calendar date in the format's field order
    """
    if not candidate or not isinstance(candidate, str):
        return False

    fields = _split_date(candidate, date_format)
    if fields is None:
        return False

    year, month, day = fields
    if not 1 <= month <= 12 or not 1 <= day <= 31 or not 1900 <= year <= 2100:
        return False

    try:
        date(year, month, day)
    except ValueError:
        # e.g. 30 February
        return False

    return True


def parse_date_by_format(raw: str, date_format: DateFormat) -> str:
    """
    Extract the leading date-shaped substring of a value.

    Args:
        raw: Raw cell or line text
        date_format: Declared statement date format

    Returns:
        The matched date text verbatim, or ``raw`` unchanged if nothing matches.
        Callers must still validate the result with ``is_valid_date``.
    """
    if not raw or not isinstance(raw, str):
        return raw

    match = re.match(_date_pattern(date_format), raw.strip())
    if not match:
        return raw

    return match.group(0)


def normalize_separator(raw: str, date_format: DateFormat) -> str:
    """Rewrite date separators to the one implied by the declared format."""
    return re.sub(r"[/-]", date_format.separator, raw.strip())


def to_date(candidate: str, date_format: DateFormat) -> Optional[date]:
    """Convert a valid date string to a ``date``; None if invalid."""
    if not is_valid_date(candidate, date_format):
        return None
    year, month, day = _split_date(candidate, date_format)
    return date(year, month, day)


def normalize_text(value: str) -> str:
    """
    Normalize text by trimming and collapsing whitespace.

    Args:
        value: Raw text string

    Returns:
        Cleaned text string
    """
    if not value:
        return ""

    return re.sub(r'\s+', ' ', value.strip())


def split_columns(line: str) -> list:
    """Split a layout line on runs of two or more spaces or tabs."""
    return [col.strip() for col in re.split(r"\s{2,}|\t", line.strip())]


class AmountToken:
    """Parsed amount with its optional DR/CR classification."""
    def __init__(self, value: Decimal, side: Optional[str] = None):
        self.value = value
        self.side = side

    def resolve(self, default: str = DEBIT) -> str:
        """Side from the token's own marker, else the caller's default."""
        return self.side or default

    def __repr__(self):
        return f"AmountToken({self.value}, side={self.side})"


def parse_amount_token(token: str, max_digits: int = 15) -> Optional[AmountToken]:
    """
    Parse an amount token such as ``4.500 DR`` or ``1.250,50CR``.

    '.' is a grouping separator and ',' the decimal mark. A leading or
    trailing minus is accepted and dropped; the side comes from the marker
    or the caller's default.

    Args:
        token: Raw amount text
        max_digits: Longest digit run accepted; longer runs are taken to be
            two numbers run together

    Returns:
        AmountToken, or None for non-numeric, zero or over-long values
    """
    if not token or not token.strip():
        return None

    match = _AMOUNT_TOKEN_RE.match(token.strip())
    if not match:
        return None

    number, marker = match.group(1), match.group(2)

    if len(re.sub(r"\D", "", number)) > max_digits:
        logger.debug(f"Amount digit run too long, ignoring: {token}")
        return None

    cleaned = number.replace('.', '').replace(',', '.')
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        logger.debug(f"Could not parse amount: {token}")
        return None

    if value == 0:
        return None

    side = None
    if marker:
        side = DEBIT if marker.upper() in ("DR", "DEBIT") else CREDIT

    return AmountToken(abs(value), side)
