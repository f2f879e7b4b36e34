"""
Row parsing for detected transaction tables.
"""
import re
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from pydantic import ValidationError

from .detectors import is_single_line_header, two_date_pattern
from .normalize import (
    AMOUNT_MARKER, DATE_SHAPE_RE, NUMBER, AmountToken, is_valid_date, normalize_separator,
    normalize_text, parse_amount_token, parse_date_by_format, split_columns,
)
from .settings import HeuristicSettings, load_settings
from ..models.schema import (
    CREDIT, DEBIT, DateFormat, FormatVariant, ParsedTransaction, TableParseResult, TableRegion,
)

logger = logging.getLogger(__name__)

_TWO_SLOT_RE = re.compile(
    rf"({NUMBER})\s*DR(?![A-Za-z])\s+({NUMBER})\s*CR(?![A-Za-z])", re.IGNORECASE
)
_MARKED_RE = re.compile(rf"({NUMBER})\s*({AMOUNT_MARKER})", re.IGNORECASE)
_TRAILING_RE = re.compile(rf"({NUMBER})\s*$")
_IDENTIFIER_RE = re.compile(r"^\d{4}(?=\s|$)")


def is_end_of_table_line(line: str, settings: HeuristicSettings) -> bool:
    """Check whether a line carries a summary keyword as a whole word (e.g. ``Closing balance``)."""
    keywords = "|".join(re.escape(k) for k in settings.end_of_table_keywords)
    if not keywords:
        return False
    return re.search(rf"\b(?:{keywords})\b", line, re.IGNORECASE) is not None


def build_transaction(date_str: str, description: str, amount: Decimal,
                      side: str) -> Optional[ParsedTransaction]:
    """Create a transaction, or log and return None if the row is malformed."""
    try:
        return ParsedTransaction(
            date=date_str,
            description=description,
            debit=amount if side == DEBIT else None,
            credit=amount if side == CREDIT else None,
        )
    except ValidationError as e:
        logger.warning(f"Error creating transaction for {date_str} {description!r}: {e}")
        return None


def classify_column_amount(token: AmountToken, column_name: str) -> str:
    """
    Decide debit/credit for a value from a named amount column.

    A column named only debit or only credit decides outright; any other
    column ("Amount", "Paid", "Debit/Credit") defers to the token's own marker.
    """
    name = column_name.lower()
    if "debit" in name and "credit" not in name:
        return DEBIT
    if "credit" in name and "debit" not in name:
        return CREDIT
    return token.resolve(DEBIT)


def locate_amount(text: str, max_digits: int = 15) -> Optional[Tuple[AmountToken, int]]:
    """
    Find the amount inside free row text.

    Tried in order: a ``<num> DR <num> CR`` pair (first non-zero slot), the
    last non-zero ``<num> <marker>``, then a bare trailing number (debit).

    Args:
        text: Row text following the dates
        max_digits: Longest digit run accepted

    Returns:
        (AmountToken with side set, start offset of the amount in ``text``) or None
    """
    two_slot = _TWO_SLOT_RE.search(text)
    if two_slot:
        debit = parse_amount_token(two_slot.group(1), max_digits)
        if debit:
            return AmountToken(debit.value, DEBIT), two_slot.start()
        credit = parse_amount_token(two_slot.group(2), max_digits)
        if credit:
            return AmountToken(credit.value, CREDIT), two_slot.start()
        return None

    for match in reversed(list(_MARKED_RE.finditer(text))):
        token = parse_amount_token(match.group(0), max_digits)
        if token:
            return token, match.start()

    trailing = _TRAILING_RE.search(text)
    if trailing:
        token = parse_amount_token(trailing.group(1), max_digits)
        if token:
            return AmountToken(token.value, DEBIT), trailing.start()

    return None


def extract_inline_transaction(date_str: str, remainder: str, date_format: DateFormat,
                               max_digits: int = 15) -> Optional[ParsedTransaction]:
    """
    Build a transaction from a row that starts with dates.

    Args:
        date_str: Transaction date (already validated)
        remainder: Text after the dates
        date_format: Declared statement date format
        max_digits: Longest digit run accepted in the amount

    Returns:
        ParsedTransaction or None if no amount/description can be found
    """
    located = locate_amount(remainder, max_digits)
    if not located:
        logger.debug(f"No amount found in row text: {remainder!r}")
        return None

    token, start = located
    description = _IDENTIFIER_RE.sub("", remainder[:start].strip())
    description = normalize_text(description)
    if not description:
        logger.debug(f"No description found in row text: {remainder!r}")
        return None

    return build_transaction(
        normalize_separator(date_str, date_format), description, token.value, token.side
    )


class TableRowParser:
    """Parses the rows of a detected table according to its format variant."""

    def __init__(self, lines: List[str], date_format: DateFormat,
                 settings: Optional[HeuristicSettings] = None):
        self.lines = lines
        self.date_format = date_format
        self.settings = settings or load_settings()
        self.limits = self.settings.limits

        two_dates = two_date_pattern(date_format)
        self._two_date_row_re = re.compile(r"^" + two_dates + r"(.*)$")
        self._two_date_only_re = re.compile(r"^" + two_dates + r"$")

    def parse(self, region: TableRegion) -> TableParseResult:
        """
        Parse all rows of a table.

        Args:
            region: Detected table region

        Returns:
            TableParseResult with the transactions and the last row consumed
        """
        variant = self.resolve_variant(region)
        handlers = {
            FormatVariant.SINGLE_LINE_COLUMNS: self._parse_columns,
            FormatVariant.PATTERN_BASED_TWO_DATE: self._parse_two_date_rows,
            FormatVariant.MULTI_LINE_TRANSACTION_BLOCK: self._parse_blocks,
        }
        result = handlers[variant](region)
        logger.debug(f"{variant.value} table at {region.anchor_row_index}: {result!r}")
        return result

    @staticmethod
    def resolve_variant(region: TableRegion) -> FormatVariant:
        """Split multi-line-header tables into single-line rows or 3-line blocks."""
        if region.format_variant is not FormatVariant.MULTI_LINE_HEADER:
            return region.format_variant
        if None in (region.date_column, region.description_column, region.amount_column):
            return FormatVariant.MULTI_LINE_TRANSACTION_BLOCK
        return FormatVariant.SINGLE_LINE_COLUMNS

    def _is_end_of_table(self, line: str) -> bool:
        return is_end_of_table_line(line, self.settings)

    def _parse_columns(self, region: TableRegion) -> TableParseResult:
        transactions = []
        consumed = set()
        last_row = None
        invalid_run = 0
        blank_run = 0
        needed = max(region.date_column, region.description_column, region.amount_column)
        amount_name = region.amount_column_name

        for i in range(region.data_start_row_index, len(self.lines)):
            line = self.lines[i].strip()
            if not line:
                blank_run += 1
                if blank_run >= self.limits.max_blank_rows:
                    break
                continue
            blank_run = 0

            logger.debug(f"Raw transaction row (single-line format) {i}: {line!r}")

            if is_single_line_header(line, self.settings):
                # start of the next table
                break

            columns = split_columns(line)
            date_str = None
            if len(columns) > needed:
                date_str = parse_date_by_format(columns[region.date_column], self.date_format)

            if not date_str or not is_valid_date(date_str, self.date_format):
                invalid_run += 1
                if invalid_run >= self.limits.max_invalid_rows:
                    break
                continue

            invalid_run = 0
            last_row = i
            consumed.add(i)

            description = columns[region.description_column]
            token = parse_amount_token(columns[region.amount_column], self.limits.max_amount_digits)
            if not description or not token:
                logger.debug(f"Skipping row {i}: missing description or amount")
                continue

            transaction = build_transaction(
                normalize_separator(date_str, self.date_format),
                description,
                token.value,
                classify_column_amount(token, amount_name),
            )
            if transaction:
                logger.debug(f"Parsed transaction row {i}: {transaction.model_dump_json()}")
                transactions.append(transaction)

        return TableParseResult(transactions, last_row, consumed)

    def _parse_two_date_rows(self, region: TableRegion) -> TableParseResult:
        transactions = []
        consumed = set()
        last_row = None

        for i in range(region.data_start_row_index, len(self.lines)):
            line = self.lines[i].strip()
            if not line or self._is_end_of_table(line):
                break

            logger.debug(f"Raw transaction row (two-date format) {i}: {line!r}")

            match = self._two_date_row_re.match(line)
            if not match or not is_valid_date(match.group(1), self.date_format):
                continue

            last_row = i
            consumed.add(i)
            transaction = extract_inline_transaction(
                match.group(1), match.group(3), self.date_format, self.limits.max_amount_digits
            )
            if transaction:
                logger.debug(f"Parsed transaction row {i}: {transaction.model_dump_json()}")
                transactions.append(transaction)

        return TableParseResult(transactions, last_row, consumed)

    def _parse_blocks(self, region: TableRegion) -> TableParseResult:
        transactions = []
        consumed = set()
        last_row = None
        failures = 0
        i = region.data_start_row_index

        while i + 2 < len(self.lines):
            date_line = self.lines[i].strip()
            if date_line and not DATE_SHAPE_RE.match(date_line) and self._is_end_of_table(date_line):
                break

            transaction = self._parse_block(i)
            if transaction is None:
                failures += 1
                if failures >= self.limits.max_invalid_rows:
                    break
                i += 1
                continue

            failures = 0
            transactions.append(transaction)
            consumed.update(range(i, i + 3))
            last_row = i + 2
            i += 3

        return TableParseResult(transactions, last_row, consumed)

    def _parse_block(self, i: int) -> Optional[ParsedTransaction]:
        """Parse the date / description / amount lines starting at ``i``."""
        date_line, description, amount_line = (self.lines[i + k].strip() for k in range(3))
        logger.debug(f"Raw transaction row (multi-line format) {i}: "
                     f"{date_line!r} / {description!r} / {amount_line!r}")

        if not date_line or not description or not amount_line:
            return None

        two_dates = self._two_date_only_re.match(date_line)
        date_str = two_dates.group(1) if two_dates else parse_date_by_format(date_line, self.date_format)
        if not is_valid_date(date_str, self.date_format):
            return None

        if len(description) < self.limits.min_description_length:
            return None

        token = self._block_amount(amount_line)
        if not token:
            return None

        transaction = build_transaction(
            normalize_separator(date_str, self.date_format), description, token.value, token.side
        )
        if transaction:
            logger.debug(f"Parsed transaction row {i}: {transaction.model_dump_json()}")
        return transaction

    def _block_amount(self, amount_line: str) -> Optional[AmountToken]:
        # e.g. "407,800 DR               0 CR"
        parts = [part for part in split_columns(amount_line) if part]
        max_digits = self.limits.max_amount_digits

        for part in parts:
            token = parse_amount_token(part, max_digits)
            if token and token.side:
                return token

        if parts:
            first = parse_amount_token(parts[0], max_digits)
            if first:
                return AmountToken(first.value, DEBIT)

        located = locate_amount(amount_line, max_digits)
        return located[0] if located else None
