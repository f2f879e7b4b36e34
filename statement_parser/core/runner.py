"""
End-to-end parsing orchestration.
"""
import re
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set, Tuple, Union
import logging

from .anchors import extract_card_number
from .detectors import TableRegionDetector, two_date_pattern
from .loader import PDFSource, extract_text
from .normalize import is_valid_date, normalize_text, to_date
from .settings import HeuristicSettings, load_settings
from .tables import TableRowParser, extract_inline_transaction, is_end_of_table_line
from ..models.schema import (
    DateFormat, ParsedStatement, ParsedTransaction, TableParseResult, TableRegion,
)

logger = logging.getLogger(__name__)


class ScanState(Enum):
    """States of the table discovery loop."""
    SCANNING = "scanning"
    TABLE_FOUND = "table_found"
    END_OF_TABLE = "end_of_table"
    DONE = "done"


class StatementParser:
    """Main parser class that orchestrates table discovery, fallback scan and card lookup."""

    def __init__(self, date_format: Union[DateFormat, str] = DateFormat.DD_MM_YYYY,
                 settings: Optional[HeuristicSettings] = None,
                 settings_path: Optional[Path] = None, verbose: bool = False):
        self.date_format = DateFormat(date_format)
        self.settings = settings or load_settings(settings_path)
        self.detector = TableRegionDetector(self.date_format, self.settings)
        self._fallback_re = re.compile(r"(?<!\d)" + two_date_pattern(self.date_format))

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def parse(self, text: str) -> ParsedStatement:
        """
        Parse statement text into structured data.

        Args:
            text: Layout-preserving statement text

        Returns:
            ParsedStatement object
        """
        lines = text.splitlines() if text else []

        transactions = []
        consumed = set()
        for _, result in self.scan_tables(lines):
            transactions.extend(result.transactions)
            consumed.update(result.consumed_rows)

        fallback = self._fallback_scan(lines, transactions, consumed)
        card_number = extract_card_number(text)

        logger.info(
            f"Parsed {len(transactions)} table transactions and {len(fallback)} "
            f"fallback transactions (card: {'found' if card_number else 'not found'})"
        )

        return ParsedStatement(
            card_number_last4=card_number,
            transactions=transactions + fallback,
        )

    def scan_tables(self, lines: List[str]) -> List[Tuple[TableRegion, TableParseResult]]:
        """
        Find and parse every table, in document order.

        Args:
            lines: Statement lines

        Returns:
            (region, parse result) pairs
        """
        row_parser = TableRowParser(lines, self.date_format, self.settings)
        tables = []
        cursor = 0
        region = None
        state = ScanState.SCANNING if lines else ScanState.DONE

        while state is not ScanState.DONE:
            if state is ScanState.SCANNING:
                region = self.detector.detect(lines, cursor)
                state = ScanState.TABLE_FOUND if region else ScanState.DONE

            elif state is ScanState.TABLE_FOUND:
                result = row_parser.parse(region)
                tables.append((region, result))
                cursor = self._next_cursor(cursor, region, result)
                state = ScanState.END_OF_TABLE

            elif state is ScanState.END_OF_TABLE:
                state = ScanState.SCANNING if cursor < len(lines) else ScanState.DONE

        return tables

    @staticmethod
    def _next_cursor(cursor: int, region: TableRegion, result: TableParseResult) -> int:
        # always strictly forward, past the table's first row and its last consumed row
        end = result.last_row_index if result.last_row_index is not None else region.anchor_row_index
        return max(cursor + 1, end + 1, region.anchor_row_index + 1)

    def transaction_key(self, transaction: ParsedTransaction) -> tuple:
        """Identity used to reconcile fallback matches with table transactions."""
        return (
            to_date(transaction.date, self.date_format) or transaction.date,
            normalize_text(transaction.description).casefold(),
            transaction.signed_amount,
        )

    def _fallback_scan(self, lines: List[str], captured: List[ParsedTransaction],
                       consumed_rows: Optional[Set[int]] = None) -> List[ParsedTransaction]:
        """Pick up two-date transaction lines that no table pass read as a data row."""
        remaining = Counter(self.transaction_key(t) for t in captured)
        consumed_rows = consumed_rows or set()
        max_digits = self.settings.limits.max_amount_digits
        found = []

        for i, line in enumerate(lines):
            if i in consumed_rows:
                continue

            matches = list(self._fallback_re.finditer(line))
            if not matches or is_end_of_table_line(line, self.settings):
                continue

            for n, match in enumerate(matches):
                if not is_valid_date(match.group(1), self.date_format):
                    continue

                end = matches[n + 1].start() if n + 1 < len(matches) else len(line)
                transaction = extract_inline_transaction(
                    match.group(1), line[match.end():end], self.date_format, max_digits
                )
                if not transaction:
                    continue

                key = self.transaction_key(transaction)
                if remaining[key] > 0:
                    remaining[key] -= 1
                    logger.debug(f"Fallback match on line {i} already captured: {key}")
                    continue

                logger.debug(f"Fallback transaction on line {i}: {transaction.model_dump_json()}")
                found.append(transaction)

        return found


def parse_statement(text: str, date_format: Union[DateFormat, str] = DateFormat.DD_MM_YYYY,
                    verbose: bool = False) -> ParsedStatement:
    """
    Parse statement text into transactions and card number.

    Args:
        text: Layout-preserving statement text
        date_format: Declared statement date format
        verbose: Enable verbose logging

    Returns:
        ParsedStatement object
    """
    parser = StatementParser(date_format, verbose=verbose)
    return parser.parse(text)


def parse_pdf(source: PDFSource, date_format: Union[DateFormat, str] = DateFormat.DD_MM_YYYY,
              verbose: bool = False) -> ParsedStatement:
    """
    Extract text from a statement PDF and parse it.

    Args:
        source: Path to PDF file or its bytes
        date_format: Declared statement date format
        verbose: Enable verbose logging

    Returns:
        ParsedStatement object

    Raises:
        ExtractionError: if the PDF cannot be read
    """
    text = extract_text(source)
    return parse_statement(text, date_format, verbose)


def detect_tables(text: str, date_format: Union[DateFormat, str] = DateFormat.DD_MM_YYYY
                  ) -> List[Tuple[TableRegion, TableParseResult]]:
    """Detected table regions with their parse results, for inspection."""
    parser = StatementParser(date_format)
    return parser.scan_tables(text.splitlines() if text else [])
