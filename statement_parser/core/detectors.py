"""
Transaction table detection.

Each strategy scans the statement lines from a cursor and reports the next
table it recognizes as a ``TableRegion``. Strategies are tried in order and
the first one that finds a table wins.
"""
import re
from typing import List, Optional, Sequence
import logging

from .normalize import DATE_SHAPE_RE, date_token_pattern, is_valid_date, split_columns
from .settings import HeuristicSettings, load_settings
from ..models.schema import ColumnLayout, DateFormat, FormatVariant, TableRegion

logger = logging.getLogger(__name__)


def is_single_line_header(line: str, settings: HeuristicSettings) -> bool:
    """Check whether a line carries date, description and amount header keywords."""
    lower = line.lower()
    keywords = settings.header
    return (
        any(k in lower for k in keywords.date_keywords)
        and any(k in lower for k in keywords.description_keywords)
        and any(k in lower for k in keywords.amount_keywords)
    )


def two_date_pattern(date_format: DateFormat) -> str:
    """Two adjacent date tokens, optionally separated by whitespace."""
    token = date_token_pattern(date_format)
    return rf"({token})\s*({token})"


def infer_columns(sample_rows: Sequence[str]) -> Optional[ColumnLayout]:
    """
    Guess column positions from the shape of sampled data rows.

    Only the first sample is split; the date column is the first cell that
    starts with a date, the description the first later cell with real text,
    the amount the first cell with digits after both.

    Args:
        sample_rows: Non-blank data rows, first row first

    Returns:
        ColumnLayout (description/amount may be None), or None with no samples
    """
    if not sample_rows:
        return None

    columns = split_columns(sample_rows[0])
    layout = ColumnLayout()

    for j, col in enumerate(columns):
        if DATE_SHAPE_RE.match(col):
            layout.date_column = j
            break

    start = layout.date_column + 1 if layout.date_column is not None else 0
    for j in range(start, len(columns)):
        col = columns[j]
        if len(col) > 3 and not re.fullmatch(r"[\d\W]+", col):
            layout.description_column = j
            break

    after = max(
        layout.date_column if layout.date_column is not None else -1,
        layout.description_column if layout.description_column is not None else -1,
    ) + 1
    for j in range(after, len(columns)):
        if re.search(r"\d", columns[j]):
            layout.amount_column = j
            break

    return layout


class TableDetectionStrategy:
    """Base class for table detection strategies."""

    variant: FormatVariant

    def __init__(self, date_format: DateFormat, settings: HeuristicSettings):
        self.date_format = date_format
        self.settings = settings

    def detect(self, lines: List[str], start: int) -> Optional[TableRegion]:
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}({self.date_format.value})"


class SingleLineHeaderStrategy(TableDetectionStrategy):
    """Header row with date, description and amount columns on one line."""

    variant = FormatVariant.SINGLE_LINE_COLUMNS

    def detect(self, lines: List[str], start: int) -> Optional[TableRegion]:
        for i in range(start, len(lines)):
            line = lines[i]
            if not line or not is_single_line_header(line, self.settings):
                continue

            columns = [col.lower() for col in split_columns(line)]
            date_col = self._find_date_column(columns)
            desc_col = self._find_column(columns, self.settings.header.description_keywords)
            amount_col = self._find_column(columns, self.settings.header.amount_keywords)

            found = [date_col, desc_col, amount_col]
            if None in found or len(set(found)) < 3:
                logger.debug(f"Header-like line {i} has no separable columns: {line.strip()!r}")
                continue

            return TableRegion(
                format_variant=self.variant,
                header_row_index=i,
                data_start_row_index=i + 1,
                date_column=date_col,
                description_column=desc_col,
                amount_column=amount_col,
                column_names=columns,
            )

        return None

    def _find_date_column(self, columns: List[str]) -> Optional[int]:
        # Prefer the most specific keyword ("transaction date" over "date").
        for keyword in self.settings.header.date_keywords:
            for j, col in enumerate(columns):
                if keyword in col:
                    return j
        return None

    @staticmethod
    def _find_column(columns: List[str], keywords: List[str]) -> Optional[int]:
        for j, col in enumerate(columns):
            if any(k in col for k in keywords):
                return j
        return None


class PatternBasedStrategy(TableDetectionStrategy):
    """Header-less table whose rows start with two dates."""

    variant = FormatVariant.PATTERN_BASED_TWO_DATE

    def __init__(self, date_format: DateFormat, settings: HeuristicSettings):
        super().__init__(date_format, settings)
        self._row_re = re.compile(r"^" + two_date_pattern(date_format) + r"\s*(\S.*)$")

    def detect(self, lines: List[str], start: int) -> Optional[TableRegion]:
        end = min(len(lines), start + self.settings.windows.pattern_scan_lines)
        for i in range(start, end):
            match = self._row_re.match(lines[i].strip())
            if match and is_valid_date(match.group(1), self.date_format):
                return TableRegion(
                    format_variant=self.variant,
                    data_start_row_index=i,
                    date_column=0,
                )
        return None


class MultiLineHeaderStrategy(TableDetectionStrategy):
    """Header keywords spread over several lines; layout inferred from data rows."""

    variant = FormatVariant.MULTI_LINE_HEADER

    def detect(self, lines: List[str], start: int) -> Optional[TableRegion]:
        header_row = self._find_header_row(lines, start)
        if header_row is None:
            return None

        data_start = None
        end = min(len(lines), header_row + self.settings.windows.data_start_lines)
        for i in range(header_row + 1, end):
            if DATE_SHAPE_RE.match(lines[i].strip()):
                data_start = i
                break

        if data_start is None:
            logger.debug(f"Multi-line header at {header_row} has no date rows after it")
            return None

        samples = []
        for i in range(data_start, min(len(lines), data_start + self.settings.windows.sample_rows)):
            trimmed = lines[i].strip()
            if trimmed:
                samples.append(trimmed)

        layout = infer_columns(samples) or ColumnLayout()

        return TableRegion(
            format_variant=self.variant,
            header_row_index=header_row,
            data_start_row_index=data_start,
            date_column=layout.date_column,
            description_column=layout.description_column,
            amount_column=layout.amount_column,
        )

    def _find_header_row(self, lines: List[str], start: int) -> Optional[int]:
        keywords = self.settings.multi_line_header
        date_line = desc_line = debit_line = credit_line = None

        end = min(len(lines), start + self.settings.windows.multi_line_header_lines)
        for i in range(start, end):
            lower = lines[i].lower()
            if not lower:
                continue
            if date_line is None and any(k in lower for k in keywords.date_keywords):
                date_line = i
            if desc_line is None and any(k in lower for k in keywords.description_keywords):
                desc_line = i
            if debit_line is None and all(k in lower for k in keywords.debit_keywords):
                debit_line = i
            if credit_line is None and all(k in lower for k in keywords.credit_keywords):
                credit_line = i

        if date_line is None or desc_line is None or (debit_line is None and credit_line is None):
            return None

        return max(i for i in (date_line, desc_line, debit_line, credit_line) if i is not None)


DEFAULT_STRATEGIES = (SingleLineHeaderStrategy, PatternBasedStrategy, MultiLineHeaderStrategy)


class TableRegionDetector:
    """Runs detection strategies in priority order."""

    def __init__(self, date_format: DateFormat, settings: Optional[HeuristicSettings] = None,
                 strategies: Optional[Sequence[type]] = None):
        self.date_format = date_format
        self.settings = settings or load_settings()
        self.strategies = [
            strategy(date_format, self.settings)
            for strategy in (strategies or DEFAULT_STRATEGIES)
        ]

    def detect(self, lines: List[str], start: int) -> Optional[TableRegion]:
        """
        Find the next table at or after ``start``.

        Args:
            lines: Statement lines
            start: Index to start scanning from

        Returns:
            TableRegion from the first strategy that succeeds, or None
        """
        for strategy in self.strategies:
            region = strategy.detect(lines, start)
            if region:
                logger.debug(f"{strategy!r} found {region!r}")
                return region

        logger.debug(f"No table found from line {start}")
        return None
