"""
Pydantic models and value types for parsed statement data.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Set
from pydantic import BaseModel, Field, field_validator, model_validator


DEBIT = "debit"
CREDIT = "credit"


class DateFormat(str, Enum):
    """Caller-declared date format of a statement."""
    DD_MM_YYYY = "DD/MM/YYYY"
    MM_DD_YYYY = "MM/DD/YYYY"
    YYYY_MM_DD = "YYYY-MM-DD"
    DD_MM_YYYY_DASH = "DD-MM-YYYY"
    MM_DD_YYYY_DASH = "MM-DD-YYYY"

    @property
    def separator(self) -> str:
        return "/" if "/" in self.value else "-"

    @property
    def year_first(self) -> bool:
        return self.value.startswith("YYYY")

    @property
    def month_first(self) -> bool:
        return self.value.startswith("MM")


class FormatVariant(str, Enum):
    """Row layout of a detected transaction table."""
    SINGLE_LINE_COLUMNS = "single_line_columns"
    MULTI_LINE_HEADER = "multi_line_header"
    PATTERN_BASED_TWO_DATE = "pattern_based_two_date"
    MULTI_LINE_TRANSACTION_BLOCK = "multi_line_transaction_block"


class ParsedTransaction(BaseModel):
    """Individual transaction row."""
    date: str
    description: str
    debit: Optional[Decimal] = None
    credit: Optional[Decimal] = None

    @field_validator('description')
    @classmethod
    def validate_description(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Transaction description cannot be empty")
        return v

    @model_validator(mode='after')
    def validate_single_side(self):
        """Exactly one of debit/credit must be present and positive."""
        if (self.debit is None) == (self.credit is None):
            raise ValueError(
                f"Transaction must have exactly one of debit/credit: {self.description}"
            )
        amount = self.debit if self.debit is not None else self.credit
        if amount <= 0:
            raise ValueError(f"Transaction amount must be positive: {self.description}")
        return self

    @property
    def signed_amount(self) -> Decimal:
        """Debits negative, credits positive."""
        return -self.debit if self.debit is not None else self.credit


class ParsedStatement(BaseModel):
    """Complete extraction result for one statement."""
    card_number_last4: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    transactions: List[ParsedTransaction] = Field(default_factory=list)


class ColumnLayout:
    """Column indices inferred from sampled data rows."""
    def __init__(self, date_column: Optional[int] = None,
                 description_column: Optional[int] = None,
                 amount_column: Optional[int] = None):
        self.date_column = date_column
        self.description_column = description_column
        self.amount_column = amount_column

    @property
    def is_single_line(self) -> bool:
        return self.description_column is not None and self.amount_column is not None

    def __eq__(self, other):
        if not isinstance(other, ColumnLayout):
            return NotImplemented
        return (self.date_column, self.description_column, self.amount_column) == \
            (other.date_column, other.description_column, other.amount_column)

    def __repr__(self):
        return (f"ColumnLayout(date={self.date_column}, description={self.description_column}, "
                f"amount={self.amount_column})")


class TableRegion:
    """Detector output describing where a table starts and how its rows are laid out."""
    def __init__(self, format_variant: FormatVariant, data_start_row_index: int,
                 header_row_index: Optional[int] = None,
                 date_column: Optional[int] = None,
                 description_column: Optional[int] = None,
                 amount_column: Optional[int] = None,
                 column_names: Optional[List[str]] = None):
        self.format_variant = format_variant
        self.data_start_row_index = data_start_row_index
        self.header_row_index = header_row_index
        self.date_column = date_column
        self.description_column = description_column
        self.amount_column = amount_column
        self.column_names = column_names or []

    @property
    def anchor_row_index(self) -> int:
        """First row that belongs to the table (header if any, else first data row)."""
        if self.header_row_index is not None:
            return self.header_row_index
        return self.data_start_row_index

    @property
    def amount_column_name(self) -> str:
        if self.amount_column is None or self.amount_column >= len(self.column_names):
            return ""
        return self.column_names[self.amount_column]

    def __repr__(self):
        return (f"TableRegion({self.format_variant.value}, header={self.header_row_index}, "
                f"data_start={self.data_start_row_index}, date={self.date_column}, "
                f"description={self.description_column}, amount={self.amount_column})")


class TableParseResult:
    """Transactions parsed from one table, the rows it read as data and the last row consumed."""
    def __init__(self, transactions: List[ParsedTransaction], last_row_index: Optional[int],
                 consumed_rows: Optional[Set[int]] = None):
        self.transactions = transactions
        self.last_row_index = last_row_index
        self.consumed_rows = consumed_rows or set()

    def __repr__(self):
        return f"TableParseResult({len(self.transactions)} transactions, last_row={self.last_row_index})"
