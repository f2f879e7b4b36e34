"""
Statement Parser

Heuristic extraction of transaction tables and card numbers from the
layout-preserving text of bank and credit card statements.
"""

__version__ = "1.0.0"

from .core.anchors import extract_card_number
from .core.loader import ExtractionError, extract_text
from .core.normalize import is_valid_date, parse_amount_token, parse_date_by_format
from .core.runner import StatementParser, detect_tables, parse_pdf, parse_statement
from .models.schema import DateFormat, FormatVariant, ParsedStatement, ParsedTransaction, TableRegion

__all__ = [
    "parse_statement",
    "parse_pdf",
    "detect_tables",
    "extract_card_number",
    "extract_text",
    "is_valid_date",
    "parse_date_by_format",
    "parse_amount_token",
    "StatementParser",
    "ExtractionError",
    "DateFormat",
    "FormatVariant",
    "ParsedStatement",
    "ParsedTransaction",
    "TableRegion"
]
