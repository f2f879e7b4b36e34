"""
Tests for row parsing inside detected tables.
"""
import pytest
from decimal import Decimal

from ..core.normalize import AmountToken
from ..core.settings import load_settings
from ..core.tables import (
    TableRowParser, classify_column_amount, extract_inline_transaction, locate_amount,
)
from ..models.schema import CREDIT, DEBIT, DateFormat, FormatVariant, TableRegion


def _columns_region(data_start=1, amount_name="amount"):
    return TableRegion(
        format_variant=FormatVariant.SINGLE_LINE_COLUMNS,
        header_row_index=data_start - 1,
        data_start_row_index=data_start,
        date_column=0,
        description_column=1,
        amount_column=2,
        column_names=["transaction date", "description", amount_name],
    )


def _parser(lines, date_format=DateFormat.DD_MM_YYYY):
    return TableRowParser(lines, date_format, load_settings())


class TestLocateAmount:
    """Amount discovery in free row text."""

    def test_two_slot_debit(self):
        text = "9941  MOCA  40.000 DR  0 CR"
        token, start = locate_amount(text)
        assert (token.value, token.side) == (Decimal("40000"), DEBIT)
        assert start == text.index("40.000")

    def test_two_slot_credit(self):
        token, _ = locate_amount("SHOPEE PAY  0 DR  150.000 CR")
        assert (token.value, token.side) == (Decimal("150000"), CREDIT)

    def test_last_non_zero_marked_amount(self):
        token, _ = locate_amount("STORE  1.000 CR  2.000 DR")
        assert (token.value, token.side) == (Decimal("2000"), DEBIT)

        token, _ = locate_amount("PAYMENT  500 CR  0 DR")
        assert (token.value, token.side) == (Decimal("500"), CREDIT)

    def test_trailing_bare_number_is_debit(self):
        token, start = locate_amount("BOOKSTORE  120.000")
        assert (token.value, token.side) == (Decimal("120000"), DEBIT)
        assert start == 11

    @pytest.mark.parametrize("text", ["0 DR  0 CR", "NOTHING", ""])
    def test_no_amount(self, text):
        assert locate_amount(text) is None


class TestInlineTransaction:
    """Transactions built from text after the dates."""

    def test_strips_leading_identifier(self):
        transaction = extract_inline_transaction(
            "06-12-2025", "  9941  MOCA  40.000 DR  0 CR", DateFormat.DD_MM_YYYY_DASH
        )
        assert transaction.date == "06-12-2025"
        assert transaction.description == "MOCA"
        assert transaction.debit == Decimal("40000")
        assert transaction.credit is None

    def test_date_separator_follows_format(self):
        transaction = extract_inline_transaction(
            "06/12/2025", "  GRAB   TRIP  55.500", DateFormat.DD_MM_YYYY_DASH
        )
        assert transaction.date == "06-12-2025"
        assert transaction.description == "GRAB TRIP"

    @pytest.mark.parametrize("remainder", ["  40.000 DR", "  MOCA", ""])
    def test_missing_parts(self, remainder):
        assert extract_inline_transaction("06-12-2025", remainder, DateFormat.DD_MM_YYYY_DASH) is None


class TestClassifyColumnAmount:
    """Debit/credit decision for column values."""

    def test_named_column_decides(self):
        token = AmountToken(Decimal("10"), CREDIT)
        assert classify_column_amount(token, "Debit") == DEBIT
        assert classify_column_amount(AmountToken(Decimal("10"), DEBIT), "Credit") == CREDIT

    def test_generic_column_uses_marker(self):
        assert classify_column_amount(AmountToken(Decimal("10"), CREDIT), "amount") == CREDIT
        assert classify_column_amount(AmountToken(Decimal("10")), "debit/credit") == DEBIT


class TestSingleLineRows:
    """Rows split into columns."""

    def test_rows_and_invalid_dates(self):
        lines = [
            "Transaction Date  Description  Amount",
            "01/02/2024  COFFEE SHOP  4.500 DR",
            "13/13/2024  BROKEN ROW  9.999 DR",
            "03/02/2024  PAYMENT RECEIVED  1.000.000 CR",
        ]
        result = _parser(lines).parse(_columns_region())

        assert [t.description for t in result.transactions] == ["COFFEE SHOP", "PAYMENT RECEIVED"]
        assert result.transactions[0].debit == Decimal("4500")
        assert result.transactions[1].credit == Decimal("1000000")
        assert result.last_row_index == 3
        assert result.consumed_rows == {1, 3}

    def test_debit_column_overrides_marker(self):
        lines = ["Date  Description  Debit", "01/02/2024  REFUND  4.500 CR"]
        result = _parser(lines).parse(_columns_region(amount_name="debit"))
        assert result.transactions[0].debit == Decimal("4500")

    def test_three_blank_rows_end_table(self):
        lines = [
            "Transaction Date  Description  Amount",
            "01/02/2024  COFFEE SHOP  4.500 DR",
            "", "", "",
            "02/02/2024  LATE ROW  1.000 DR",
        ]
        result = _parser(lines).parse(_columns_region())
        assert len(result.transactions) == 1
        assert result.last_row_index == 1

    def test_two_blank_rows_do_not_end_table(self):
        lines = [
            "Transaction Date  Description  Amount",
            "01/02/2024  COFFEE SHOP  4.500 DR",
            "", "",
            "02/02/2024  LATE ROW  1.000 DR",
        ]
        result = _parser(lines).parse(_columns_region())
        assert len(result.transactions) == 2

    def test_five_invalid_rows_end_table(self):
        lines = ["Transaction Date  Description  Amount", "01/02/2024  COFFEE SHOP  4.500 DR"]
        lines += ["junk"] * 5 + ["02/02/2024  LATE ROW  1.000 DR"]
        result = _parser(lines).parse(_columns_region())
        assert len(result.transactions) == 1

    def test_four_invalid_rows_are_skipped(self):
        lines = ["Transaction Date  Description  Amount", "01/02/2024  COFFEE SHOP  4.500 DR"]
        lines += ["junk"] * 4 + ["02/02/2024  LATE ROW  1.000 DR"]
        result = _parser(lines).parse(_columns_region())
        assert len(result.transactions) == 2

    def test_new_header_ends_table(self):
        lines = [
            "Transaction Date  Description  Amount",
            "01/02/2024  COFFEE SHOP  4.500 DR",
            "Transaction Date  Description  Debit",
            "02/02/2024  LATE ROW  1.000",
        ]
        result = _parser(lines).parse(_columns_region())
        assert len(result.transactions) == 1
        assert result.last_row_index == 1

    def test_zero_amount_row_skipped(self):
        lines = ["Transaction Date  Description  Amount", "01/02/2024  FEE WAIVED  0"]
        result = _parser(lines).parse(_columns_region())
        assert result.transactions == []
        assert result.last_row_index == 1


class TestTwoDateRows:
    """Header-less rows starting with two dates."""

    def test_rows_until_blank_line(self):
        lines = [
            "06-12-2025  06-12-2025  9941  MOCA  40.000 DR  0 CR",
            "32-12-2025  01-12-2025  BAD DATE  5.000 DR",
            "07-12-2025  08-12-2025  SHOPEE PAY  0 DR  150.000 CR",
            "",
            "09-12-2025  09-12-2025  AFTER GAP  1.000 DR",
        ]
        region = TableRegion(FormatVariant.PATTERN_BASED_TWO_DATE, data_start_row_index=0, date_column=0)
        result = _parser(lines, DateFormat.DD_MM_YYYY_DASH).parse(region)

        assert [t.description for t in result.transactions] == ["MOCA", "SHOPEE PAY"]
        assert result.transactions[1].credit == Decimal("150000")
        assert result.last_row_index == 2

    def test_summary_line_ends_table(self):
        lines = [
            "06-12-2025  06-12-2025  MOCA  40.000 DR",
            "Total  40.000",
            "07-12-2025  07-12-2025  LATER  1.000 DR",
        ]
        region = TableRegion(FormatVariant.PATTERN_BASED_TWO_DATE, data_start_row_index=0, date_column=0)
        result = _parser(lines, DateFormat.DD_MM_YYYY_DASH).parse(region)
        assert len(result.transactions) == 1

    def test_summary_word_inside_merchant_name(self):
        lines = [
            "06-12-2025  06-12-2025  TOTALENERGIES  40.000 DR",
            "07-12-2025  07-12-2025  SUMMARYPAY  1.000 DR",
            "Subtotal  41.000",
            "Closing balance  41.000",
        ]
        region = TableRegion(FormatVariant.PATTERN_BASED_TWO_DATE, data_start_row_index=0, date_column=0)
        result = _parser(lines, DateFormat.DD_MM_YYYY_DASH).parse(region)

        assert [t.description for t in result.transactions] == ["TOTALENERGIES", "SUMMARYPAY"]
        assert result.consumed_rows == {0, 1}


class TestTransactionBlocks:
    """Date / description / amount spread over three lines."""

    def _region(self):
        return TableRegion(FormatVariant.MULTI_LINE_HEADER, data_start_row_index=0, date_column=0)

    def test_resolves_to_block_variant(self):
        assert TableRowParser.resolve_variant(self._region()) is FormatVariant.MULTI_LINE_TRANSACTION_BLOCK

    def test_concatenated_dates(self, multi_line_statement):
        lines = multi_line_statement.splitlines()
        region = TableRegion(FormatVariant.MULTI_LINE_HEADER, header_row_index=4,
                             data_start_row_index=5, date_column=0)
        result = _parser(lines).parse(region)

        first, second = result.transactions
        assert (first.date, first.description, first.debit) == ("11/11/2025", "GRAB TAXI HANOI", Decimal("407800"))
        assert (second.date, second.description, second.credit) == ("12/11/2025", "SALARY REFUND", Decimal("1500000"))
        assert result.last_row_index == 10

    def test_failed_block_advances_one_line(self):
        lines = ["PAGE 2", "11/11/2025", "GRAB TAXI", "407.800 DR"]
        result = _parser(lines).parse(self._region())
        assert len(result.transactions) == 1
        assert result.last_row_index == 3
        assert result.consumed_rows == {1, 2, 3}

    def test_summary_line_ends_blocks(self):
        lines = [
            "11/11/2025", "GRAB TAXI", "407.800 DR",
            "Total balance",
            "12/11/2025", "SHOP", "1.000 DR",
        ]
        result = _parser(lines).parse(self._region())
        assert len(result.transactions) == 1

    def test_short_description_rejected(self):
        lines = ["11/11/2025", "AB", "407.800 DR"]
        assert _parser(lines).parse(self._region()).transactions == []

    def test_unmarked_first_amount_is_debit(self):
        lines = ["11/11/2025", "BOOKSTORE", "120.000      5.000"]
        transaction = _parser(lines).parse(self._region()).transactions[0]
        assert transaction.debit == Decimal("120000")

    def test_single_line_layout_under_multi_line_header(self):
        region = TableRegion(FormatVariant.MULTI_LINE_HEADER, header_row_index=0,
                             data_start_row_index=1, date_column=0, description_column=2,
                             amount_column=3)
        lines = ["Debit DR / Credit CR", "01/02/2024  02/02/2024  STARBUCKS  45.000 DR"]

        assert TableRowParser.resolve_variant(region) is FormatVariant.SINGLE_LINE_COLUMNS
        transaction = _parser(lines).parse(region).transactions[0]
        assert (transaction.description, transaction.debit) == ("STARBUCKS", Decimal("45000"))
