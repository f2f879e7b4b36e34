"""
Shared statement text samples.
"""
import pytest


SINGLE_LINE_STATEMENT = (
    "STATEMENT OF ACCOUNT\n"
    "Card Number: 4111111111111111\n"
    "\n"
    "Transaction Date  Description  Amount\n"
    "01/02/2024  COFFEE SHOP  4.500 DR\n"
    "03/02/2024  PAYMENT RECEIVED  1.000.000 CR\n"
    "13/13/2024  BROKEN ROW  9.999 DR\n"
    "05/02/2024  BOOKSTORE  120.000\n"
    "\n"
    "\n"
    "Transaction Date  Description  Debit\n"
    "10/02/2024  GROCERY MART  250.500\n"
)

PATTERN_STATEMENT = (
    "SAO KE THE TIN DUNG\n"
    "Card: 402737xxxxxx9656\n"
    "06-12-2025  06-12-2025  9941  MOCA  40.000 DR  0 CR\n"
    "07-12-2025  08-12-2025  9941  SHOPEE PAY  0 DR  150.000 CR\n"
    "08-12-2025  08-12-2025  GRAB*TRIP  55.500 DR\n"
    "Closing balance  1.234.567\n"
)

MULTI_LINE_STATEMENT = (
    "Transaction Date\n"
    "Posting Date\n"
    "Description\n"
    "Debit (DR)\n"
    "Credit (CR)\n"
    "11/11/202514/11/2025\n"
    "GRAB TAXI HANOI\n"
    "407.800 DR               0 CR\n"
    "12/11/202513/11/2025\n"
    "SALARY REFUND\n"
    "0 DR               1.500.000 CR\n"
)


@pytest.fixture
def single_line_statement():
    return SINGLE_LINE_STATEMENT


@pytest.fixture
def pattern_statement():
    return PATTERN_STATEMENT


@pytest.fixture
def multi_line_statement():
    return MULTI_LINE_STATEMENT
