"""
Card number discovery by label anchors and masked patterns.
"""
import re
from typing import Optional
import logging

logger = logging.getLogger(__name__)


LABEL_PATTERNS = [
    re.compile(r"Card\s+Number[:\s]+(\d{4,})", re.IGNORECASE),
    re.compile(r"Card\s*#\s*[:\s]+(\d{4,})", re.IGNORECASE),
    re.compile(r"Card\s+ending\s+in[:\s]+(\d{4,})", re.IGNORECASE),
    re.compile(r"Account\s+Number[:\s]+(\d{4,})", re.IGNORECASE),
]

MASKED_PATTERNS = [
    re.compile(r"\*{4}\s*\*{4}\s*\*{4}\s*(\d{4})"),   # **** **** **** 1234
    re.compile(r"\*{3,}\s*(\d{4})"),                  # ***1234 / ****1234
    re.compile(r"x{4}\s*x{4}\s*x{4}\s*(\d{4})", re.IGNORECASE),
    re.compile(r"\d+[xX]{4,}\s*(\d{4})"),             # 402737xxxxxx9656
    re.compile(r"\d+\s*[xX]{4,}\s*(\d{4})"),
]


def last4_digits(value: str) -> Optional[str]:
    """
    Last four digits of a string, ignoring non-digits.

    Args:
        value: Card or account number text

    Returns:
        Four-digit string, or None if fewer than four digits are present
    """
    digits = re.sub(r"\D", "", value)
    if len(digits) < 4:
        return None
    return digits[-4:]


def find_labeled_number(text: str) -> Optional[str]:
    """Search for a card/account label followed by a digit run."""
    for pattern in LABEL_PATTERNS:
        match = pattern.search(text)
        if match:
            last4 = last4_digits(match.group(1))
            if last4:
                logger.debug(f"Card number found by label pattern {pattern.pattern!r}")
                return last4
    return None


def find_masked_number(text: str) -> Optional[str]:
    """Search for a masked card number and return its visible four digits."""
    for pattern in MASKED_PATTERNS:
        match = pattern.search(text)
        if match:
            logger.debug(f"Card number found by masked pattern {pattern.pattern!r}")
            return match.group(1)
    return None


def extract_card_number(text: str) -> Optional[str]:
    """
    Extract the last four digits of the statement's card/account number.

    Labels are tried before masked patterns.

    Args:
        text: Full statement text

    Returns:
        Last four digits, or None if no strategy matches
    """
    if not text:
        return None

    return find_labeled_number(text) or find_masked_number(text)
