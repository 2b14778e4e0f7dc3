"""
Money Handling Module

Exact Decimal amounts for every balance and debt. NEVER uses float for
monetary values.
"""

from decimal import (
    Context, Decimal, DivisionByZero, Inexact, InvalidOperation, MAX_EMAX,
    MAX_PREC, MIN_EMIN, Overflow, Rounded, getcontext, localcontext
)
from typing import Union
import re

from .exceptions import InvalidAmount

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')

AmountLike = Union[Decimal, int, str, float]


def exact_arithmetic():
    """
    Context manager for ledger arithmetic

    Sums and differences of balances and debts never round: precision is
    unbounded and any rounding raises instead of losing digits.
    """
    return localcontext(Context(
        prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN,
        traps=[InvalidOperation, DivisionByZero, Overflow, Inexact, Rounded]
    ))


def to_decimal(value: AmountLike) -> Decimal:
    """Coerce a value to Decimal; floats go through their string form"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(value: str) -> Decimal:
    """
    Parse a user-typed amount, handling common formats

    Args:
        value: String such as "100", "$12.50" or "1,000.25"

    Returns:
        Decimal value (sign preserved; positivity is checked by the caller)

    Raises:
        InvalidAmount: If the string is not a finite decimal number
    """
    if not value or not isinstance(value, str):
        raise InvalidAmount()

    # Remove currency symbols and whitespace
    clean_value = re.sub(r'[$\s]', '', value.strip())

    # Comma is only ever a thousands separator here
    if re.fullmatch(r'[-+]?\d{1,3}(,\d{3})+(\.\d+)?', clean_value):
        clean_value = clean_value.replace(',', '')

    if not re.fullmatch(r'[-+]?(\d+(\.\d*)?|\.\d+)', clean_value):
        raise InvalidAmount()

    try:
        return Decimal(clean_value)
    except InvalidOperation:
        raise InvalidAmount()


def is_positive(amount: Decimal) -> bool:
    """Check if amount is strictly positive"""
    return amount > ZERO


def format_amount(amount: Decimal) -> str:
    """Format for display: dollar sign plus the plain decimal digits"""
    return f"${amount:f}"
