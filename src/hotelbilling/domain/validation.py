"""Input coercion shared by the billing services.

Each helper turns loosely typed caller input into a domain value or raises
ValidationError with a message fit for the person who typed it.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional, TypeVar

from hotelbilling.domain.entities import PaymentMode, ReportType, TransactionType
from hotelbilling.domain.errors import ValidationError, amount_not_positive
from hotelbilling.utils.amount_parser import CENT, to_decimal

E = TypeVar("E", bound=Enum)


def _parse_enum(enum_type: type[E], value, label: str) -> E:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label} is required")
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {label.lower()} '{value}'. Expected one of: {choices}")


def parse_payment_mode(value) -> PaymentMode:
    """Coerce a payment mode; missing or unknown modes are rejected."""
    return _parse_enum(PaymentMode, value, "Payment mode")


def parse_transaction_type(value) -> TransactionType:
    """Coerce a ledger transaction type."""
    return _parse_enum(TransactionType, value, "Transaction type")


def parse_report_type(value) -> ReportType:
    """Coerce a report type."""
    return _parse_enum(ReportType, value, "Report type")


def require_number(value, label: str) -> Decimal:
    """Coerce a numeric value or raise ValidationError."""
    try:
        return to_decimal(value)
    except ValueError:
        raise ValidationError(f"{label} must be a number (got {value!r})")


def require_money(value, label: str) -> Decimal:
    """Coerce a money value that must already be in whole cents."""
    number = require_number(value, label)
    if number != number.quantize(CENT):
        raise ValidationError(f"{label} cannot have fractions of a cent (got {value})")
    return number.quantize(CENT)


def require_positive_amount(value, label: str = "Amount") -> Decimal:
    """Coerce a money amount that must be greater than zero."""
    if value is None:
        raise ValidationError(f"{label} is required")
    amount = require_money(value, label)
    if amount <= 0:
        raise ValidationError(amount_not_positive(label, amount))
    return amount


def require_non_negative(value, label: str) -> Decimal:
    """Coerce an optional money amount that defaults to zero."""
    if value is None:
        return Decimal("0.00")
    amount = require_money(value, label)
    if amount < 0:
        raise ValidationError(f"{label} cannot be negative (got {amount})")
    return amount


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip text, mapping blank strings to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def require_page(page: int, limit: int) -> tuple[int, int]:
    """Validate pagination arguments and return (offset, limit)."""
    if page < 1:
        raise ValidationError(f"Page must be 1 or greater (got {page})")
    if limit < 1:
        raise ValidationError(f"Limit must be 1 or greater (got {limit})")
    return (page - 1) * limit, limit
