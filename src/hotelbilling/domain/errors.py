"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Concurrent modification or uniqueness violation."""


PAYMENT_EXCEEDS_DUE = "Payment amount cannot exceed due amount"
PAYMENT_EXCEEDS_OUTSTANDING = "Payment amount cannot exceed outstanding balance"


def booking_not_found(booking_id: int) -> str:
    """Return message for missing booking."""
    return f"Booking {booking_id} not found"


def invoice_not_found(invoice_id: int) -> str:
    """Return message for missing invoice."""
    return f"Invoice {invoice_id} not found"


def vendor_not_found(vendor_id: int) -> str:
    """Return message for missing vendor."""
    return f"Vendor {vendor_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing ledger transaction."""
    return f"Transaction {transaction_id} not found"


def invoice_modified_concurrently(invoice_number: str) -> str:
    """Return message when an invoice changed between read and update."""
    return (
        f"Invoice {invoice_number} was modified by another payment. "
        "Reload the invoice and try again."
    )


def vendor_modified_concurrently(vendor_name: str) -> str:
    """Return message when a vendor's totals changed between read and update."""
    return (
        f"Vendor '{vendor_name}' was modified by another payment. "
        "Reload the vendor and try again."
    )


def amount_not_positive(field: str, value: Decimal) -> str:
    """Return message for an amount that must be greater than zero."""
    return f"{field} must be greater than 0 (got {value})"
