"""Domain layer for hotelbilling.

Services live in their own modules (``hotelbilling.domain.invoice`` and
friends) and are imported from there so the database layer can depend on
the entities without a circular import.
"""

from hotelbilling.domain.errors import (
    DomainError,
    ValidationError,
    NotFoundError,
    ConflictError,
)

__all__ = ["DomainError", "ValidationError", "NotFoundError", "ConflictError"]
