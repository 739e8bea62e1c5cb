"""Audit trail for billing records.

Services call ``AuditService.record`` inside the same atomic block as the
write it describes, so an entry exists exactly when the change was
committed.
"""

import dataclasses
import logging
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from hotelbilling.database.base import Database
from hotelbilling.domain.entities import AuditAction, AuditEntry
from hotelbilling.domain.errors import ValidationError
from hotelbilling.domain.validation import clean_text

logger = logging.getLogger(__name__)

ENTITY_INVOICE = "invoice"
ENTITY_PAYMENT = "payment"
ENTITY_TRANSACTION = "transaction"


def to_audit_value(value: Any) -> Any:
    """Convert a value to the JSON form stored in the audit log.

    Money stays a string so cents are kept exactly.
    """
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_audit_value(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(key): to_audit_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_audit_value(item) for item in value]
    return value


class AuditService:
    """Service for writing and reading the audit trail."""

    def __init__(self, db: Database):
        self.db = db

    def record(
        self,
        entity_type: str,
        entity_id: int,
        action,
        changed_by: Optional[str] = None,
        field: Optional[str] = None,
        old_value: Any = None,
        new_value: Any = None,
    ) -> int:
        """Append one audit entry.

        Args:
            entity_type: Kind of record, e.g. "invoice"
            entity_id: ID of the record
            action: create, update or delete
            changed_by: Actor identifier from the session context
            field: Attribute name for single-field updates
            old_value: Value before the change
            new_value: Value after the change

        Returns:
            ID of the audit entry
        """
        try:
            audit_action = AuditAction(action)
        except ValueError:
            raise ValidationError(f"Invalid audit action: {action}")

        entry_id = self.db.create_audit_entry(
            entity_type=entity_type,
            entity_id=entity_id,
            action=audit_action.value,
            changed_by=clean_text(changed_by),
            field=field,
            old_value=to_audit_value(old_value),
            new_value=to_audit_value(new_value),
        )
        logger.debug(
            "Audit %s %s %s field=%s", audit_action.value, entity_type, entity_id, field
        )
        return entry_id

    def list_entries(
        self, entity_type: Optional[str] = None, entity_id: Optional[int] = None
    ) -> list[AuditEntry]:
        """Audit entries oldest first, optionally for one record."""
        return self.db.list_audit_entries(
            entity_type=clean_text(entity_type), entity_id=entity_id
        )
