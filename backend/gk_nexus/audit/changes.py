"""
Helpers turning ORM rows into the JSON-safe before/after structure stored
in ``audit_log.changes``.
"""
import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import inspect

# Bookkeeping columns that change on every write and carry no business meaning.
IGNORED_FIELDS = frozenset({"updated_at", "updated_by_id", "version"})


def to_json_value(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_value(v) for v in value]
    return value


def snapshot(row) -> Dict[str, Any]:
    """Column values of ``row`` keyed by attribute name."""
    mapper = inspect(row).mapper
    return {
        attr.key: to_json_value(getattr(row, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in IGNORED_FIELDS
    }


def diff_changes(before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build the ``{"before": ..., "after": ...}`` structure for an audit entry.

    Creates carry only ``after``, deletes only ``before``; updates keep just the
    fields whose value changed.
    """
    if before is None or after is None:
        return {"before": before, "after": after}

    changed = sorted(k for k in set(before) | set(after) if before.get(k) != after.get(k))
    return {
        "before": {k: before.get(k) for k in changed},
        "after": {k: after.get(k) for k in changed},
    }
