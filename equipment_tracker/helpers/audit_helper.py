# equipment_tracker/helpers/audit_helper.py
"""
Change history for inventory records.

Every successful create/update/delete appends one DeviceHistory row holding a
{"before": ..., "after": ...} snapshot pair. Entries are never changed or removed.
"""
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from equipment_tracker.core.logger import app_logger
from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.models.entity_models import DeviceHistory

HISTORY_ACTIONS = ("create", "update", "delete")


def record_history(
    db: Session,
    kind: EntityKind,
    entity_id: int,
    action: str,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> Optional[DeviceHistory]:
    """
    Append a history entry after a mutation has been committed.

    The entry is committed on its own. A failure here is logged and swallowed
    so it never changes the outcome of the mutation that triggered it.

    Returns:
        The stored entry, or None if it could not be written
    """
    if action not in HISTORY_ACTIONS:
        raise ValueError(f"Unknown history action: {action}")

    entry = DeviceHistory(
        device_table=kind.value,
        device_id=entity_id,
        action=action,
        details=json.dumps({"before": before, "after": after}, default=str, ensure_ascii=False),
        timestamp=datetime.utcnow(),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        app_logger.exception(
            "Failed to record history entry",
            extra={"device_table": kind.value, "device_id": entity_id, "action": action},
        )
        return None
    return entry


def log_create(db: Session, kind: EntityKind, entity_id: int, payload: Dict[str, Any]) -> Optional[DeviceHistory]:
    return record_history(db, kind, entity_id, "create", before=None, after=payload)


def log_update(
    db: Session,
    kind: EntityKind,
    entity_id: int,
    before: Dict[str, Any],
    payload: Dict[str, Any],
) -> Optional[DeviceHistory]:
    return record_history(db, kind, entity_id, "update", before=before, after=payload)


def log_delete(db: Session, kind: EntityKind, entity_id: int, before: Dict[str, Any]) -> Optional[DeviceHistory]:
    return record_history(db, kind, entity_id, "delete", before=before, after=None)


def _parse_details(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


def describe_snapshot(details: Dict[str, Any]) -> Dict[str, str]:
    """
    Pick a display name and inventory number from a snapshot pair.

    Uses the "after" snapshot, falling back to "before". The name is the first
    present of model, computer name or employee, else the device type.
    """
    info = details.get("after") or details.get("before") or {}
    if not isinstance(info, dict):
        info = {}

    inventory_number = info.get("inventoryNumber") or info.get("inventory_number") or ""
    name = (
        info.get("model")
        or info.get("computer_name")
        or info.get("computerName")
        or info.get("employee")
        or ""
    )
    if not name:
        name = info.get("type") or info.get("deviceType") or info.get("device_type") or ""

    return {"inventoryNumber": str(inventory_number), "name": str(name)}


def serialize_history_entry(entry: DeviceHistory) -> Dict[str, Any]:
    details = _parse_details(entry.details)
    described = describe_snapshot(details)
    return {
        "id": entry.id,
        "table": entry.device_table,
        "deviceId": entry.device_id,
        "inventoryNumber": described["inventoryNumber"],
        "name": described["name"],
        "action": entry.action,
        "details": details,
        "timestamp": entry.timestamp.isoformat() if entry.timestamp else None,
    }


def list_recent_history(
    db: Session,
    limit: int,
    table: Optional[EntityKind] = None,
) -> List[Dict[str, Any]]:
    """Newest entries first, optionally restricted to one table."""
    stmt = select(DeviceHistory)
    if table is not None:
        stmt = stmt.where(DeviceHistory.device_table == table.value)
    stmt = stmt.order_by(DeviceHistory.id.desc()).limit(limit)
    return [serialize_history_entry(entry) for entry in db.execute(stmt).scalars()]
