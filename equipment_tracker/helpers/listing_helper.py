# equipment_tracker/helpers/listing_helper.py
"""
Listing and serialization of inventory records.
Records leave the API as camelCase dicts, newest first.
"""
import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic.alias_generators import to_camel
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from equipment_tracker.helpers.entity_types import EntityKind, ensure_exhaustive
from equipment_tracker.models.entity_models import (
    Computer,
    DeviceAssignment,
    ImportedComputer,
    NetworkDevice,
    OtherDevice,
)

ENTITY_MODELS: Dict[EntityKind, Any] = {
    EntityKind.computers: Computer,
    EntityKind.network_devices: NetworkDevice,
    EntityKind.other_devices: OtherDevice,
    EntityKind.assigned_devices: DeviceAssignment,
}

ensure_exhaustive(ENTITY_MODELS, "ENTITY_MODELS")

# Human label used in messages
ENTITY_LABELS: Dict[EntityKind, str] = {
    EntityKind.computers: "Computer",
    EntityKind.network_devices: "Network device",
    EntityKind.other_devices: "Device",
    EntityKind.assigned_devices: "Assignment",
}

ensure_exhaustive(ENTITY_LABELS, "ENTITY_LABELS")


def _json_value(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_record(obj: Any) -> Dict[str, Any]:
    """Column values of a row keyed by camelCase column name."""
    return {
        to_camel(column.key): _json_value(getattr(obj, column.key))
        for column in obj.__table__.columns
    }


def parse_device_list(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        # legacy rows holding a bare descriptor
        return [raw]
    if isinstance(parsed, list):
        return [str(item) for item in parsed]
    return [str(parsed)]


def serialize_assignment(obj: DeviceAssignment) -> Dict[str, Any]:
    data = serialize_record(obj)
    data["devices"] = parse_device_list(obj.devices)
    return data


ENTITY_SERIALIZERS = {
    EntityKind.computers: serialize_record,
    EntityKind.network_devices: serialize_record,
    EntityKind.other_devices: serialize_record,
    EntityKind.assigned_devices: serialize_assignment,
}

ensure_exhaustive(ENTITY_SERIALIZERS, "ENTITY_SERIALIZERS")


def serialize_entity(kind: EntityKind, obj: Any) -> Dict[str, Any]:
    return ENTITY_SERIALIZERS[kind](obj)


# filter name -> (column name, filter type)
LIST_FILTERS: Dict[str, Tuple[str, str]] = {
    "building": ("building", "exact"),
    "status": ("status", "exact"),
    "location": ("location", "contains"),
}


def list_entities(
    db: Session,
    kind: EntityKind,
    filters: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    """
    All records of one kind, newest first.

    Filters whose column the kind does not have are ignored
    (assignments have no status or location).
    """
    model = ENTITY_MODELS[kind]
    stmt = select(model)

    for filter_name, filter_value in (filters or {}).items():
        if filter_value is None or (isinstance(filter_value, str) and not filter_value.strip()):
            continue
        if filter_name not in LIST_FILTERS:
            continue
        column_name, filter_type = LIST_FILTERS[filter_name]
        column = getattr(model, column_name, None)
        if column is None:
            continue
        if filter_type == "exact":
            stmt = stmt.where(func.lower(column) == filter_value.strip().lower())
        elif filter_type == "contains":
            stmt = stmt.where(func.lower(column).contains(filter_value.strip().lower()))

    stmt = stmt.order_by(model.created_at.desc(), model.id.desc())
    return [serialize_entity(kind, obj) for obj in db.execute(stmt).scalars()]


def list_staged_rows(db: Session, limit: int) -> List[Dict[str, Any]]:
    """Most recently imported staged rows, newest first."""
    stmt = (
        select(ImportedComputer)
        .order_by(ImportedComputer.imported_at.desc(), ImportedComputer.id.desc())
        .limit(limit)
    )
    return [serialize_record(obj) for obj in db.execute(stmt).scalars()]
