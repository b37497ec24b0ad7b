# equipment_tracker/helpers/update_entity_helper.py
"""
Helper functions for updating inventory records.
Updates replace the whole record. The prior state is captured before the
write so the caller can put it into the change history.
"""
from typing import Any, Callable, Dict, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Session

from equipment_tracker.helpers.add_entity_helper import (
    assignment_column_values,
    device_column_values,
)
from equipment_tracker.helpers.db_utils import db_operation, get_entity_by_id
from equipment_tracker.helpers.entity_types import IP_BEARING_KINDS, EntityKind, ensure_exhaustive
from equipment_tracker.helpers.ip_guard import ensure_ip_available
from equipment_tracker.helpers.listing_helper import ENTITY_LABELS, ENTITY_MODELS, serialize_entity

# (before snapshot, updated record)
UpdateResult = Tuple[Dict[str, Any], Dict[str, Any]]


def _replace(db: Session, kind: EntityKind, entity_id: int, values: Dict[str, Any]) -> UpdateResult:
    with db_operation(db, f"update {kind.value}"):
        record = get_entity_by_id(db, ENTITY_MODELS[kind], entity_id, ENTITY_LABELS[kind])
        before = serialize_entity(kind, record)

        if kind in IP_BEARING_KINDS:
            ensure_ip_available(db, values.get("ip_address"), exclude_kind=kind, exclude_id=entity_id)

        for column, value in values.items():
            setattr(record, column, value)

        db.commit()
        db.refresh(record)
        return before, serialize_entity(kind, record)


# =============================================================================
# Entity-specific update functions
# =============================================================================

def update_computer(db: Session, entity_id: int, payload: BaseModel) -> UpdateResult:
    return _replace(db, EntityKind.computers, entity_id, device_column_values(payload))


def update_network_device(db: Session, entity_id: int, payload: BaseModel) -> UpdateResult:
    return _replace(db, EntityKind.network_devices, entity_id, device_column_values(payload))


def update_other_device(db: Session, entity_id: int, payload: BaseModel) -> UpdateResult:
    return _replace(db, EntityKind.other_devices, entity_id, device_column_values(payload))


def update_assignment(db: Session, entity_id: int, payload: BaseModel) -> UpdateResult:
    return _replace(db, EntityKind.assigned_devices, entity_id, assignment_column_values(payload))


ENTITY_UPDATE_HANDLERS: Dict[EntityKind, Callable[[Session, int, BaseModel], UpdateResult]] = {
    EntityKind.computers: update_computer,
    EntityKind.network_devices: update_network_device,
    EntityKind.other_devices: update_other_device,
    EntityKind.assigned_devices: update_assignment,
}

ensure_exhaustive(ENTITY_UPDATE_HANDLERS, "ENTITY_UPDATE_HANDLERS")
