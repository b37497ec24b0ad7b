# equipment_tracker/helpers/delete_entity_helper.py
"""
Helper functions for deleting inventory records.
Each handler returns the record as it was just before removal.
"""
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from equipment_tracker.helpers.db_utils import db_operation, get_entity_by_id
from equipment_tracker.helpers.entity_types import EntityKind, ensure_exhaustive
from equipment_tracker.helpers.listing_helper import ENTITY_LABELS, ENTITY_MODELS, serialize_entity


def _delete(db: Session, kind: EntityKind, entity_id: int) -> Dict[str, Any]:
    with db_operation(db, f"delete {kind.value}"):
        record = get_entity_by_id(db, ENTITY_MODELS[kind], entity_id, ENTITY_LABELS[kind])
        before = serialize_entity(kind, record)

        db.delete(record)
        db.commit()

        return before


def delete_computer(db: Session, entity_id: int) -> Dict[str, Any]:
    return _delete(db, EntityKind.computers, entity_id)


def delete_network_device(db: Session, entity_id: int) -> Dict[str, Any]:
    return _delete(db, EntityKind.network_devices, entity_id)


def delete_other_device(db: Session, entity_id: int) -> Dict[str, Any]:
    return _delete(db, EntityKind.other_devices, entity_id)


def delete_assignment(db: Session, entity_id: int) -> Dict[str, Any]:
    return _delete(db, EntityKind.assigned_devices, entity_id)


ENTITY_DELETE_HANDLERS: Dict[EntityKind, Callable[[Session, int], Dict[str, Any]]] = {
    EntityKind.computers: delete_computer,
    EntityKind.network_devices: delete_network_device,
    EntityKind.other_devices: delete_other_device,
    EntityKind.assigned_devices: delete_assignment,
}

ensure_exhaustive(ENTITY_DELETE_HANDLERS, "ENTITY_DELETE_HANDLERS")
