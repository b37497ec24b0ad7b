# equipment_tracker/helpers/add_entity_helper.py
"""
Helper functions for creating inventory records.
IP-bearing kinds go through the IP allocation guard before any write.
"""
import json
from typing import Any, Callable, Dict

from pydantic import BaseModel
from sqlalchemy.orm import Session

from equipment_tracker.helpers.db_utils import db_operation
from equipment_tracker.helpers.entity_types import EntityKind, ensure_exhaustive
from equipment_tracker.helpers.ip_guard import ensure_ip_available
from equipment_tracker.helpers.listing_helper import serialize_entity
from equipment_tracker.helpers.normalizer import status_from_notes
from equipment_tracker.models.entity_models import (
    Computer,
    DeviceAssignment,
    NetworkDevice,
    OtherDevice,
)


def resolve_status(explicit: Any, notes: Any) -> str:
    """An explicit status wins; otherwise it is derived from the notes."""
    return explicit or status_from_notes(notes)


def device_column_values(payload: BaseModel) -> Dict[str, Any]:
    """Payload -> column values for computers, network and other devices."""
    values = payload.model_dump()
    values["status"] = resolve_status(values.get("status"), values.get("notes"))
    return values


def assignment_column_values(payload: BaseModel) -> Dict[str, Any]:
    values = payload.model_dump()
    values["devices"] = json.dumps(values["devices"], ensure_ascii=False)
    values["assigned_date"] = values["assigned_date"].isoformat()
    return values


# =============================================================================
# Entity-specific create functions
# =============================================================================

def create_computer(db: Session, payload: BaseModel) -> Dict[str, Any]:
    with db_operation(db, "create computer"):
        ensure_ip_available(db, payload.ip_address)
        computer = Computer(**device_column_values(payload))
        db.add(computer)
        db.commit()
        db.refresh(computer)
        return serialize_entity(EntityKind.computers, computer)


def create_network_device(db: Session, payload: BaseModel) -> Dict[str, Any]:
    with db_operation(db, "create network device"):
        ensure_ip_available(db, payload.ip_address)
        device = NetworkDevice(**device_column_values(payload))
        db.add(device)
        db.commit()
        db.refresh(device)
        return serialize_entity(EntityKind.network_devices, device)


def create_other_device(db: Session, payload: BaseModel) -> Dict[str, Any]:
    with db_operation(db, "create device"):
        device = OtherDevice(**device_column_values(payload))
        db.add(device)
        db.commit()
        db.refresh(device)
        return serialize_entity(EntityKind.other_devices, device)


def create_assignment(db: Session, payload: BaseModel) -> Dict[str, Any]:
    with db_operation(db, "create assignment"):
        assignment = DeviceAssignment(**assignment_column_values(payload))
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return serialize_entity(EntityKind.assigned_devices, assignment)


ENTITY_CREATE_HANDLERS: Dict[EntityKind, Callable[[Session, BaseModel], Dict[str, Any]]] = {
    EntityKind.computers: create_computer,
    EntityKind.network_devices: create_network_device,
    EntityKind.other_devices: create_other_device,
    EntityKind.assigned_devices: create_assignment,
}

ensure_exhaustive(ENTITY_CREATE_HANDLERS, "ENTITY_CREATE_HANDLERS")
