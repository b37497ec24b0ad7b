"""
Inventory CRUD router.

One set of list / get / create / replace / delete routes per EntityKind:
/api/computers, /api/network-devices, /api/other-devices, /api/assigned-devices.
Every successful mutation writes a history entry and clears the stats cache.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.add_entity_helper import ENTITY_CREATE_HANDLERS
from equipment_tracker.helpers.audit_helper import log_create, log_delete, log_update
from equipment_tracker.helpers.db_utils import get_entity_by_id
from equipment_tracker.helpers.delete_entity_helper import ENTITY_DELETE_HANDLERS
from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.helpers.listing_helper import (
    ENTITY_LABELS,
    ENTITY_MODELS,
    list_entities,
    serialize_entity,
)
from equipment_tracker.helpers.summary_cache import invalidate_kind_stats
from equipment_tracker.helpers.update_entity_helper import ENTITY_UPDATE_HANDLERS
from equipment_tracker.schemas.entity_schemas import ENTITY_SCHEMAS

router = APIRouter(prefix="/api", tags=["Inventory"])


def _submitted(payload) -> Dict[str, Any]:
    """Payload as the client sent it (camelCase) for the history snapshot."""
    return payload.model_dump(mode="json", by_alias=True, exclude_unset=True)


def _register_routes(kind: EntityKind) -> None:
    schema = ENTITY_SCHEMAS[kind]
    label = ENTITY_LABELS[kind]
    segment = kind.route_segment

    @router.get(
        f"/{segment}",
        response_model=List[Dict[str, Any]],
        summary=f"List {segment}, newest first",
        name=f"list_{kind.value}",
    )
    def list_records(
        building: Optional[str] = Query(None, description="main | medical"),
        status_filter: Optional[str] = Query(None, alias="status", description="working | issues | broken"),
        location: Optional[str] = Query(None, description="Substring of the location"),
        db: Session = Depends(get_db),
    ):
        return list_entities(
            db,
            kind,
            {"building": building, "status": status_filter, "location": location},
        )

    @router.get(
        f"/{segment}/{{entity_id}}",
        response_model=Dict[str, Any],
        summary=f"Get one of {segment} by id",
        name=f"get_{kind.value}",
    )
    def get_record(
        entity_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
    ):
        record = get_entity_by_id(db, ENTITY_MODELS[kind], entity_id, label)
        return serialize_entity(kind, record)

    @router.post(
        f"/{segment}",
        response_model=Dict[str, Any],
        status_code=status.HTTP_201_CREATED,
        summary=f"Create one of {segment}",
        name=f"create_{kind.value}",
    )
    def create_record(payload: schema, db: Session = Depends(get_db)):
        """
        Validates the payload, checks the IP address against every
        computer and network device (where the kind carries one), stores
        the record and appends a `create` history entry.

        Status defaults from the notes when not given.
        """
        record = ENTITY_CREATE_HANDLERS[kind](db, payload)
        log_create(db, kind, record["id"], _submitted(payload))
        invalidate_kind_stats(kind)
        return {
            "id": record["id"],
            "message": f"{label} created successfully",
            "data": record,
        }

    @router.put(
        f"/{segment}/{{entity_id}}",
        response_model=Dict[str, Any],
        summary=f"Replace one of {segment}",
        name=f"update_{kind.value}",
    )
    def update_record(
        payload: schema,
        entity_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
    ):
        """
        Full replace. The record keeps its own IP address without tripping
        the conflict check. The prior state goes into the `update` history entry.
        """
        before, record = ENTITY_UPDATE_HANDLERS[kind](db, entity_id, payload)
        log_update(db, kind, entity_id, before, _submitted(payload))
        invalidate_kind_stats(kind)
        return {
            "id": entity_id,
            "message": f"{label} updated successfully",
            "data": record,
        }

    @router.delete(
        f"/{segment}/{{entity_id}}",
        response_model=Dict[str, Any],
        summary=f"Delete one of {segment}",
        name=f"delete_{kind.value}",
    )
    def delete_record(
        entity_id: int = Path(..., ge=1),
        db: Session = Depends(get_db),
    ):
        before = ENTITY_DELETE_HANDLERS[kind](db, entity_id)
        log_delete(db, kind, entity_id, before)
        invalidate_kind_stats(kind)
        return {
            "id": entity_id,
            "message": f"{label} deleted successfully",
            "data": before,
        }


for _kind in EntityKind:
    _register_routes(_kind)
