"""
Inventory-number lookup across production and staged tables.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.listing_helper import serialize_record
from equipment_tracker.models.entity_models import Computer, ImportedComputer, OtherDevice

router = APIRouter(prefix="/api", tags=["Search"])

# Searched in this order; the first match wins
SEARCH_SOURCES = (
    ("computers", Computer),
    ("otherDevices", OtherDevice),
    ("importedComputers", ImportedComputer),
)


@router.get(
    "/search-inventory/{number}",
    response_model=Dict[str, Any],
    summary="Find a device by inventory number",
)
def search_inventory(
    number: str = Path(..., min_length=1, description="Exact inventory number"),
    db: Session = Depends(get_db),
):
    """
    Looks in computers, then other devices, then staged spreadsheet rows.
    Returns `{"type": <source>, "data": <record>}` or 404.
    """
    number = number.strip()
    for source, model in SEARCH_SOURCES:
        stmt = select(model).where(model.inventory_number == number).order_by(model.id).limit(1)
        record = db.execute(stmt).scalars().first()
        if record is not None:
            return {"type": source, "data": serialize_record(record)}

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Device with inventory number '{number}' not found",
    )
