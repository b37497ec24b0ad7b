"""
Change history router.
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from equipment_tracker.core.config import settings
from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.audit_helper import list_recent_history
from equipment_tracker.helpers.entity_types import EntityKind

router = APIRouter(prefix="/api", tags=["History"])


@router.get(
    "/history",
    response_model=List[Dict[str, Any]],
    summary="Most recent change history entries",
)
def get_history(
    limit: Optional[int] = Query(None, ge=1, description="Entries to return (capped at HISTORY_LIMIT)"),
    table: Optional[EntityKind] = Query(None, description="Only entries for this table"),
    db: Session = Depends(get_db),
):
    """
    Newest first. Each entry carries:

    - **table** / **deviceId**: the record the change applied to
    - **action**: create | update | delete
    - **details**: `{"before": ..., "after": ...}` snapshots
    - **name** / **inventoryNumber**: taken from the after snapshot, else the before one
    """
    max_limit = settings.HISTORY_LIMIT
    effective_limit = min(limit, max_limit) if limit else max_limit
    return list_recent_history(db, effective_limit, table)
