from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.summary_cache import STAT_KEYS, cached_count
from equipment_tracker.models.entity_models import (
    Computer,
    DeviceAssignment,
    ImportedComputer,
    NetworkDevice,
    OtherDevice,
)

router = APIRouter(prefix="/api", tags=["Stats"])


def _count(db: Session, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return db.execute(stmt).scalar() or 0


STAT_COUNTERS: Dict[str, Callable[[Session], int]] = {
    "computers": lambda db: _count(db, Computer),
    "network": lambda db: _count(db, NetworkDevice),
    "other": lambda db: _count(db, OtherDevice),
    "assigned": lambda db: _count(db, DeviceAssignment),
    "imported": lambda db: _count(db, ImportedComputer, ImportedComputer.migrated_at.is_(None)),
}


@router.get(
    "/stats",
    response_model=Dict[str, Any],
    summary="Record counts per inventory table",
)
def get_stats(db: Session = Depends(get_db)):
    """
    Returns:

    - computers, network, other, assigned: rows per table
    - imported: staged rows still waiting for migration
    """
    return {
        key: cached_count(key, lambda: STAT_COUNTERS[key](db))
        for key in STAT_KEYS
    }
