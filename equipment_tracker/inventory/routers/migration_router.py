"""
Migration router: moves staged spreadsheet rows into the computers table.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from equipment_tracker.core.config import settings
from equipment_tracker.core.logger import bind_log_context
from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.db_utils import db_operation
from equipment_tracker.helpers.migration_helper import migrate_staged_rows
from equipment_tracker.helpers.summary_cache import invalidate_stats_cache

router = APIRouter(prefix="/api", tags=["Spreadsheet Import"])


@router.post(
    "/migrate-imported",
    response_model=Dict[str, Any],
    summary="Move staged rows into production computers",
)
def migrate_imported(db: Session = Depends(get_db)):
    """
    Runs in a single transaction over every staged row not migrated yet.

    - A row whose inventory number already exists in **computers** is skipped
      and reported in `errors`
    - A row that fails to insert is reported and the run continues
    - A database failure outside row handling rolls everything back (HTTP 500)

    Migrated rows are marked and never picked up again.
    """
    bind_log_context(operation="migrate-imported")
    with db_operation(db, "migration of imported records"):
        report = migrate_staged_rows(db)

    invalidate_stats_cache("imported", "computers")
    return report.to_response(settings.MIGRATION_ERROR_PREVIEW)
