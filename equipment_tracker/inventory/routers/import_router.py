"""
Spreadsheet import router.
Uploads are parsed with pandas and staged in imported_computers for review.
"""
import asyncio
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from equipment_tracker.core.config import settings
from equipment_tracker.core.logger import app_logger, bind_log_context
from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.db_utils import db_operation
from equipment_tracker.helpers.listing_helper import list_staged_rows
from equipment_tracker.helpers.spreadsheet_helper import (
    EXCEL_CONTENT_TYPES,
    EXCEL_EXTENSIONS,
    load_sheet_rows,
)
from equipment_tracker.helpers.staging_helper import ImportLayout, import_staged_rows
from equipment_tracker.helpers.summary_cache import invalidate_stats_cache

router = APIRouter(prefix="/api", tags=["Spreadsheet Import"])


def _validate_upload(file: Optional[UploadFile]) -> UploadFile:
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    if not file.filename.lower().endswith(EXCEL_EXTENSIONS):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file type. Only .xlsx and .xls files are accepted",
        )

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type and content_type not in EXCEL_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file type. Only .xlsx and .xls files are accepted",
        )
    return file


def _stage_workbook(db: Session, file_bytes: bytes, filename: str) -> Dict[str, Any]:
    try:
        rows = load_sheet_rows(file_bytes, filename)
    except ValueError as exc:
        app_logger.warning("Unreadable spreadsheet upload", extra={"error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )

    layout = ImportLayout.from_settings()
    with db_operation(db, "spreadsheet import"):
        report = import_staged_rows(db, rows, layout)

    invalidate_stats_cache("imported")
    return report.to_response(layout.warning_preview)


@router.post(
    "/import-excel",
    response_model=Dict[str, Any],
    summary="Stage computers from an inventory spreadsheet",
)
async def import_excel(
    file: Optional[UploadFile] = File(
        None,
        description="Inventory workbook (.xlsx or .xls). Data starts after the header rows.",
    ),
    db: Session = Depends(get_db),
):
    """
    Reads the first sheet and stages one record per data row.

    - Header rows and rows with an empty first cell are skipped
    - Rows without a location are reported in `warnings` (first 10 shown)
    - After too many bad rows the import stops; rows staged so far are kept

    Staged rows are not inventory yet: call **POST /api/migrate-imported** to move them.
    """
    upload = _validate_upload(file)

    file_bytes = await upload.read(settings.MAX_UPLOAD_BYTES + 1)
    if not file_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    if len(file_bytes) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {settings.MAX_UPLOAD_BYTES} byte upload limit",
        )

    # carried into the staging logs, which run in a worker thread
    bind_log_context(operation="import-excel", upload_filename=upload.filename, upload_bytes=len(file_bytes))
    app_logger.info("Spreadsheet upload received")
    return await asyncio.to_thread(_stage_workbook, db, file_bytes, upload.filename)


@router.get(
    "/imported-computers",
    response_model=List[Dict[str, Any]],
    summary="Preview the most recently staged rows",
)
def list_imported_computers(db: Session = Depends(get_db)):
    """Newest staged rows first, capped at STAGED_PREVIEW_LIMIT."""
    return list_staged_rows(db, settings.STAGED_PREVIEW_LIMIT)
