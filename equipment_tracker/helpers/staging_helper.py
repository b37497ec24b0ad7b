# equipment_tracker/helpers/staging_helper.py
"""
Staging importer for inventory spreadsheets.

Rows are normalized and written to imported_computers inside one transaction.
Each row gets its own SAVEPOINT so a failing insert is reported as a warning
and the rest of the batch carries on.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from equipment_tracker.core.config import settings
from equipment_tracker.core.logger import app_logger
from equipment_tracker.helpers.normalizer import (
    clean_string,
    determine_building,
    normalize_device_type,
    normalize_inventory_number,
)
from equipment_tracker.models.entity_models import ImportedComputer

# Fields copied through clean_string as-is
_PLAIN_FIELDS = ("model", "screen", "os", "processor", "cores", "ram", "storage", "graphics", "year")


@dataclass
class ImportLayout:
    """Where data starts in the sheet and which column feeds which field."""
    header_rows: int = 3
    column_map: Dict[str, int] = field(default_factory=dict)
    max_row_errors: int = 50
    warning_preview: int = 10
    medical_markers: Tuple[str, ...] = ("мед", "medical")

    @classmethod
    def from_settings(cls) -> "ImportLayout":
        return cls(
            header_rows=settings.IMPORT_HEADER_ROWS,
            column_map=dict(settings.IMPORT_COLUMN_MAP),
            max_row_errors=settings.IMPORT_MAX_ROW_ERRORS,
            warning_preview=settings.IMPORT_WARNING_PREVIEW,
            medical_markers=tuple(settings.MEDICAL_BUILDING_MARKERS),
        )


@dataclass
class ImportReport:
    inserted_count: int = 0
    total_rows: int = 0
    errors: List[str] = field(default_factory=list)
    stopped_early: bool = False

    def to_response(self, warning_preview: int = 10) -> Dict[str, Any]:
        response: Dict[str, Any] = {
            "success": True,
            "count": self.inserted_count,
            "totalRows": self.total_rows,
            "processedRows": self.inserted_count + len(self.errors),
        }

        if self.errors:
            warnings = self.errors[:warning_preview]
            if len(self.errors) > warning_preview:
                warnings.append(f"... and {len(self.errors) - warning_preview} more")
            response["warnings"] = warnings
            response["warningCount"] = len(self.errors)
            response["message"] = (
                f"Imported {self.inserted_count} records with {len(self.errors)} warnings"
            )
        else:
            response["message"] = f"Successfully imported {self.inserted_count} records"

        return response


def _cell(row: Sequence[Any], index: Optional[int]) -> Any:
    if index is None or index < 0 or index >= len(row):
        return ""
    return row[index]


def is_blank_row(row: Sequence[Any]) -> bool:
    """Trailing or spacer rows have nothing in their first cell."""
    return clean_string(_cell(row, 0)) is None


def normalize_row(row: Sequence[Any], layout: ImportLayout) -> Dict[str, Any]:
    """Map one sheet row onto staged-record fields."""
    columns = layout.column_map
    location = clean_string(_cell(row, columns.get("location")))
    values: Dict[str, Any] = {
        "inventory_number": normalize_inventory_number(_cell(row, columns.get("inventory_number"))),
        "location": location,
        "device_type": normalize_device_type(_cell(row, columns.get("device_type"))),
        "building": determine_building(location, layout.medical_markers),
        "status": "working",
    }
    for name in _PLAIN_FIELDS:
        values[name] = clean_string(_cell(row, columns.get(name)))
    return values


def import_staged_rows(db: Session, rows: Sequence[Sequence[Any]], layout: ImportLayout) -> ImportReport:
    """
    Stage every data row of a parsed sheet.

    Header rows and rows with an empty first cell are skipped without
    counting. Rows missing a location or device type, and rows whose insert
    fails, become warnings citing the 1-based sheet row. Once more than
    `layout.max_row_errors` warnings pile up the remaining rows are not
    attempted; whatever was staged so far is still committed.

    Errors outside row handling roll back the whole batch and propagate.
    """
    report = ImportReport()
    data_rows = [
        (index, row)
        for index, row in enumerate(rows)
        if index >= layout.header_rows and not is_blank_row(row)
    ]
    report.total_rows = len(data_rows)

    try:
        for index, row in data_rows:
            row_number = index + 1
            values = normalize_row(row, layout)

            if not values["location"] or not values["device_type"]:
                report.errors.append(
                    f"Row {row_number}: missing required fields (location or device type)"
                )
            else:
                try:
                    with db.begin_nested():
                        db.add(ImportedComputer(**values))
                    report.inserted_count += 1
                except (IntegrityError, DataError) as exc:
                    app_logger.warning(
                        "Staged row rejected",
                        extra={"row_number": row_number, "error": str(exc.orig)},
                    )
                    report.errors.append(f"Row {row_number}: {exc.orig}")

            if len(report.errors) > layout.max_row_errors:
                report.stopped_early = True
                app_logger.warning(
                    "Import stopped after too many row errors",
                    extra={"error_count": len(report.errors), "row_number": row_number},
                )
                break

        db.commit()
    except Exception:
        db.rollback()
        raise

    app_logger.info(
        "Spreadsheet rows staged",
        extra={
            "inserted_count": report.inserted_count,
            "total_rows": report.total_rows,
            "error_count": len(report.errors),
            "stopped_early": report.stopped_early,
        },
    )
    return report
