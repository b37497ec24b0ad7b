# equipment_tracker/helpers/migration_helper.py
"""
Migration of staged spreadsheet rows into the computers table.

One transaction covers the whole run. A staged row whose inventory number
already exists in production is skipped with a conflict message; a row whose
insert is rejected by the database (IntegrityError / DataError) is rolled
back to its SAVEPOINT and reported. Any other exception, per row or not, is
treated as a system failure: the entire run is rolled back and the error
propagates, so no partial batch is committed after e.g. a lost connection.

Successfully moved rows are stamped with migrated_at / migrated_computer_id
and are not considered again on later runs.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from equipment_tracker.core.logger import app_logger
from equipment_tracker.helpers.audit_helper import log_create
from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.helpers.listing_helper import serialize_entity
from equipment_tracker.models.entity_models import Computer, ImportedComputer


@dataclass
class MigrationReport:
    migrated_count: int = 0
    total_staged: int = 0
    skipped_count: int = 0
    errors: List[str] = field(default_factory=list)
    migrated_ids: List[int] = field(default_factory=list)

    def to_response(self, error_preview: int = 10) -> Dict[str, Any]:
        return {
            "success": True,
            "migratedCount": self.migrated_count,
            "totalImported": self.total_staged,
            "skippedCount": self.skipped_count,
            "errors": self.errors[:error_preview],
            "errorCount": len(self.errors),
        }


def provenance_note(staged: ImportedComputer) -> str:
    imported_at = staged.imported_at.isoformat(sep=" ", timespec="seconds") if staged.imported_at else "unknown"
    return f"Imported from Excel ({imported_at})"


def inventory_number_exists(db: Session, inventory_number: str) -> bool:
    stmt = select(Computer.id).where(Computer.inventory_number == inventory_number).limit(1)
    return db.execute(stmt).first() is not None


def computer_from_staged(staged: ImportedComputer) -> Computer:
    return Computer(
        inventory_number=staged.inventory_number,
        building=staged.building,
        location=staged.location,
        device_type=staged.device_type,
        model=staged.model,
        processor=staged.processor,
        ram=staged.ram,
        storage=staged.storage,
        graphics=staged.graphics,
        year=staged.year,
        status=staged.status or "working",
        notes=provenance_note(staged),
    )


def migrate_staged_rows(db: Session) -> MigrationReport:
    """Move every not-yet-migrated staged row into production computers."""
    report = MigrationReport()
    migrated: List[Computer] = []

    try:
        staged_rows = db.execute(
            select(ImportedComputer)
            .where(ImportedComputer.migrated_at.is_(None))
            .order_by(ImportedComputer.id)
        ).scalars().all()
        report.total_staged = len(staged_rows)

        for staged in staged_rows:
            # earlier inserts of this run are flushed, so in-batch duplicates are caught too
            if staged.inventory_number and inventory_number_exists(db, staged.inventory_number):
                report.skipped_count += 1
                report.errors.append(
                    f"Computer with inventory number {staged.inventory_number} already exists"
                )
                continue

            try:
                with db.begin_nested():
                    computer = computer_from_staged(staged)
                    db.add(computer)
                    db.flush()
                    staged.migrated_at = datetime.utcnow()
                    staged.migrated_computer_id = computer.id
            except (IntegrityError, DataError) as exc:
                app_logger.warning(
                    "Staged row could not be migrated",
                    extra={"staged_id": staged.id, "error": str(exc.orig)},
                )
                report.errors.append(f"Failed to migrate staged row {staged.id}: {exc.orig}")
                continue

            migrated.append(computer)
            report.migrated_count += 1

        db.commit()
    except Exception:
        db.rollback()
        app_logger.exception("Migration aborted, transaction rolled back")
        raise

    for computer in migrated:
        report.migrated_ids.append(computer.id)
        log_create(db, EntityKind.computers, computer.id, serialize_entity(EntityKind.computers, computer))

    app_logger.info(
        "Staged rows migrated",
        extra={
            "migrated_count": report.migrated_count,
            "total_staged": report.total_staged,
            "skipped_count": report.skipped_count,
            "error_count": len(report.errors),
        },
    )
    return report
