"""
CSV export of one inventory list.
"""
from datetime import datetime
from typing import Any, Dict, Iterator, List

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import StreamingResponse
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from equipment_tracker.core.sensitive import SENSITIVE_FIELDS
from equipment_tracker.db.session import get_db
from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.helpers.listing_helper import ENTITY_MODELS, list_entities

router = APIRouter(prefix="/api", tags=["Export"])

DEFAULT_EXPORT_CHUNK_SIZE = 500

# Credentials are masked in logs and left out of exports
EXCLUDED_EXPORT_COLUMNS = SENSITIVE_FIELDS


def _resolve_kind(segment: str) -> EntityKind:
    try:
        return EntityKind(segment.replace("-", "_"))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown export type: {segment}",
        )


def _default_headers(entity: EntityKind) -> List[str]:
    names = [to_camel(column.key) for column in ENTITY_MODELS[entity].__table__.columns]
    return [name for name in names if name not in EXCLUDED_EXPORT_COLUMNS]


def _prepare_export_row(record: Dict[str, Any]) -> Dict[str, Any]:
    row = {key: value for key, value in record.items() if key not in EXCLUDED_EXPORT_COLUMNS}
    if isinstance(row.get("devices"), list):
        row["devices"] = "; ".join(row["devices"])
    return row


def _export_stream(rows: List[Dict[str, Any]], headers: List[str]) -> Iterator[str]:
    """Yield the CSV in chunks; the header line goes out with the first one."""
    if not rows:
        yield pd.DataFrame(columns=headers).to_csv(index=False)
        return

    for start in range(0, len(rows), DEFAULT_EXPORT_CHUNK_SIZE):
        df = pd.DataFrame(rows[start:start + DEFAULT_EXPORT_CHUNK_SIZE], columns=headers)
        yield df.to_csv(index=False, header=start == 0)


@router.get(
    "/export/{kind}",
    response_class=StreamingResponse,
    summary="Export an inventory list to CSV",
)
def export_inventory(
    kind: str = Path(..., description="computers | network-devices | other-devices | assigned-devices"),
    db: Session = Depends(get_db),
):
    entity = _resolve_kind(kind)
    rows = [_prepare_export_row(record) for record in list_entities(db, entity)]

    headers = list(rows[0].keys()) if rows else _default_headers(entity)

    filename = f"{entity.value}_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
    return StreamingResponse(
        _export_stream(rows, headers),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
