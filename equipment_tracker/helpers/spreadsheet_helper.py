# equipment_tracker/helpers/spreadsheet_helper.py
"""
Spreadsheet decoding for the inventory import.
Turns uploaded workbook bytes into a plain grid of raw cell values.
"""
import io
from typing import Any, List

import pandas as pd

EXCEL_EXTENSIONS = (".xlsx", ".xls")

EXCEL_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
    "application/octet-stream",
}


def _engine_for(filename: str) -> str:
    return "xlrd" if filename.lower().endswith(".xls") else "openpyxl"


def load_sheet_rows(file_bytes: bytes, filename: str = "upload.xlsx") -> List[List[Any]]:
    """
    Read the first sheet of a workbook, top to bottom and left to right.

    No header inference is done: every sheet row becomes one list, and empty
    cells are returned as "" so all rows have the sheet's full width.

    Raises:
        ValueError: when the bytes are not a readable workbook.
    """
    if not file_bytes:
        raise ValueError("Excel file is empty")

    try:
        df = pd.read_excel(
            io.BytesIO(file_bytes),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=_engine_for(filename),
        )
    except Exception as exc:
        # openpyxl / xlrd raise their own error types for corrupt files
        raise ValueError(f"Failed to read Excel file: {exc}") from exc

    if df.empty:
        return []

    df = df.astype(object).where(pd.notna(df), "")
    return df.values.tolist()
