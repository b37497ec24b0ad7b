import pytest

from conftest import HEADER_ROWS, build_workbook
from equipment_tracker.helpers.spreadsheet_helper import load_sheet_rows


def test_load_sheet_rows_returns_first_sheet_as_grid():
    data = build_workbook(
        HEADER_ROWS
        + [
            [1, "INV-1", "Каб. 101", "Компьютер", "Dell OptiPlex", None, "Windows 10",
             "Intel i5", 4, "8 GB", "256 GB SSD", "Intel UHD", 2019],
        ]
    )

    rows = load_sheet_rows(data, "inventory.xlsx")

    assert len(rows) == 4
    assert rows[2][1] == "Inventory no."
    data_row = rows[3]
    assert data_row[1] == "INV-1"
    assert data_row[4] == "Dell OptiPlex"
    assert data_row[12] == 2019


def test_load_sheet_rows_fills_empty_cells_with_empty_string():
    data = build_workbook(
        [
            ["title"],
            ["a", None, "c"],
        ]
    )

    rows = load_sheet_rows(data)

    assert rows[0] == ["title", "", ""]
    assert rows[1] == ["a", "", "c"]


def test_load_sheet_rows_rejects_non_workbook_bytes():
    with pytest.raises(ValueError, match="Failed to read Excel file"):
        load_sheet_rows(b"definitely not a spreadsheet", "inventory.xlsx")


def test_load_sheet_rows_rejects_empty_upload():
    with pytest.raises(ValueError, match="empty"):
        load_sheet_rows(b"")
