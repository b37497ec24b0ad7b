import pytest

from conftest import HEADER_ROWS, build_workbook

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _data_row(number, inventory, location, device_type="Компьютер", model="Dell OptiPlex 3070"):
    return [number, inventory, location, device_type, model, "24\"", "Windows 10",
            "Intel i5-9500", 6, "8 GB", "256 GB SSD", "Intel UHD 630", 2020]


@pytest.fixture
def workbook():
    # three header rows, one data row, one row with an empty first cell
    return build_workbook(
        HEADER_ROWS
        + [
            _data_row(1, "INV-501", "Мед. корпус, каб. 12", device_type="Ноутбук"),
            _data_row(None, "INV-502", "Каб. 7"),
        ]
    )


def _upload(client, data, filename="inventory.xlsx", content_type=XLSX):
    return client.post("/api/import-excel", files={"file": (filename, data, content_type)})


def test_import_stages_data_rows(client, workbook):
    response = _upload(client, workbook)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 1
    assert body["message"] == "Successfully imported 1 records"
    assert "warnings" not in body

    staged = client.get("/api/imported-computers").json()
    assert len(staged) == 1
    assert staged[0]["inventoryNumber"] == "INV-501"
    assert staged[0]["building"] == "medical"
    assert staged[0]["deviceType"] == "laptop"
    assert staged[0]["cores"] == "6"
    assert staged[0]["migratedAt"] is None


def test_import_reports_rows_without_location(client):
    data = build_workbook(HEADER_ROWS + [_data_row(1, "INV-1", "Каб. 1"), _data_row(2, "INV-2", None)])

    body = _upload(client, data).json()

    assert body["count"] == 1
    assert body["warnings"] == ["Row 5: missing required fields (location or device type)"]
    assert body["warningCount"] == 1
    assert body["message"] == "Imported 1 records with 1 warnings"


def test_import_rejects_other_file_types(client):
    response = _upload(client, b"a,b,c\n", filename="inventory.csv", content_type="text/csv")

    assert response.status_code == 400
    assert response.json() == {"error": "Unsupported file type. Only .xlsx and .xls files are accepted"}


def test_import_requires_a_file(client):
    response = client.post("/api/import-excel")

    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_import_rejects_unreadable_workbook(client):
    response = _upload(client, b"not really a workbook")

    assert response.status_code == 400
    assert response.json()["error"].startswith("Failed to read Excel file")
    assert client.get("/api/imported-computers").json() == []


def test_migrate_moves_staged_rows_once(client, workbook):
    _upload(client, workbook)

    first = client.post("/api/migrate-imported")
    second = client.post("/api/migrate-imported")

    assert first.status_code == 200
    assert first.json() == {
        "success": True,
        "migratedCount": 1,
        "totalImported": 1,
        "skippedCount": 0,
        "errors": [],
        "errorCount": 0,
    }
    assert second.json()["migratedCount"] == 0
    assert second.json()["totalImported"] == 0

    computers = client.get("/api/computers").json()
    assert len(computers) == 1
    assert computers[0]["inventoryNumber"] == "INV-501"
    assert computers[0]["building"] == "medical"
    assert computers[0]["notes"].startswith("Imported from Excel (")

    history = client.get("/api/history", params={"table": "computers"}).json()
    assert [entry["action"] for entry in history] == ["create"]


def test_migrate_skips_existing_inventory_numbers(client, workbook):
    client.post("/api/computers", json={
        "building": "main", "location": "Каб. 1", "deviceType": "computer", "inventoryNumber": "INV-501",
    })
    _upload(client, workbook)

    body = client.post("/api/migrate-imported").json()

    assert body["migratedCount"] == 0
    assert body["skippedCount"] == 1
    assert body["errors"] == ["Computer with inventory number INV-501 already exists"]
    assert len(client.get("/api/computers").json()) == 1


def test_search_inventory_prefers_production_over_staged(client, workbook):
    _upload(client, workbook)

    staged = client.get("/api/search-inventory/INV-501")
    assert staged.status_code == 200
    assert staged.json()["type"] == "importedComputers"

    client.post("/api/migrate-imported")

    found = client.get("/api/search-inventory/INV-501").json()
    assert found["type"] == "computers"
    assert found["data"]["inventoryNumber"] == "INV-501"


def test_search_inventory_finds_other_devices(client):
    client.post("/api/other-devices", json={
        "type": "printer", "model": "Kyocera", "building": "main",
        "location": "Каб. 3", "inventoryNumber": "PR-9",
    })

    found = client.get("/api/search-inventory/PR-9").json()

    assert found["type"] == "otherDevices"
    assert found["data"]["model"] == "Kyocera"


def test_search_inventory_unknown_number(client):
    response = client.get("/api/search-inventory/NOPE-1")

    assert response.status_code == 404
    assert response.json() == {"error": "Device with inventory number 'NOPE-1' not found"}
