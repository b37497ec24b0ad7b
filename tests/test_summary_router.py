import csv
import io

from equipment_tracker.core.config import get_settings
from equipment_tracker.helpers import summary_cache
from equipment_tracker.models.entity_models import ImportedComputer, OtherDevice


def _csv_rows(response):
    return list(csv.reader(io.StringIO(response.text)))


def test_stats_counts_each_table(client):
    client.post("/api/computers", json={"building": "main", "location": "Каб. 1", "deviceType": "computer"})
    client.post("/api/network-devices", json={
        "type": "switch", "model": "TP-Link", "building": "main", "location": "Серверная",
        "ipAddress": "10.1.1.2",
    })

    stats = client.get("/api/stats").json()

    assert stats == {"computers": 1, "network": 1, "other": 0, "assigned": 0, "imported": 0}


def test_stats_are_cached_until_a_mutation(client, db_session):
    assert client.get("/api/stats").json()["other"] == 0

    # written behind the API's back: the cached payload is still served
    db_session.add(OtherDevice(type="printer", model="HP", building="main", location="Каб. 1", status="working"))
    db_session.commit()
    assert client.get("/api/stats").json()["other"] == 0

    client.post("/api/other-devices", json={"type": "monitor", "model": "LG", "building": "main", "location": "Каб. 2"})
    assert client.get("/api/stats").json()["other"] == 2


def test_stats_count_only_unmigrated_staged_rows(client, db_session):
    db_session.add_all([
        ImportedComputer(location="Каб. 1", device_type="computer", building="main", status="working"),
        ImportedComputer(location="Каб. 2", device_type="computer", building="main", status="working"),
    ])
    db_session.commit()

    assert client.get("/api/stats").json()["imported"] == 2

    client.post("/api/migrate-imported")

    stats = client.get("/api/stats").json()
    assert stats["imported"] == 0
    assert stats["computers"] == 2


def test_health_reports_database_up(client):
    body = client.get("/api/health").json()

    assert body["status"] == "ok"
    assert body["database"] == "up"
    assert body["version"] == "1.0.0"


def test_root_points_to_docs(client):
    assert client.get("/").json()["docs"] == "/docs"


def test_response_carries_request_id(client):
    response = client.get("/api/stats", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_export_computers_csv(client):
    client.post("/api/computers", json={
        "building": "main", "location": "Каб. 9", "deviceType": "computer",
        "inventoryNumber": "INV-9", "model": "Lenovo M720",
    })

    response = client.get("/api/export/computers")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment;" in response.headers["content-disposition"]
    header, row = _csv_rows(response)
    assert row[header.index("inventoryNumber")] == "INV-9"
    assert row[header.index("model")] == "Lenovo M720"


def test_export_leaves_out_credentials(client):
    client.post("/api/network-devices", json={
        "type": "access_point", "model": "Ubiquiti", "building": "medical", "location": "Холл",
        "ipAddress": "10.1.1.3", "password": "secret", "wifiName": "Clinic", "wifiPassword": "wifi-secret",
    })

    response = client.get("/api/export/network-devices")

    header, row = _csv_rows(response)
    assert "password" not in header
    assert "wifiPassword" not in header
    assert row[header.index("wifiName")] == "Clinic"
    assert "secret" not in response.text


def test_export_joins_assigned_devices(client):
    client.post("/api/assigned-devices", json={
        "employee": "Сидоров П.П.",
        "position": "Врач",
        "building": "medical",
        "devices": ["Ноутбук INV-1", "Мышь"],
        "assignedDate": "2024-05-02",
    })

    header, row = _csv_rows(client.get("/api/export/assigned-devices"))

    assert row[header.index("devices")] == "Ноутбук INV-1; Мышь"


def test_export_of_empty_table_has_header_only(client):
    rows = _csv_rows(client.get("/api/export/other-devices"))

    assert len(rows) == 1
    assert "inventoryNumber" in rows[0]


def test_export_unknown_kind(client):
    response = client.get("/api/export/printers")

    assert response.status_code == 404
    assert response.json() == {"error": "Unknown export type: printers"}


def test_writes_only_drop_their_own_counter(client, db_session):
    client.get("/api/stats")
    db_session.add(OtherDevice(type="printer", model="HP", building="main", location="Каб. 1", status="working"))
    db_session.commit()

    client.post("/api/computers", json={"building": "main", "location": "Каб. 3", "deviceType": "computer"})
    stats = client.get("/api/stats").json()

    assert stats["computers"] == 1
    # untouched by the computer write, still served from the cache
    assert stats["other"] == 0


def test_counter_cache_entries_expire():
    cache = summary_cache._CounterCache()

    cache.put("computers", 5, ttl=0)
    cache.put("other", 3, ttl=60)

    assert cache.get("computers") is None
    assert cache.get("other") == 3
    cache.drop("other")
    assert cache.get("other") is None


def test_zero_ttl_disables_caching(monkeypatch):
    monkeypatch.setattr(get_settings(), "STATS_CACHE_TTL_SECONDS", 0)
    calls = []

    def _count():
        calls.append(1)
        return len(calls)

    assert summary_cache.cached_count("computers", _count) == 1
    assert summary_cache.cached_count("computers", _count) == 2
