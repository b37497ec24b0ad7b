from fastapi.testclient import TestClient
from sqlalchemy import inspect

from conftest import HEADER_ROWS, build_workbook
from equipment_tracker.db import session as session_module
from equipment_tracker.db.session import build_engine
from equipment_tracker.helpers import summary_cache

EXPECTED_TABLES = {
    "computers",
    "network_devices",
    "other_devices",
    "assigned_devices",
    "imported_computers",
    "device_history",
}


def test_tables_exist_before_the_first_request(tmp_path, monkeypatch):
    import equipment_tracker.main as main_module

    engine = build_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
    monkeypatch.setattr(session_module, "_engine", engine)
    monkeypatch.setattr(session_module, "_SessionLocal", None)
    summary_cache.invalidate_stats_cache()
    assert inspect(engine).get_table_names() == []

    try:
        with TestClient(main_module.app) as client:
            assert EXPECTED_TABLES <= set(inspect(engine).get_table_names())

            stats = client.get("/api/stats")
            assert stats.status_code == 200
            assert stats.json() == {"computers": 0, "network": 0, "other": 0, "assigned": 0, "imported": 0}

            upload = client.post(
                "/api/import-excel",
                files={"file": ("inventory.xlsx", build_workbook(HEADER_ROWS + [[1, "INV-1", "Каб. 1", "ПК"]]),
                                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
            )
            assert upload.status_code == 200
            assert upload.json()["count"] == 1
    finally:
        summary_cache.invalidate_stats_cache()
        engine.dispose()
