import io
import logging
from typing import Any, Iterable, List

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy.orm import sessionmaker

from equipment_tracker.core.logger import get_app_logger
from equipment_tracker.db.base import Base
from equipment_tracker.db.session import build_engine, get_db
from equipment_tracker.helpers import summary_cache
from equipment_tracker.models import entity_models  # noqa: F401


@pytest.fixture
def engine(tmp_path):
    """SQLite database file per test, built the same way as production engines."""
    engine = build_engine(f"sqlite:///{tmp_path / 'inventory.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    """TestClient wired to the per-test database; startup schema and prewarm disabled."""
    import equipment_tracker.main as main_module

    async def _noop():
        return None

    monkeypatch.setattr(main_module, "_ensure_schema", _noop)
    monkeypatch.setattr(main_module, "_prewarm_database", _noop)

    def _override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main_module.app.dependency_overrides[get_db] = _override_get_db
    summary_cache.invalidate_stats_cache()

    with TestClient(main_module.app) as c:
        yield c

    main_module.app.dependency_overrides.clear()
    summary_cache.invalidate_stats_cache()


class _RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def app_log_records():
    """Records emitted by the application logger during the test."""
    logger = get_app_logger()
    handler = _RecordingHandler()
    previous_level = logger.level
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(previous_level)


def build_workbook(rows: Iterable[List[Any]]) -> bytes:
    """Serialize rows into an in-memory .xlsx file."""
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


HEADER_ROWS = [
    ["Inventory of computer equipment"],
    ["as of 2024"],
    ["#", "Inventory no.", "Location", "Type", "Model", "Screen", "OS",
     "CPU", "Cores", "RAM", "Storage", "Graphics", "Year"],
]
