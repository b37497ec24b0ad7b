import pytest
from fastapi import HTTPException

from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.helpers.ip_guard import (
    IP_IN_USE_MESSAGE,
    ensure_ip_available,
    is_ip_in_use,
    is_valid_ipv4,
)
from equipment_tracker.models.entity_models import Computer, NetworkDevice


def _computer(db_session, ip, inventory_number=None):
    computer = Computer(building="main", location="Каб. 1", device_type="computer",
                        status="working", ip_address=ip, inventory_number=inventory_number)
    db_session.add(computer)
    db_session.commit()
    return computer


def _router(db_session, ip):
    device = NetworkDevice(type="router", model="MikroTik", building="main",
                           location="Серверная", ip_address=ip, status="working")
    db_session.add(device)
    db_session.commit()
    return device


def test_absent_ip_is_never_in_use(db_session):
    assert is_ip_in_use(db_session, None) is False
    assert is_ip_in_use(db_session, "") is False
    assert is_ip_in_use(db_session, "   ") is False


def test_ip_lifecycle_through_create_change_and_delete(db_session):
    ip = "10.0.0.15"
    assert is_ip_in_use(db_session, ip) is False

    computer = _computer(db_session, ip)
    assert is_ip_in_use(db_session, ip) is True

    computer.ip_address = "10.0.0.16"
    db_session.commit()
    assert is_ip_in_use(db_session, ip) is False

    router = _router(db_session, ip)
    assert is_ip_in_use(db_session, ip) is True

    db_session.delete(router)
    db_session.commit()
    assert is_ip_in_use(db_session, ip) is False


def test_record_may_keep_its_own_ip(db_session):
    computer = _computer(db_session, "10.0.0.20")

    assert is_ip_in_use(db_session, "10.0.0.20", EntityKind.computers, computer.id) is False


def test_exclusion_needs_matching_kind_and_id(db_session):
    computer = _computer(db_session, "10.0.0.21")
    router = _router(db_session, "10.0.0.22")

    # same id, different table: still a conflict
    assert is_ip_in_use(db_session, "10.0.0.21", EntityKind.network_devices, computer.id) is True
    assert is_ip_in_use(db_session, "10.0.0.22", EntityKind.computers, router.id) is True
    # other row of the same table: still a conflict
    assert is_ip_in_use(db_session, "10.0.0.21", EntityKind.computers, computer.id + 100) is True


def test_ensure_ip_available_raises_conflict(db_session):
    _computer(db_session, "192.168.100.5")

    with pytest.raises(HTTPException) as exc_info:
        ensure_ip_available(db_session, "192.168.100.5")

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == IP_IN_USE_MESSAGE


def test_ensure_ip_available_passes_for_free_address(db_session):
    _computer(db_session, "192.168.100.5")

    ensure_ip_available(db_session, "192.168.100.6")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("192.168.1.1", True),
        ("0.0.0.0", True),
        ("256.1.1.1", False),
        ("192.168.1", False),
        ("192.168.1.1/24", False),
        ("abc", False),
        ("", False),
    ],
)
def test_is_valid_ipv4(value, expected):
    assert is_valid_ipv4(value) is expected
