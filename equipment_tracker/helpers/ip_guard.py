# equipment_tracker/helpers/ip_guard.py
"""
IP allocation guard.

An address may be held by at most one computer or network device at a time.
Each table also has its own unique constraint on ip_address; the cross-table
rule is enforced here, inside the caller's transaction.
"""
import ipaddress
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from equipment_tracker.core.logger import app_logger
from equipment_tracker.helpers.entity_types import EntityKind
from equipment_tracker.models.entity_models import Computer, NetworkDevice

IP_IN_USE_MESSAGE = "IP address is already in use by another device"

# Checked in this order; the first hit ends the scan
_IP_TABLES = (
    (EntityKind.computers, Computer),
    (EntityKind.network_devices, NetworkDevice),
)


def is_valid_ipv4(value: str) -> bool:
    """Dotted-quad IPv4 check (no leading zeros, no CIDR suffix)."""
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ip_in_use(
    db: Session,
    ip: Optional[str],
    exclude_kind: Optional[EntityKind] = None,
    exclude_id: Optional[int] = None,
) -> bool:
    """
    Return True when any computer or network device already holds `ip`.

    A row matching both `exclude_kind` and `exclude_id` is ignored, so a
    record being updated can keep its own address.
    """
    if ip is None or not ip.strip():
        return False
    ip = ip.strip()

    for kind, model in _IP_TABLES:
        stmt = select(model.id).where(model.ip_address == ip)
        if exclude_kind == kind and exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        if db.execute(stmt.limit(1)).first() is not None:
            return True
    return False


def ensure_ip_available(
    db: Session,
    ip: Optional[str],
    exclude_kind: Optional[EntityKind] = None,
    exclude_id: Optional[int] = None,
) -> None:
    """
    Reject a write whose IP is held by another device.

    Raises:
        HTTPException: 409 when the address is taken
    """
    if is_ip_in_use(db, ip, exclude_kind=exclude_kind, exclude_id=exclude_id):
        app_logger.warning(
            "IP address conflict",
            extra={
                "ip_address": ip,
                "entity_kind": exclude_kind.value if exclude_kind else None,
                "entity_id": exclude_id,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=IP_IN_USE_MESSAGE,
        )
