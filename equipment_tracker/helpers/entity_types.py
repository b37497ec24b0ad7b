"""
Entity kinds kept lightweight so routers can import them without pulling in
the helper modules that touch SQLAlchemy models.
"""
from enum import Enum
from typing import Any, Mapping


class EntityKind(str, Enum):
    computers = "computers"
    network_devices = "network_devices"
    other_devices = "other_devices"
    assigned_devices = "assigned_devices"

    @property
    def route_segment(self) -> str:
        """URL form of the kind, e.g. network_devices -> network-devices."""
        return self.value.replace("_", "-")


# Kinds whose records carry an ip_address column
IP_BEARING_KINDS = frozenset({EntityKind.computers, EntityKind.network_devices})


def ensure_exhaustive(handlers: Mapping[EntityKind, Any], label: str) -> None:
    """Fail at import time when a dispatch table misses an EntityKind."""
    missing = [kind.value for kind in EntityKind if kind not in handlers]
    if missing:
        raise RuntimeError(f"{label} has no handler for: {', '.join(missing)}")
