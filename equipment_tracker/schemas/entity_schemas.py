# equipment_tracker/schemas/entity_schemas.py
"""
Pydantic schemas for inventory request payloads.
Fields are snake_case in Python and camelCase on the wire.
"""
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from equipment_tracker.helpers.entity_types import EntityKind, ensure_exhaustive
from equipment_tracker.helpers.ip_guard import is_valid_ipv4

Building = Literal["main", "medical"]
Status = Literal["working", "issues", "broken"]
ComputerType = Literal["computer", "laptop", "netbook"]
NetworkDeviceType = Literal["router", "switch", "access_point"]
OtherDeviceType = Literal["printer", "projector", "monitor", "mfp", "other"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        # "" from a form field means "not provided"
        if isinstance(value, str) and not value.strip():
            return None
        return value


def _check_ip(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_valid_ipv4(value):
        raise ValueError("Invalid IPv4 address format")
    return value


# =============================================================================
# Computer Schemas
# =============================================================================

class ComputerIn(CamelModel):
    """Create / full-replace payload for a computer."""
    building: Building
    location: str = Field(..., min_length=1, max_length=255)
    device_type: ComputerType
    inventory_number: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=255)
    processor: Optional[str] = Field(None, max_length=255)
    ram: Optional[str] = Field(None, max_length=100)
    storage: Optional[str] = Field(None, max_length=255)
    graphics: Optional[str] = Field(None, max_length=255)
    ip_address: Optional[str] = None
    computer_name: Optional[str] = Field(None, max_length=255)
    year: Optional[str] = Field(None, max_length=10)
    notes: Optional[str] = None
    status: Optional[Status] = None

    @field_validator("ip_address")
    @classmethod
    def validate_ip_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_ip(value)


# =============================================================================
# Network Device Schemas
# =============================================================================

class NetworkDeviceIn(CamelModel):
    """Create / full-replace payload for a router, switch or access point."""
    type: NetworkDeviceType
    model: str = Field(..., min_length=1, max_length=255)
    building: Building
    location: str = Field(..., min_length=1, max_length=255)
    ip_address: str
    login: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, max_length=255)
    wifi_name: Optional[str] = Field(None, max_length=100)
    wifi_password: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    status: Optional[Status] = None

    @field_validator("ip_address")
    @classmethod
    def validate_ip_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_ip(value)


# =============================================================================
# Other Device Schemas
# =============================================================================

class OtherDeviceIn(CamelModel):
    type: OtherDeviceType
    model: str = Field(..., min_length=1, max_length=255)
    building: Building
    location: str = Field(..., min_length=1, max_length=255)
    responsible: Optional[str] = Field(None, max_length=255)
    inventory_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    status: Optional[Status] = None


# =============================================================================
# Assignment Schemas
# =============================================================================

class AssignmentIn(CamelModel):
    """A single descriptor string is accepted and stored as a one-item list."""
    employee: str = Field(..., min_length=1, max_length=255)
    position: str = Field(..., min_length=1, max_length=255)
    building: Building
    devices: Union[List[str], str]
    assigned_date: date
    notes: Optional[str] = None

    @field_validator("devices")
    @classmethod
    def devices_as_list(cls, value: Union[List[str], str]) -> List[str]:
        items = [value] if isinstance(value, str) else list(value)
        items = [item.strip() for item in items if item and item.strip()]
        if not items:
            raise ValueError("At least one device is required")
        return items


ENTITY_SCHEMAS: Dict[EntityKind, type[BaseModel]] = {
    EntityKind.computers: ComputerIn,
    EntityKind.network_devices: NetworkDeviceIn,
    EntityKind.other_devices: OtherDeviceIn,
    EntityKind.assigned_devices: AssignmentIn,
}

ensure_exhaustive(ENTITY_SCHEMAS, "ENTITY_SCHEMAS")
