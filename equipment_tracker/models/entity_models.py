# equipment_tracker/models/entity_models.py
"""
Inventory tables.
Table names double as the EntityKind values used by routers and history entries.
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, UniqueConstraint

from equipment_tracker.db.base import Base


# -------------------------------------------------------
# COMPUTERS
# -------------------------------------------------------
class Computer(Base):
    __tablename__ = "computers"
    __table_args__ = (
        UniqueConstraint("inventory_number", name="uq_computers_inventory_number"),
        UniqueConstraint("ip_address", name="uq_computers_ip_address"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    inventory_number = Column(String(100), nullable=True, index=True)
    building = Column(String(20), nullable=False)  # main | medical
    location = Column(String(255), nullable=False)
    device_type = Column(String(20), nullable=False, default="computer")  # computer | laptop | netbook
    model = Column(String(255), nullable=True)
    processor = Column(String(255), nullable=True)
    ram = Column(String(100), nullable=True)
    storage = Column(String(255), nullable=True)
    graphics = Column(String(255), nullable=True)
    ip_address = Column(String(15), nullable=True)
    computer_name = Column(String(255), nullable=True)
    year = Column(String(10), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="working")  # working | issues | broken
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# -------------------------------------------------------
# NETWORK DEVICES
# -------------------------------------------------------
class NetworkDevice(Base):
    __tablename__ = "network_devices"
    __table_args__ = (
        UniqueConstraint("ip_address", name="uq_network_devices_ip_address"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False)  # router | switch | access_point
    model = Column(String(255), nullable=False)
    building = Column(String(20), nullable=False)
    location = Column(String(255), nullable=False)
    ip_address = Column(String(15), nullable=False)
    login = Column(String(100), nullable=True)
    password = Column(String(255), nullable=True)
    wifi_name = Column(String(100), nullable=True)
    wifi_password = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="working")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# -------------------------------------------------------
# OTHER DEVICES (printers, projectors, monitors...)
# -------------------------------------------------------
class OtherDevice(Base):
    __tablename__ = "other_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False)  # printer | projector | monitor | mfp | other
    model = Column(String(255), nullable=False)
    building = Column(String(20), nullable=False)
    location = Column(String(255), nullable=False)
    responsible = Column(String(255), nullable=True)
    inventory_number = Column(String(100), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="working")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# -------------------------------------------------------
# EMPLOYEE ASSIGNMENTS
# -------------------------------------------------------
class DeviceAssignment(Base):
    __tablename__ = "assigned_devices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    building = Column(String(20), nullable=False)
    devices = Column(Text, nullable=False)  # JSON array of device descriptors
    assigned_date = Column(String(10), nullable=False)  # ISO date
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


# -------------------------------------------------------
# STAGED SPREADSHEET ROWS
# Descriptive columns are written once by the importer; only the
# migrated_* markers change afterwards.
# -------------------------------------------------------
class ImportedComputer(Base):
    __tablename__ = "imported_computers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    inventory_number = Column(String(100), nullable=True, index=True)
    location = Column(String(255), nullable=False)
    device_type = Column(String(20), nullable=False)
    model = Column(String(255), nullable=True)
    screen = Column(String(100), nullable=True)
    os = Column(String(100), nullable=True)
    processor = Column(String(255), nullable=True)
    cores = Column(String(20), nullable=True)
    ram = Column(String(100), nullable=True)
    storage = Column(String(255), nullable=True)
    graphics = Column(String(255), nullable=True)
    year = Column(String(10), nullable=True)
    building = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default="working")
    imported_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    migrated_at = Column(DateTime, nullable=True, index=True)
    migrated_computer_id = Column(Integer, nullable=True)


# -------------------------------------------------------
# CHANGE HISTORY
# No foreign keys: entries outlive the rows they describe.
# -------------------------------------------------------
class DeviceHistory(Base):
    __tablename__ = "device_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_table = Column(String(50), nullable=False, index=True)
    device_id = Column(Integer, nullable=False)
    action = Column(String(20), nullable=False)  # create | update | delete
    details = Column(Text, nullable=True)  # JSON {"before": ..., "after": ...}
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
