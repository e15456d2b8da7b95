"""
WMS Location Models
Physical locations and their capacity ledger columns
"""
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.sql import func

from wms.core.database import Base
from .enums import LocationCategory


class Location(Base):
    """Storage or holding location with its capacity counters"""
    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_locations_company_code"),
        CheckConstraint("max_capacity > 0", name="max_capacity_positive"),
        CheckConstraint("current_capacity >= 0", name="current_capacity_non_negative"),
        CheckConstraint("current_capacity <= max_capacity", name="current_capacity_within_max"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Location ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    code = Column(String(50), nullable=False, doc="Location code")
    name = Column(String(100), nullable=False, doc="Location name")
    description = Column(Text, doc="Location description")
    category = Column(String(20), nullable=False, default=LocationCategory.STORAGE.value, doc="Storage or Other (holding)")

    # Capacity ledger
    max_capacity = Column(Integer, nullable=False, default=100, doc="Maximum units")
    current_capacity = Column(Integer, nullable=False, default=0, doc="Units currently held")
    is_full = Column(Boolean, nullable=False, default=False, doc="current_capacity >= max_capacity")

    is_active = Column(Boolean, nullable=False, default=True, doc="Active location flag")
    version = Column(Integer, nullable=False, doc="Optimistic lock counter")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    __mapper_args__ = {"version_id_col": version}

    @property
    def available_capacity(self) -> int:
        return self.max_capacity - self.current_capacity

    @property
    def utilization_percentage(self) -> float:
        if not self.max_capacity:
            return 0.0
        return round(self.current_capacity * 100.0 / self.max_capacity, 2)

    @property
    def is_storage(self) -> bool:
        return self.category == LocationCategory.STORAGE.value

    def __repr__(self):
        return f"<Location({self.code}, {self.current_capacity}/{self.max_capacity})>"
