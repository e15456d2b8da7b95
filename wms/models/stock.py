"""
WMS Stock Models
Items, per-(item, location) stock records and the movement journal
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric,
    String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wms.core.database import Base
from .enums import StockStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Item(Base):
    """Item master - read-only to the engine"""
    __tablename__ = "items"
    __table_args__ = (
        UniqueConstraint("company_id", "item_code", name="uq_items_company_item_code"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Item ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    item_code = Column(String(50), nullable=False, doc="Item code")
    name = Column(String(200), nullable=False, doc="Item name")
    unit = Column(String(20), nullable=False, default="PCS", doc="Unit of measure")
    purchase_price = Column(Numeric(15, 2), nullable=False, default=0, doc="Standard purchase price")
    selling_price = Column(Numeric(15, 2), nullable=False, default=0, doc="Standard selling price")
    is_active = Column(Boolean, nullable=False, default=True, doc="Active item flag")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    def __repr__(self):
        return f"<Item({self.item_code})>"


class StockRecord(Base):
    """Quantity and status of one item at one location"""
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("item_id", "location_id", name="uq_inventory_item_location"),
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Stock record ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True, doc="Item ID")
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True, doc="Location ID")

    quantity = Column(Integer, nullable=False, default=0, doc="Units on hand")
    status = Column(String(20), nullable=False, default=StockStatus.AVAILABLE.value, doc="Stock status")
    last_cost_price = Column(Numeric(15, 4), nullable=False, default=0, doc="Unit cost of the last receipt")
    source_reference = Column(String(50), doc="Document number that brought the stock here")
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow, doc="Last receipt into this record, FIFO key")
    notes = Column(Text, doc="Notes")
    version = Column(Integer, nullable=False, doc="Optimistic lock counter")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())

    __mapper_args__ = {"version_id_col": version}

    item = relationship("Item")
    location = relationship("Location")

    def __repr__(self):
        return f"<StockRecord(item={self.item_id}, location={self.location_id}, qty={self.quantity}, {self.status})>"


class StockMovement(Base):
    """Journal entry written with every quantity change"""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Movement ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False, index=True, doc="Item ID")
    movement_type = Column(String(20), nullable=False, doc="Inbound, Outbound, Transfer or Adjustment")
    source_location_id = Column(Integer, ForeignKey("locations.id"), doc="Location stock left")
    destination_location_id = Column(Integer, ForeignKey("locations.id"), doc="Location stock entered")
    quantity = Column(Integer, nullable=False, doc="Units moved (signed for adjustments)")
    unit_cost = Column(Numeric(15, 4), doc="Unit cost carried with the movement")
    reference = Column(String(50), doc="Triggering document number")
    notes = Column(Text, doc="Reason or notes")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<StockMovement({self.movement_type}, item={self.item_id}, qty={self.quantity})>"
