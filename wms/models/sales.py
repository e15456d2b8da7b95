"""
WMS Outbound Document Models
Sales orders and pickings
"""
from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wms.core.database import Base
from .enums import PickingDetailStatus, PickingStatus, SalesOrderStatus


class SalesOrder(Base):
    """Sales order header"""
    __tablename__ = "sales_orders"
    __table_args__ = (
        UniqueConstraint("company_id", "so_number", name="uq_sales_orders_company_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Sales order ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    so_number = Column(String(50), nullable=False, doc="SO-yyyyMMdd-NNN")
    customer_id = Column(Integer, nullable=False, doc="Customer reference")
    holding_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, doc="Shipping holding location")
    status = Column(String(20), nullable=False, default=SalesOrderStatus.PENDING.value, doc="SO status")
    order_date = Column(DateTime(timezone=True), nullable=False, server_default=func.current_timestamp())
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text)
    cancellation_reason = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    details = relationship("SalesOrderDetail", back_populates="sales_order",
                           cascade="all, delete-orphan", order_by="SalesOrderDetail.id")
    pickings = relationship("Picking", back_populates="sales_order", order_by="Picking.id")

    def __repr__(self):
        return f"<SalesOrder({self.so_number}, {self.status})>"


class SalesOrderDetail(Base):
    """Sales order line"""
    __tablename__ = "sales_order_details"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, doc="Ordered quantity")
    unit_price = Column(Numeric(15, 2), nullable=False, default=0)
    total_price = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text)

    sales_order = relationship("SalesOrder", back_populates="details")


class Picking(Base):
    """Picking list generated for one sales order"""
    __tablename__ = "pickings"
    __table_args__ = (
        UniqueConstraint("company_id", "picking_number", name="uq_pickings_company_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Picking ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    picking_number = Column(String(50), nullable=False, doc="PKG-yyyy-MM-dd-NNN")
    sales_order_id = Column(Integer, ForeignKey("sales_orders.id"), nullable=False, index=True)
    holding_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    status = Column(String(20), nullable=False, default=PickingStatus.PENDING.value)
    picking_date = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    completed_date = Column(DateTime(timezone=True))
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    sales_order = relationship("SalesOrder", back_populates="pickings")
    details = relationship("PickingDetail", back_populates="picking",
                           cascade="all, delete-orphan", order_by="PickingDetail.id")

    def __repr__(self):
        return f"<Picking({self.picking_number}, {self.status})>"


class PickingDetail(Base):
    """One pick instruction: take quantity_required of an item from source_location_id"""
    __tablename__ = "picking_details"
    __table_args__ = (
        CheckConstraint("quantity_required > 0", name="quantity_required_positive"),
        CheckConstraint("quantity_picked >= 0", name="quantity_picked_non_negative"),
        CheckConstraint("quantity_picked <= quantity_required", name="quantity_picked_within_required"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    picking_id = Column(Integer, ForeignKey("pickings.id", ondelete="CASCADE"), nullable=False, index=True)
    sales_order_detail_id = Column(Integer, ForeignKey("sales_order_details.id"), nullable=False)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    # None means no location assigned yet; never defaulted at transfer time
    source_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    holding_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    quantity_required = Column(Integer, nullable=False)
    quantity_picked = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=PickingDetailStatus.PENDING.value)
    notes = Column(Text)

    picking = relationship("Picking", back_populates="details")

    @property
    def remaining_quantity(self) -> int:
        return self.quantity_required - self.quantity_picked

    def record_pick(self, quantity: int):
        self.quantity_picked += quantity
        if self.quantity_picked >= self.quantity_required:
            self.status = PickingDetailStatus.PICKED.value
        elif self.quantity_picked > 0:
            self.status = PickingDetailStatus.SHORT.value
        else:
            self.status = PickingDetailStatus.PENDING.value
