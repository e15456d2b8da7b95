"""
WMS Inbound Document Models
Purchase orders and advanced shipping notices
"""
from sqlalchemy import (
    CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from wms.core.database import Base
from .enums import ASNStatus, PurchaseOrderStatus


class PurchaseOrder(Base):
    """Purchase order header"""
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint("company_id", "po_number", name="uq_purchase_orders_company_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="Purchase order ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    po_number = Column(String(50), nullable=False, doc="PO-yyyyMMdd-NNN")
    supplier_id = Column(Integer, nullable=False, doc="Supplier reference")
    status = Column(String(20), nullable=False, default=PurchaseOrderStatus.DRAFT.value, doc="PO status")
    order_date = Column(DateTime(timezone=True), nullable=False, server_default=func.current_timestamp())
    total_amount = Column(Numeric(15, 2), nullable=False, default=0, doc="Sum of line totals")
    notes = Column(Text, doc="Notes")
    cancellation_reason = Column(Text, doc="Reason given on cancellation")

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    details = relationship("PurchaseOrderDetail", back_populates="purchase_order",
                           cascade="all, delete-orphan", order_by="PurchaseOrderDetail.id")
    asns = relationship("ASN", back_populates="purchase_order")

    def __repr__(self):
        return f"<PurchaseOrder({self.po_number}, {self.status})>"


class PurchaseOrderDetail(Base):
    """Purchase order line"""
    __tablename__ = "purchase_order_details"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    quantity = Column(Integer, nullable=False, doc="Ordered quantity")
    unit_price = Column(Numeric(15, 2), nullable=False, default=0)
    total_price = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text)

    purchase_order = relationship("PurchaseOrder", back_populates="details")


class ASN(Base):
    """Advanced shipping notice against a purchase order"""
    __tablename__ = "advanced_shipping_notices"
    __table_args__ = (
        UniqueConstraint("company_id", "asn_number", name="uq_advanced_shipping_notices_company_number"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, doc="ASN ID")
    company_id = Column(Integer, nullable=False, index=True, doc="Owning company")
    asn_number = Column(String(50), nullable=False, doc="ASN-yyyyMMdd-NNN")
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id"), nullable=False, index=True)
    holding_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, doc="Receiving holding location")
    status = Column(String(20), nullable=False, default=ASNStatus.PENDING.value, doc="ASN status")
    shipment_date = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    expected_arrival_date = Column(DateTime(timezone=True), doc="Expected arrival")
    actual_arrival_date = Column(DateTime(timezone=True), doc="Set when the ASN arrives")
    carrier_name = Column(String(100))
    tracking_number = Column(String(100))
    notes = Column(Text)
    cancellation_reason = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp())
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    purchase_order = relationship("PurchaseOrder", back_populates="asns")
    details = relationship("ASNDetail", back_populates="asn",
                           cascade="all, delete-orphan", order_by="ASNDetail.id")

    def __repr__(self):
        return f"<ASN({self.asn_number}, {self.status})>"


class ASNDetail(Base):
    """ASN line with putaway progress"""
    __tablename__ = "asn_details"
    __table_args__ = (
        CheckConstraint("shipped_quantity > 0", name="shipped_quantity_positive"),
        CheckConstraint("already_put_away_quantity >= 0", name="put_away_non_negative"),
        CheckConstraint("remaining_quantity >= 0", name="remaining_non_negative"),
        CheckConstraint(
            "remaining_quantity = shipped_quantity - already_put_away_quantity",
            name="remaining_consistent"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    asn_id = Column(Integer, ForeignKey("advanced_shipping_notices.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    shipped_quantity = Column(Integer, nullable=False)
    already_put_away_quantity = Column(Integer, nullable=False, default=0)
    remaining_quantity = Column(Integer, nullable=False)
    actual_price_per_item = Column(Numeric(15, 4), nullable=False, default=0)
    warehouse_fee_rate = Column(Numeric(5, 4), nullable=False, default=0)
    warehouse_fee_amount = Column(Numeric(15, 4), nullable=False, default=0)
    notes = Column(Text)

    asn = relationship("ASN", back_populates="details")

    def record_put_away(self, quantity: int):
        """Advance putaway progress; remaining is always recomputed"""
        self.already_put_away_quantity += quantity
        self.remaining_quantity = self.shipped_quantity - self.already_put_away_quantity
