"""Warehouse Document Schemas"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from wms.models.enums import (
    ASNStatus, PickingDetailStatus, PickingStatus, PurchaseOrderStatus, SalesOrderStatus
)
from .inventory import TransferResult


def _require_lines(v: list) -> list:
    if not v:
        raise ValueError("At least one line is required")
    return v


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# Purchase Order Schemas
class PurchaseOrderLineCreate(BaseModel):
    item_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    details: List[PurchaseOrderLineCreate]
    notes: Optional[str] = None

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        return _require_lines(v)


class PurchaseOrderLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class PurchaseOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    po_number: str
    supplier_id: int
    status: PurchaseOrderStatus
    total_amount: Decimal
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    details: List[PurchaseOrderLineRead] = []


# ASN Schemas
class ASNLineCreate(BaseModel):
    item_id: int
    shipped_quantity: int = Field(..., gt=0)
    actual_price_per_item: Decimal = Field(default=Decimal("0"), ge=0)
    notes: Optional[str] = None


class ASNCreate(BaseModel):
    purchase_order_id: int
    holding_location_id: int
    details: List[ASNLineCreate]
    expected_arrival_date: Optional[datetime] = None
    carrier_name: Optional[str] = Field(None, max_length=100)
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        return _require_lines(v)


class ASNLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    shipped_quantity: int
    already_put_away_quantity: int
    remaining_quantity: int
    actual_price_per_item: Decimal
    warehouse_fee_rate: Decimal
    warehouse_fee_amount: Decimal


class ASNRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    asn_number: str
    purchase_order_id: int
    holding_location_id: int
    status: ASNStatus
    expected_arrival_date: Optional[datetime] = None
    actual_arrival_date: Optional[datetime] = None
    carrier_name: Optional[str] = None
    tracking_number: Optional[str] = None
    cancellation_reason: Optional[str] = None
    details: List[ASNLineRead] = []


class ASNStatusUpdate(BaseModel):
    status: ASNStatus
    reason: Optional[str] = Field(None, max_length=500)


# Putaway Schemas
class PutawayRequest(BaseModel):
    asn_detail_id: int
    quantity: int
    target_location_id: int


class PutawayResult(BaseModel):
    asn_id: int
    asn_status: ASNStatus
    detail: ASNLineRead
    transfer: TransferResult


class AutoPutawayLine(BaseModel):
    asn_detail_id: int
    item_id: int
    location_id: Optional[int] = None
    quantity: int = 0
    error: Optional[str] = None
    detail: Optional[str] = None


class AutoPutawayResult(BaseModel):
    asn_id: int
    asn_status: ASNStatus
    lines: List[AutoPutawayLine] = []

    @property
    def fully_processed(self) -> bool:
        return all(line.error is None for line in self.lines)


# Sales Order Schemas
class SalesOrderLineCreate(BaseModel):
    item_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)


class SalesOrderCreate(BaseModel):
    customer_id: int
    holding_location_id: int
    details: List[SalesOrderLineCreate]
    notes: Optional[str] = None

    @field_validator("details")
    @classmethod
    def validate_details(cls, v):
        return _require_lines(v)


class SalesOrderLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class SalesOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    so_number: str
    customer_id: int
    holding_location_id: int
    status: SalesOrderStatus
    total_amount: Decimal
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    details: List[SalesOrderLineRead] = []


class SalesOrderStatusUpdate(BaseModel):
    status: SalesOrderStatus
    reason: Optional[str] = Field(None, max_length=500)


# Picking Schemas
class PickingCreate(BaseModel):
    sales_order_id: int
    notes: Optional[str] = None


class PickingLineRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sales_order_detail_id: int
    item_id: int
    source_location_id: Optional[int] = None
    holding_location_id: Optional[int] = None
    quantity_required: int
    quantity_picked: int
    remaining_quantity: int
    status: PickingDetailStatus


class PickingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    picking_number: str
    sales_order_id: int
    holding_location_id: int
    status: PickingStatus
    completed_date: Optional[datetime] = None
    details: List[PickingLineRead] = []


class PickingProcessRequest(BaseModel):
    picking_detail_id: int
    quantity: int
    # Left optional here so a missing location is reported by the engine itself
    source_location_id: Optional[int] = None


class PickingProcessResult(BaseModel):
    picking_id: int
    picking_status: PickingStatus
    detail: PickingLineRead
    transfer: TransferResult


class BulkPickingRequest(BaseModel):
    lines: List[PickingProcessRequest] = Field(..., min_length=1)


class BulkPickingLine(BaseModel):
    picking_detail_id: int
    quantity: int = 0
    picking_id: Optional[int] = None
    status: Optional[PickingDetailStatus] = None
    error: Optional[str] = None
    detail: Optional[str] = None


class BulkPickingResult(BaseModel):
    lines: List[BulkPickingLine] = []

    @property
    def fully_processed(self) -> bool:
        return all(line.error is None for line in self.lines)


class PickingSuggestion(BaseModel):
    location_id: int
    quantity: int

