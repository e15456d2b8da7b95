"""Inventory Schemas"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from wms.models.enums import LocationCategory, MovementType, StockStatus


class LocationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    category: LocationCategory
    max_capacity: int
    current_capacity: int
    available_capacity: int
    utilization_percentage: float
    is_full: bool
    is_active: bool


class StockRecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    location_id: int
    quantity: int
    status: StockStatus
    last_cost_price: Decimal
    source_reference: Optional[str] = None
    last_updated: datetime


class LocationStockRead(LocationRead):
    stock: List[StockRecordRead] = []


class StockMovementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    movement_type: MovementType
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    quantity: int
    unit_cost: Optional[Decimal] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class TransferResult(BaseModel):
    item_id: int
    source_location_id: Optional[int] = None
    destination_location_id: Optional[int] = None
    quantity: int
    reference: Optional[str] = None
    movement_type: MovementType
    source: Optional[StockRecordRead] = None
    destination: Optional[StockRecordRead] = None

    @classmethod
    def from_outcome(cls, outcome) -> "TransferResult":
        return cls(
            item_id=outcome.item_id,
            source_location_id=outcome.source_location_id,
            destination_location_id=outcome.destination_location_id,
            quantity=outcome.quantity,
            reference=outcome.reference,
            movement_type=outcome.movement_type,
            source=StockRecordRead.model_validate(outcome.source_record) if outcome.source_record else None,
            destination=(
                StockRecordRead.model_validate(outcome.destination_record)
                if outcome.destination_record else None
            ),
        )


class MoveStockRequest(BaseModel):
    item_id: int
    source_location_id: int
    destination_location_id: int
    quantity: int = Field(..., gt=0)
    notes: Optional[str] = None


class AdjustStockRequest(BaseModel):
    item_id: int
    location_id: int
    new_quantity: int = Field(..., ge=0)
    reason: str = Field(..., min_length=1, max_length=500)


class StockStatusUpdate(BaseModel):
    status: StockStatus
    notes: Optional[str] = None


class AvailabilityRead(BaseModel):
    item_id: int
    category: LocationCategory
    available_quantity: int


class InvariantViolationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    message: str
    location_id: Optional[int] = None
    stock_record_id: Optional[int] = None


class InvariantReport(BaseModel):
    healthy: bool
    violations: List[InvariantViolationRead] = []
