"""Inventory API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from wms.api import deps
from wms.models.enums import LocationCategory
from wms.schemas import (
    AdjustStockRequest, AvailabilityRead, InvariantReport, LocationRead, LocationStockRead,
    MoveStockRequest, StockMovementRead, StockRecordRead, StockStatusUpdate, TransferResult
)
from wms.services import InventoryService

router = APIRouter()


@router.get("/locations", response_model=List[LocationRead])
def list_locations(
    category: Optional[LocationCategory] = Query(None, description="Filter by category"),
    active_only: bool = Query(False, description="Active locations only"),
    service: InventoryService = Depends(deps.get_inventory_service),
):
    return service.list_locations(category=category, active_only=active_only)


@router.get("/locations/{location_id}", response_model=LocationStockRead)
def get_location(location_id: int, service: InventoryService = Depends(deps.get_inventory_service)):
    """Location capacity with the stock records it holds."""
    return service.get_location(location_id)


@router.get("/available", response_model=AvailabilityRead)
def available_quantity(
    item_id: int = Query(...),
    category: LocationCategory = Query(LocationCategory.STORAGE),
    service: InventoryService = Depends(deps.get_inventory_service),
):
    return service.available_quantity(item_id, category)


@router.post("/move", response_model=TransferResult)
def move_stock(move_in: MoveStockRequest, service: InventoryService = Depends(deps.get_inventory_service)):
    return service.move_stock(
        move_in.item_id, move_in.source_location_id, move_in.destination_location_id,
        move_in.quantity, notes=move_in.notes,
    )


@router.post("/adjust", response_model=StockRecordRead)
def adjust_stock(adjust_in: AdjustStockRequest, service: InventoryService = Depends(deps.get_inventory_service)):
    """Set an (item, location) quantity to a counted value."""
    return service.adjust_stock(adjust_in.item_id, adjust_in.location_id, adjust_in.new_quantity, adjust_in.reason)


@router.put("/records/{record_id}/status", response_model=StockRecordRead)
def set_stock_status(
    record_id: int,
    status_in: StockStatusUpdate,
    service: InventoryService = Depends(deps.get_inventory_service),
):
    return service.set_stock_status(record_id, status_in.status, status_in.notes)


@router.get("/records", response_model=List[StockRecordRead])
def stock_by_reference(
    reference: str = Query(..., min_length=1),
    service: InventoryService = Depends(deps.get_inventory_service),
):
    return service.stock_by_reference(reference)


@router.get("/movements", response_model=List[StockMovementRead])
def list_movements(
    item_id: Optional[int] = None,
    location_id: Optional[int] = None,
    reference: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    service: InventoryService = Depends(deps.get_inventory_service),
):
    return service.list_movements(item_id=item_id, location_id=location_id, reference=reference, limit=limit)


@router.get("/invariants", response_model=InvariantReport)
def check_invariants(service: InventoryService = Depends(deps.get_inventory_service)):
    """Capacity counters versus the stock they describe."""
    return service.check_invariants()
