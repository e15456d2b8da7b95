"""Picking API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query, status

from wms.api import deps
from wms.schemas import (
    BulkPickingRequest, BulkPickingResult, PickingCreate, PickingProcessRequest, PickingProcessResult,
    PickingRead, PickingSuggestion
)
from wms.services import PickingService

router = APIRouter()


@router.post("", response_model=PickingRead, status_code=status.HTTP_201_CREATED)
def create_picking(picking_in: PickingCreate, service: PickingService = Depends(deps.get_picking_service)):
    """Generate a FIFO picking list for a Pending sales order."""
    return service.create_picking(picking_in.sales_order_id, notes=picking_in.notes)


@router.get("/suggestions", response_model=List[PickingSuggestion])
def suggest_picking_locations(
    item_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    service: PickingService = Depends(deps.get_picking_service),
):
    return service.suggest_locations(item_id, quantity)


@router.post("/process", response_model=PickingProcessResult)
def process_picking(pick_in: PickingProcessRequest, service: PickingService = Depends(deps.get_picking_service)):
    """Pick one line from its recorded source location into holding."""
    return service.process_picking(pick_in.picking_detail_id, pick_in.quantity, pick_in.source_location_id)


@router.post("/process-bulk", response_model=BulkPickingResult)
def process_bulk_picking(bulk_in: BulkPickingRequest, service: PickingService = Depends(deps.get_picking_service)):
    """Pick several lines; each line commits or fails on its own."""
    return service.process_bulk_picking(bulk_in.lines)


@router.get("/{picking_id}", response_model=PickingRead)
def get_picking(picking_id: int, service: PickingService = Depends(deps.get_picking_service)):
    return service.get(picking_id)


@router.post("/{picking_id}/complete", response_model=PickingRead)
def complete_picking(picking_id: int, service: PickingService = Depends(deps.get_picking_service)):
    return service.complete_picking(picking_id)
