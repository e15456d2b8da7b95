"""Putaway API endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from wms.api import deps
from wms.schemas import AutoPutawayResult, LocationRead, PutawayRequest, PutawayResult
from wms.services import PutawayService

router = APIRouter()


@router.post("", response_model=PutawayResult)
def process_putaway(putaway_in: PutawayRequest, service: PutawayService = Depends(deps.get_putaway_service)):
    """Move part or all of an ASN line from holding into a Storage location."""
    return service.process_putaway(
        putaway_in.asn_detail_id, putaway_in.quantity, putaway_in.target_location_id
    )


@router.post("/auto/{asn_id}", response_model=AutoPutawayResult)
def auto_putaway(asn_id: int, service: PutawayService = Depends(deps.get_putaway_service)):
    """Put every outstanding ASN line into a suggested location."""
    return service.auto_putaway(asn_id)


@router.get("/suggest-location", response_model=Optional[LocationRead])
def suggest_location(
    item_id: int = Query(...),
    quantity: int = Query(..., gt=0),
    service: PutawayService = Depends(deps.get_putaway_service),
):
    return service.suggest_location(item_id, quantity)
