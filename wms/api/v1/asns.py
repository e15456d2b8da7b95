"""Advanced Shipping Notice API endpoints"""

from fastapi import APIRouter, Depends, status

from wms.api import deps
from wms.schemas import ASNCreate, ASNRead, ASNStatusUpdate, CancelRequest
from wms.services import ASNService

router = APIRouter()


@router.post("", response_model=ASNRead, status_code=status.HTTP_201_CREATED)
def create_asn(asn_in: ASNCreate, service: ASNService = Depends(deps.get_asn_service)):
    """
    Create an ASN against a purchase order.

    The holding location must be an active Other location with room for the
    shipment. The purchase order becomes Received.
    """
    return service.create_asn(
        asn_in.purchase_order_id,
        asn_in.holding_location_id,
        asn_in.details,
        expected_arrival_date=asn_in.expected_arrival_date,
        carrier_name=asn_in.carrier_name,
        tracking_number=asn_in.tracking_number,
        notes=asn_in.notes,
    )


@router.get("/{asn_id}", response_model=ASNRead)
def get_asn(asn_id: int, service: ASNService = Depends(deps.get_asn_service)):
    return service.get(asn_id)


@router.put("/{asn_id}/status", response_model=ASNRead)
def update_asn_status(asn_id: int, status_in: ASNStatusUpdate, service: ASNService = Depends(deps.get_asn_service)):
    """Advance an ASN; Arrived receives the shipment into holding."""
    return service.update_status(asn_id, status_in.status, status_in.reason)


@router.post("/{asn_id}/cancel", response_model=ASNRead)
def cancel_asn(asn_id: int, cancel_in: CancelRequest, service: ASNService = Depends(deps.get_asn_service)):
    return service.cancel(asn_id, cancel_in.reason)
