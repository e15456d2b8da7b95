"""Purchase Order API endpoints"""

from fastapi import APIRouter, Depends, status

from wms.api import deps
from wms.schemas import CancelRequest, PurchaseOrderCreate, PurchaseOrderRead
from wms.services import PurchaseOrderService

router = APIRouter()


@router.post("", response_model=PurchaseOrderRead, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po_in: PurchaseOrderCreate,
    service: PurchaseOrderService = Depends(deps.get_purchase_order_service),
):
    """Create a Draft purchase order."""
    return service.create_purchase_order(po_in.supplier_id, po_in.details, notes=po_in.notes)


@router.get("/{po_id}", response_model=PurchaseOrderRead)
def get_purchase_order(po_id: int, service: PurchaseOrderService = Depends(deps.get_purchase_order_service)):
    return service.get(po_id)


@router.post("/{po_id}/send", response_model=PurchaseOrderRead)
def send_purchase_order(po_id: int, service: PurchaseOrderService = Depends(deps.get_purchase_order_service)):
    """Draft -> Sent."""
    return service.send(po_id)


@router.post("/{po_id}/cancel", response_model=PurchaseOrderRead)
def cancel_purchase_order(
    po_id: int,
    cancel_in: CancelRequest,
    service: PurchaseOrderService = Depends(deps.get_purchase_order_service),
):
    """Cancel a Draft purchase order."""
    return service.cancel(po_id, cancel_in.reason)
