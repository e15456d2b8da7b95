"""Sales Order API endpoints"""

from fastapi import APIRouter, Depends, status

from wms.api import deps
from wms.schemas import CancelRequest, SalesOrderCreate, SalesOrderRead, SalesOrderStatusUpdate
from wms.services import SalesOrderService

router = APIRouter()


@router.post("", response_model=SalesOrderRead, status_code=status.HTTP_201_CREATED)
def create_sales_order(so_in: SalesOrderCreate, service: SalesOrderService = Depends(deps.get_sales_order_service)):
    """
    Create a sales order.

    Every line must be covered by Available stock in Storage locations.
    """
    return service.create_sales_order(
        so_in.customer_id, so_in.holding_location_id, so_in.details, notes=so_in.notes
    )


@router.get("/{so_id}", response_model=SalesOrderRead)
def get_sales_order(so_id: int, service: SalesOrderService = Depends(deps.get_sales_order_service)):
    return service.get(so_id)


@router.put("/{so_id}/status", response_model=SalesOrderRead)
def update_sales_order_status(
    so_id: int,
    status_in: SalesOrderStatusUpdate,
    service: SalesOrderService = Depends(deps.get_sales_order_service),
):
    """Shipped removes every line from the holding location, all or nothing."""
    return service.update_status(so_id, status_in.status, status_in.reason)


@router.post("/{so_id}/cancel", response_model=SalesOrderRead)
def cancel_sales_order(
    so_id: int,
    cancel_in: CancelRequest,
    service: SalesOrderService = Depends(deps.get_sales_order_service),
):
    return service.cancel(so_id, cancel_in.reason)
