"""
API dependencies

Services are built per request from the session factory and the caller's
company boundary (X-Company-Id header).
"""
from fastapi import Depends, Header

from wms.core.database import SessionLocal
from wms.services import (
    ASNService, InventoryService, PickingService, PurchaseOrderService, PutawayService,
    SalesOrderService
)


def get_session_factory():
    """Session factory; overridden in tests"""
    return SessionLocal


def get_company_id(x_company_id: int = Header(..., alias="X-Company-Id", gt=0)) -> int:
    return x_company_id


def get_inventory_service(factory=Depends(get_session_factory),
                          company_id: int = Depends(get_company_id)) -> InventoryService:
    return InventoryService(factory, company_id)


def get_purchase_order_service(factory=Depends(get_session_factory),
                               company_id: int = Depends(get_company_id)) -> PurchaseOrderService:
    return PurchaseOrderService(factory, company_id)


def get_asn_service(factory=Depends(get_session_factory),
                    company_id: int = Depends(get_company_id)) -> ASNService:
    return ASNService(factory, company_id)


def get_putaway_service(factory=Depends(get_session_factory),
                        company_id: int = Depends(get_company_id)) -> PutawayService:
    return PutawayService(factory, company_id)


def get_sales_order_service(factory=Depends(get_session_factory),
                            company_id: int = Depends(get_company_id)) -> SalesOrderService:
    return SalesOrderService(factory, company_id)


def get_picking_service(factory=Depends(get_session_factory),
                        company_id: int = Depends(get_company_id)) -> PickingService:
    return PickingService(factory, company_id)
