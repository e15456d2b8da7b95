"""
WMS engine services

Each service is constructed per request with a session factory and the
caller's company id.
"""
from .inventory_service import InventoryService
from .documents.purchase_orders import PurchaseOrderService
from .documents.asn import ASNService
from .documents.sales_orders import SalesOrderService
from .orchestrators.picking import PickingService
from .orchestrators.putaway import PutawayService

__all__ = [
    "InventoryService",
    "PurchaseOrderService",
    "ASNService",
    "SalesOrderService",
    "PickingService",
    "PutawayService",
]
