"""
API v1 Router
Combines all v1 endpoint routers
"""
from fastapi import APIRouter

from wms.api.v1 import asns, inventory, pickings, purchase_orders, putaway, sales_orders

api_router = APIRouter()

api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["Purchase Orders"])
api_router.include_router(asns.router, prefix="/asns", tags=["ASN"])
api_router.include_router(putaway.router, prefix="/putaway", tags=["Putaway"])
api_router.include_router(sales_orders.router, prefix="/sales-orders", tags=["Sales Orders"])
api_router.include_router(pickings.router, prefix="/pickings", tags=["Picking"])
