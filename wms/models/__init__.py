"""
WMS Models
"""
from .enums import (
    ASNStatus, LocationCategory, MovementType, PickingDetailStatus, PickingStatus,
    PurchaseOrderStatus, SalesOrderStatus, StockStatus
)
from .location import Location
from .stock import Item, StockMovement, StockRecord
from .purchasing import ASN, ASNDetail, PurchaseOrder, PurchaseOrderDetail
from .sales import Picking, PickingDetail, SalesOrder, SalesOrderDetail

__all__ = [
    "ASNStatus",
    "LocationCategory",
    "MovementType",
    "PickingDetailStatus",
    "PickingStatus",
    "PurchaseOrderStatus",
    "SalesOrderStatus",
    "StockStatus",
    "Location",
    "Item",
    "StockMovement",
    "StockRecord",
    "ASN",
    "ASNDetail",
    "PurchaseOrder",
    "PurchaseOrderDetail",
    "Picking",
    "PickingDetail",
    "SalesOrder",
    "SalesOrderDetail",
]
