"""
Status and category vocabularies shared by models, services and schemas
"""
from enum import Enum


class LocationCategory(str, Enum):
    STORAGE = "Storage"
    HOLDING = "Other"


class StockStatus(str, Enum):
    AVAILABLE = "Available"
    RESERVED = "Reserved"
    DAMAGED = "Damaged"
    QUARANTINE = "Quarantine"
    BLOCKED = "Blocked"
    EMPTY = "Empty"


class MovementType(str, Enum):
    INBOUND = "Inbound"
    OUTBOUND = "Outbound"
    TRANSFER = "Transfer"
    ADJUSTMENT = "Adjustment"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    RECEIVED = "Received"
    CANCELLED = "Cancelled"


class ASNStatus(str, Enum):
    PENDING = "Pending"
    ON_DELIVERY = "OnDelivery"
    ARRIVED = "Arrived"
    PROCESSED = "Processed"
    CANCELLED = "Cancelled"


class SalesOrderStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    PICKED = "Picked"
    SHIPPED = "Shipped"
    CANCELLED = "Cancelled"


class PickingStatus(str, Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PickingDetailStatus(str, Enum):
    PENDING = "Pending"
    SHORT = "Short"
    PICKED = "Picked"
