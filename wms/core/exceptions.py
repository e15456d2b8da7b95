"""
Custom Engine Exceptions

Every error carries a machine-readable ``code`` and the structured fields
needed to act on it, so callers branch on type and read attributes rather
than parsing messages.

    WarehouseError
    |
    +-- ValidationError            (bad input, detected before any mutation)
    |   +-- InvalidQuantityError
    |   +-- InvalidTransferError
    |   +-- QuantityMismatchError
    |   +-- LocationCategoryMismatchError
    |   +-- MissingSourceLocationError
    |   +-- SourceLocationMismatchError
    |
    +-- EntityNotFoundError
    |
    +-- BusinessLogicError         (state of the warehouse forbids the operation)
    |   +-- InvalidTransitionError
    |   +-- InsufficientStockError
    |   +-- CapacityExceededError
    |   +-- NegativeCapacityError
    |   +-- LocationInactiveError
    |   +-- StockStatusConflictError
    |
    +-- ConcurrencyConflictError
    +-- StorageFailureError
"""
from typing import Any, Dict, Optional


class WarehouseError(Exception):
    """Base exception for the WMS engine"""

    code: str = "WAREHOUSE_ERROR"

    def data(self) -> Dict[str, Any]:
        """Structured fields describing the failure"""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.code, "detail": str(self)}
        payload.update(self.data())
        return payload


class ValidationError(WarehouseError):
    """Raised when request data is invalid"""

    code: str = "VALIDATION_ERROR"


class BusinessLogicError(WarehouseError):
    """Raised when warehouse state forbids the requested operation"""

    code: str = "BUSINESS_RULE_VIOLATION"


class EntityNotFoundError(WarehouseError):
    code: str = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    def data(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": self.entity_id}


class InvalidTransitionError(BusinessLogicError):
    """Status change not present in the document's transition table"""

    code: str = "INVALID_TRANSITION"

    def __init__(self, document: str, current: str, requested: str):
        self.document = document
        self.current = current
        self.requested = requested
        super().__init__(f"{document} cannot move from {current} to {requested}")

    def data(self) -> Dict[str, Any]:
        return {"document": self.document, "current": self.current, "requested": self.requested}


class InsufficientStockError(BusinessLogicError):
    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, available: int, required: int, item_id: Optional[int] = None,
                 location_id: Optional[int] = None):
        self.available = available
        self.required = required
        self.item_id = item_id
        self.location_id = location_id
        where = f" at location {location_id}" if location_id is not None else ""
        super().__init__(
            f"Insufficient stock{where}: available {available}, required {required}"
        )

    def data(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "required": self.required,
            "item_id": self.item_id,
            "location_id": self.location_id,
        }


class CapacityExceededError(BusinessLogicError):
    code: str = "CAPACITY_EXCEEDED"

    def __init__(self, available: int, required: int, location_id: Optional[int] = None):
        self.available = available
        self.required = required
        self.location_id = location_id
        super().__init__(
            f"Location {location_id} capacity exceeded: available {available}, required {required}"
        )

    def data(self) -> Dict[str, Any]:
        return {"available": self.available, "required": self.required, "location_id": self.location_id}


class NegativeCapacityError(BusinessLogicError):
    code: str = "NEGATIVE_CAPACITY"

    def __init__(self, current: int, delta: int, location_id: Optional[int] = None):
        self.current = current
        self.delta = delta
        self.location_id = location_id
        super().__init__(
            f"Location {location_id} capacity would become negative: current {current}, delta {delta}"
        )

    def data(self) -> Dict[str, Any]:
        return {"current": self.current, "delta": self.delta, "location_id": self.location_id}


class LocationInactiveError(BusinessLogicError):
    code: str = "LOCATION_INACTIVE"

    def __init__(self, location_id: int):
        self.location_id = location_id
        super().__init__(f"Location {location_id} is inactive")

    def data(self) -> Dict[str, Any]:
        return {"location_id": self.location_id}


class StockStatusConflictError(BusinessLogicError):
    """Stock record is held in a status that forbids the change"""

    code: str = "STOCK_STATUS_CONFLICT"

    def __init__(self, record_id: int, status: str, message: Optional[str] = None):
        self.record_id = record_id
        self.status = status
        super().__init__(message or f"Stock record {record_id} is {status}")

    def data(self) -> Dict[str, Any]:
        return {"record_id": self.record_id, "status": self.status}


class InvalidQuantityError(ValidationError):
    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, message: Optional[str] = None):
        self.quantity = quantity
        super().__init__(message or f"Quantity must be greater than zero, got {quantity}")

    def data(self) -> Dict[str, Any]:
        return {"quantity": self.quantity}


class InvalidTransferError(ValidationError):
    code: str = "INVALID_TRANSFER"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class QuantityMismatchError(ValidationError):
    """Requested quantity exceeds what remains on the document line"""

    code: str = "QUANTITY_MISMATCH"

    def __init__(self, requested: int, remaining: int, message: Optional[str] = None):
        self.requested = requested
        self.remaining = remaining
        super().__init__(message or f"Requested {requested} exceeds remaining {remaining}")

    def data(self) -> Dict[str, Any]:
        return {"requested": self.requested, "remaining": self.remaining}


class LocationCategoryMismatchError(ValidationError):
    code: str = "LOCATION_CATEGORY_MISMATCH"

    def __init__(self, expected: str, actual: str, location_id: Optional[int] = None):
        self.expected = expected
        self.actual = actual
        self.location_id = location_id
        super().__init__(f"Location {location_id} must be {expected}, is {actual}")

    def data(self) -> Dict[str, Any]:
        return {"expected": self.expected, "actual": self.actual, "location_id": self.location_id}


class MissingSourceLocationError(ValidationError):
    """A picking line has no source location to transfer from"""

    code: str = "MISSING_SOURCE_LOCATION"

    def __init__(self, picking_detail_id: Optional[int] = None):
        self.picking_detail_id = picking_detail_id
        super().__init__(f"Picking detail {picking_detail_id} has no source location")

    def data(self) -> Dict[str, Any]:
        return {"picking_detail_id": self.picking_detail_id}


class SourceLocationMismatchError(ValidationError):
    code: str = "SOURCE_LOCATION_MISMATCH"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Source location {actual} does not match recorded location {expected}")

    def data(self) -> Dict[str, Any]:
        return {"expected": self.expected, "actual": self.actual}


class ConcurrencyConflictError(WarehouseError):
    """Row changed or was locked by a concurrent transaction"""

    code: str = "CONCURRENCY_CONFLICT"


class StorageFailureError(WarehouseError):
    """Unexpected storage-layer failure; the transaction was rolled back"""

    code: str = "STORAGE_FAILURE"
