from .inventory import (
    AdjustStockRequest, AvailabilityRead, InvariantReport, InvariantViolationRead,
    LocationRead, LocationStockRead, MoveStockRequest, StockMovementRead, StockRecordRead,
    StockStatusUpdate, TransferResult
)
from .documents import (
    ASNCreate, ASNLineCreate, ASNLineRead, ASNRead, ASNStatusUpdate, AutoPutawayLine,
    AutoPutawayResult, BulkPickingLine, BulkPickingRequest, BulkPickingResult, CancelRequest,
    PickingCreate, PickingLineRead, PickingProcessRequest, PickingProcessResult, PickingRead,
    PickingSuggestion, PurchaseOrderCreate,
    PurchaseOrderLineCreate, PurchaseOrderRead, PutawayRequest, PutawayResult,
    SalesOrderCreate, SalesOrderLineCreate, SalesOrderRead, SalesOrderStatusUpdate
)
