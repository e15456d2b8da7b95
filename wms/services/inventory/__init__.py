"""
Inventory engine components
"""
from .capacity_ledger import CapacityLedger
from .stock_records import StockRecordStore
from .stock_transfer import StockTransferOperator, TransferOutcome
from .costing import WeightedAverageCosting, build_transfer_operator
from .allocation import AllocationValidator
from .invariants import InvariantViolation, find_violations

__all__ = [
    "CapacityLedger",
    "StockRecordStore",
    "StockTransferOperator",
    "TransferOutcome",
    "WeightedAverageCosting",
    "build_transfer_operator",
    "AllocationValidator",
    "InvariantViolation",
    "find_violations",
]
