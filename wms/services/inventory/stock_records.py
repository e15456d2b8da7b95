"""
Stock Record Store
Per-(item, location) quantity and status
"""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.exceptions import (
    EntityNotFoundError, InsufficientStockError, StockStatusConflictError
)
from wms.models import StockRecord, StockStatus
from wms.models.stock import utcnow

logger = logging.getLogger(__name__)

# Statuses a stock record can be merged into
RECEIVABLE_STATUSES = (StockStatus.AVAILABLE.value, StockStatus.EMPTY.value)


class StockRecordStore:
    """Reads and mutates StockRecord rows; callers own the transaction"""

    def lock(self, session: Session, company_id: int, item_id: int, location_id: int) -> Optional[StockRecord]:
        """Re-read the authoritative row for (item, location) and lock it"""
        stmt = (
            select(StockRecord)
            .where(
                StockRecord.company_id == company_id,
                StockRecord.item_id == item_id,
                StockRecord.location_id == location_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    def lock_by_id(self, session: Session, company_id: int, record_id: int) -> StockRecord:
        stmt = (
            select(StockRecord)
            .where(StockRecord.id == record_id, StockRecord.company_id == company_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = session.execute(stmt).scalar_one_or_none()
        if record is None:
            raise EntityNotFoundError("StockRecord", record_id)
        return record

    def list_for_location(self, session: Session, company_id: int, location_id: int) -> List[StockRecord]:
        stmt = (
            select(StockRecord)
            .where(StockRecord.company_id == company_id, StockRecord.location_id == location_id)
            .order_by(StockRecord.item_id)
        )
        return list(session.execute(stmt).scalars())

    @staticmethod
    def available_in(record: Optional[StockRecord]) -> int:
        """Quantity that may leave this record; held stock counts as zero"""
        if record is None or record.status != StockStatus.AVAILABLE.value:
            return 0
        return record.quantity

    def check_removable(self, record: Optional[StockRecord], quantity: int, item_id: int, location_id: int):
        available = self.available_in(record)
        if available < quantity:
            raise InsufficientStockError(available, quantity, item_id=item_id, location_id=location_id)

    @staticmethod
    def check_receivable(record: Optional[StockRecord]):
        if record is not None and record.status not in RECEIVABLE_STATUSES:
            raise StockStatusConflictError(
                record.id, record.status,
                f"Cannot add stock to record {record.id} while it is {record.status}"
            )

    @staticmethod
    def remove(record: StockRecord, quantity: int):
        """Decrement; a record that reaches zero is retained as Empty"""
        record.quantity -= quantity
        if record.quantity == 0:
            record.status = StockStatus.EMPTY.value

    def receive(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        location_id: int,
        record: Optional[StockRecord],
        quantity: int,
        reference: Optional[str],
        unit_cost: Optional[Decimal],
    ) -> StockRecord:
        """
        Add stock to (item, location), creating the record on first arrival

        An Empty record is refilled as if new: status, reference and cost all
        come from the incoming stock so nothing from before the stock-out
        survives. A record that still holds stock keeps its cost.
        """
        now = utcnow()
        if record is None:
            record = StockRecord(
                company_id=company_id,
                item_id=item_id,
                location_id=location_id,
                quantity=quantity,
                status=StockStatus.AVAILABLE.value,
                last_cost_price=unit_cost if unit_cost is not None else Decimal("0"),
                source_reference=reference,
                last_updated=now,
            )
            session.add(record)
            return record

        if record.status == StockStatus.EMPTY.value or record.quantity == 0:
            record.quantity = quantity
            record.last_cost_price = unit_cost if unit_cost is not None else Decimal("0")
            record.source_reference = reference
        else:
            record.quantity += quantity
        record.status = StockStatus.AVAILABLE.value
        record.last_updated = now
        return record
