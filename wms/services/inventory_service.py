"""
Inventory Service
Location and stock queries, direct moves, adjustments and status changes
"""
import logging
from typing import List, Optional

from sqlalchemy import or_, select

from wms.core.exceptions import EntityNotFoundError, InvalidQuantityError, StockStatusConflictError
from wms.models import (
    Location, LocationCategory, MovementType, StockMovement, StockRecord, StockStatus
)
from wms.models.stock import utcnow
from wms.schemas import (
    AvailabilityRead, InvariantReport, InvariantViolationRead, LocationRead, LocationStockRead,
    StockMovementRead, StockRecordRead, TransferResult
)
from wms.services.base import EngineService
from wms.services.inventory import find_violations

logger = logging.getLogger(__name__)


class InventoryService(EngineService):
    """Inventory operations that are not driven by a document"""

    def list_locations(self, category: Optional[LocationCategory] = None,
                       active_only: bool = False) -> List[LocationRead]:
        def work(session):
            stmt = select(Location).where(Location.company_id == self.company_id)
            if category is not None:
                stmt = stmt.where(Location.category == LocationCategory(category).value)
            if active_only:
                stmt = stmt.where(Location.is_active.is_(True))
            return session.execute(stmt.order_by(Location.code)).scalars().all()

        return self._run(work, lambda rows: [LocationRead.model_validate(row) for row in rows])

    def get_location(self, location_id: int) -> LocationStockRead:
        def work(session):
            location = self._get(session, Location, location_id)
            records = self.store.list_for_location(session, self.company_id, location_id)
            return location, records

        def present(result):
            location, records = result
            read = LocationStockRead.model_validate(location)
            read.stock = [StockRecordRead.model_validate(record) for record in records]
            return read

        return self._run(work, present)

    def available_quantity(self, item_id: int,
                           category: LocationCategory = LocationCategory.STORAGE) -> AvailabilityRead:
        def work(session):
            return self.validator.available_quantity(session, self.company_id, item_id, category)

        return self._run(work, lambda quantity: AvailabilityRead(
            item_id=item_id, category=category, available_quantity=quantity
        ))

    def move_stock(self, item_id: int, source_location_id: int, destination_location_id: int,
                   quantity: int, notes: Optional[str] = None) -> TransferResult:
        """Move Available stock between two locations outside any document"""
        def work(session):
            return self.operator.transfer(
                session, self.company_id, item_id,
                source_location_id, destination_location_id, quantity,
                reference=f"MOVE-{utcnow():%Y%m%d}",
                notes=notes,
            )

        return self._run(work, TransferResult.from_outcome)

    def adjust_stock(self, item_id: int, location_id: int, new_quantity: int, reason: str) -> StockRecordRead:
        """
        Set the quantity of (item, location) to a counted value

        The difference goes through the capacity ledger and the movement
        journal like any transfer. Held stock keeps its status; an Empty
        record is refilled like a new arrival.
        """
        if isinstance(new_quantity, bool) or not isinstance(new_quantity, int) or new_quantity < 0:
            raise InvalidQuantityError(
                new_quantity, f"Counted quantity must be a whole number of zero or more, got {new_quantity}"
            )

        def work(session):
            location = self.ledger.lock_location(session, self.company_id, location_id)
            record = self.store.lock(session, self.company_id, item_id, location_id)
            current = record.quantity if record is not None else 0
            delta = new_quantity - current

            if record is None:
                if new_quantity == 0:
                    raise EntityNotFoundError("StockRecord", f"item {item_id} at location {location_id}")
                self._require_items(session, [item_id])

            self.ledger.check(location, delta)
            if record is None or (record.status == StockStatus.EMPTY.value and new_quantity > 0):
                record = self.store.receive(
                    session, self.company_id, item_id, location_id, record, new_quantity,
                    reference="ADJUSTMENT", unit_cost=None,
                )
            else:
                record.quantity = new_quantity
                if new_quantity == 0:
                    record.status = StockStatus.EMPTY.value
            self.ledger.apply(location, delta)

            session.add(StockMovement(
                company_id=self.company_id,
                item_id=item_id,
                movement_type=MovementType.ADJUSTMENT.value,
                destination_location_id=location_id,
                quantity=delta,
                unit_cost=record.last_cost_price,
                reference="ADJUSTMENT",
                notes=reason,
            ))
            logger.info(f"Adjusted item {item_id} at {location.code}: {current} -> {new_quantity} ({reason})")
            return record

        return self._run(work, StockRecordRead.model_validate)

    def set_stock_status(self, record_id: int, status: StockStatus, notes: Optional[str] = None) -> StockRecordRead:
        """Hold or release stock; Empty is reserved for zero-quantity records"""
        requested = StockStatus(status)

        def work(session):
            record = self.store.lock_by_id(session, self.company_id, record_id)
            if requested == StockStatus.EMPTY and record.quantity > 0:
                raise StockStatusConflictError(record.id, record.status,
                                               f"Stock record {record.id} still holds {record.quantity} units")
            if requested != StockStatus.EMPTY and record.quantity == 0:
                raise StockStatusConflictError(record.id, record.status,
                                               f"Stock record {record.id} is empty")
            previous = record.status
            record.status = requested.value
            if notes:
                record.notes = notes
            logger.info(f"Stock record {record.id}: {previous} -> {record.status}")
            return record

        return self._run(work, StockRecordRead.model_validate)

    def stock_by_reference(self, reference: str) -> List[StockRecordRead]:
        """Stock that arrived through a given document number"""
        def work(session):
            return session.execute(
                select(StockRecord)
                .where(StockRecord.company_id == self.company_id, StockRecord.source_reference == reference)
                .order_by(StockRecord.id)
            ).scalars().all()

        return self._run(work, lambda rows: [StockRecordRead.model_validate(row) for row in rows])

    def list_movements(self, item_id: Optional[int] = None, location_id: Optional[int] = None,
                       reference: Optional[str] = None, limit: int = 100) -> List[StockMovementRead]:
        def work(session):
            stmt = select(StockMovement).where(StockMovement.company_id == self.company_id)
            if item_id is not None:
                stmt = stmt.where(StockMovement.item_id == item_id)
            if location_id is not None:
                stmt = stmt.where(or_(
                    StockMovement.source_location_id == location_id,
                    StockMovement.destination_location_id == location_id,
                ))
            if reference is not None:
                stmt = stmt.where(StockMovement.reference == reference)
            return session.execute(stmt.order_by(StockMovement.id).limit(limit)).scalars().all()

        return self._run(work, lambda rows: [StockMovementRead.model_validate(row) for row in rows])

    def check_invariants(self) -> InvariantReport:
        def work(session):
            return find_violations(session, self.company_id)

        return self._run(work, lambda violations: InvariantReport(
            healthy=not violations,
            violations=[InvariantViolationRead.model_validate(v) for v in violations],
        ))
