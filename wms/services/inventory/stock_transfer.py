"""
Stock Transfer Operator
Moves a quantity of one item between two locations in one unit of work
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.exceptions import EntityNotFoundError, InvalidQuantityError, InvalidTransferError
from wms.models import Item, MovementType, StockMovement, StockRecord
from .capacity_ledger import CapacityLedger
from .stock_records import StockRecordStore

logger = logging.getLogger(__name__)


@dataclass
class TransferOutcome:
    """What a committed transfer touched"""
    item_id: int
    source_location_id: Optional[int]
    destination_location_id: Optional[int]
    quantity: int
    reference: Optional[str]
    unit_cost: Optional[Decimal]
    source_record: Optional[StockRecord]
    destination_record: Optional[StockRecord]
    destination_prior_quantity: int
    destination_prior_cost: Optional[Decimal]
    movement: StockMovement

    @property
    def movement_type(self) -> str:
        return self.movement.movement_type


def movement_type_for(source_location_id: Optional[int], destination_location_id: Optional[int]) -> MovementType:
    if source_location_id is None:
        return MovementType.INBOUND
    if destination_location_id is None:
        return MovementType.OUTBOUND
    return MovementType.TRANSFER


class StockTransferOperator:
    """
    Moves stock between (item, location) records

    A source of None means stock arriving from outside the warehouse; a
    destination of None means stock leaving it. Every precondition is checked
    before the first row is changed, and the capacity ledger is updated for
    both locations in the caller's transaction.
    """

    def __init__(self, ledger: Optional[CapacityLedger] = None, store: Optional[StockRecordStore] = None):
        self.ledger = ledger or CapacityLedger()
        self.store = store or StockRecordStore()

    def transfer(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        source_location_id: Optional[int],
        destination_location_id: Optional[int],
        quantity: int,
        reference: Optional[str] = None,
        unit_cost: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> TransferOutcome:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)
        if source_location_id is None and destination_location_id is None:
            raise InvalidTransferError("A transfer needs a source or a destination location")
        if source_location_id == destination_location_id:
            raise InvalidTransferError(
                f"Source and destination are both location {source_location_id}; use a stock adjustment"
            )

        item = session.execute(
            select(Item).where(Item.id == item_id, Item.company_id == company_id)
        ).scalar_one_or_none()
        if item is None:
            raise EntityNotFoundError("Item", item_id)

        location_ids = [lid for lid in (source_location_id, destination_location_id) if lid is not None]
        locations = self.ledger.lock_locations(session, company_id, location_ids)

        # Stock rows are locked in the same ascending location order as their locations
        records = {
            lid: self.store.lock(session, company_id, item_id, lid) for lid in sorted(location_ids)
        }
        source_record = records.get(source_location_id) if source_location_id is not None else None
        destination_record = records.get(destination_location_id) if destination_location_id is not None else None

        # Validate everything before mutating anything
        if source_location_id is not None:
            self.ledger.check(locations[source_location_id], 0)
            self.store.check_removable(source_record, quantity, item_id, source_location_id)
            self.ledger.check(locations[source_location_id], -quantity)
        if destination_location_id is not None:
            self.store.check_receivable(destination_record)
            self.ledger.check(locations[destination_location_id], quantity)

        if unit_cost is None and source_record is not None:
            unit_cost = source_record.last_cost_price
        destination_prior_quantity = 0
        destination_prior_cost = None
        if destination_record is not None and destination_record.quantity > 0:
            destination_prior_quantity = destination_record.quantity
            destination_prior_cost = destination_record.last_cost_price

        if source_record is not None:
            self.store.remove(source_record, quantity)
            self.ledger.apply(locations[source_location_id], -quantity)

        if destination_location_id is not None:
            destination_record = self.store.receive(
                session, company_id, item_id, destination_location_id,
                destination_record, quantity, reference, unit_cost,
            )
            self.ledger.apply(locations[destination_location_id], quantity)

        movement = StockMovement(
            company_id=company_id,
            item_id=item_id,
            movement_type=movement_type_for(source_location_id, destination_location_id).value,
            source_location_id=source_location_id,
            destination_location_id=destination_location_id,
            quantity=quantity,
            unit_cost=unit_cost,
            reference=reference,
            notes=notes,
        )
        session.add(movement)
        session.flush()

        logger.info(
            f"{movement.movement_type} {quantity} x item {item.item_code}: "
            f"{source_location_id} -> {destination_location_id} ({reference})"
        )

        return TransferOutcome(
            item_id=item_id,
            source_location_id=source_location_id,
            destination_location_id=destination_location_id,
            quantity=quantity,
            reference=reference,
            unit_cost=unit_cost,
            source_record=source_record,
            destination_record=destination_record,
            destination_prior_quantity=destination_prior_quantity,
            destination_prior_cost=destination_prior_cost,
            movement=movement,
        )
