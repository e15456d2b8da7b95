"""
Picking Orchestrator
Generates FIFO picking lists for sales orders and moves picked stock from
Storage into the order's holding location
"""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.exceptions import (
    BusinessLogicError, EntityNotFoundError, InvalidQuantityError, InvalidTransitionError,
    LocationCategoryMismatchError, MissingSourceLocationError, QuantityMismatchError,
    SourceLocationMismatchError, ValidationError
)
from wms.models import (
    LocationCategory, Picking, PickingDetail, PickingDetailStatus, PickingStatus,
    SalesOrder, SalesOrderStatus
)
from wms.models.stock import utcnow
from wms.schemas import (
    BulkPickingLine, BulkPickingResult, PickingLineRead, PickingProcessRequest, PickingProcessResult,
    PickingRead, PickingSuggestion, TransferResult
)
from wms.services.base import EngineService
from wms.services.documents.numbering import next_picking_number
from wms.services.documents.state_machines import PICKING_MACHINE, SALES_ORDER_MACHINE

logger = logging.getLogger(__name__)

ACTIVE_PICKING_STATUSES = (PickingStatus.PENDING.value, PickingStatus.IN_PROGRESS.value)


class PickingService(EngineService):
    """Picking lists and the transfers they drive"""

    def create_picking(self, sales_order_id: int, notes: Optional[str] = None) -> PickingRead:
        """
        Generate a picking list for a Pending sales order

        Each order line is split across Storage locations oldest stock first;
        every detail gets an explicit source location. The sales order moves
        to InProgress.
        """
        def work(session):
            so = self._lock(session, SalesOrder, sales_order_id)
            SALES_ORDER_MACHINE.assert_transition(so.status, SalesOrderStatus.IN_PROGRESS, system=True)

            # Re-validate the whole order before allocating any line
            required: Dict[int, int] = defaultdict(int)
            for line in so.details:
                required[line.item_id] += line.quantity
            for item_id in sorted(required):
                self.validator.require_available(session, self.company_id, item_id, required[item_id])

            picking = Picking(
                company_id=self.company_id,
                picking_number=next_picking_number(session, self.company_id),
                sales_order_id=so.id,
                holding_location_id=so.holding_location_id,
                status=PickingStatus.PENDING.value,
                notes=notes,
            )

            allocated: Dict[int, Dict[int, int]] = defaultdict(dict)
            for line in so.details:
                suggestions = self.validator.suggest_sources(
                    session, self.company_id, line.item_id, line.quantity,
                    allocated=allocated[line.item_id],
                )
                for location_id, quantity in suggestions:
                    picking.details.append(PickingDetail(
                        sales_order_detail_id=line.id,
                        item_id=line.item_id,
                        source_location_id=location_id,
                        holding_location_id=so.holding_location_id,
                        quantity_required=quantity,
                        quantity_picked=0,
                        status=PickingDetailStatus.PENDING.value,
                    ))

            session.add(picking)
            SALES_ORDER_MACHINE.transition(so, SalesOrderStatus.IN_PROGRESS, system=True)
            logger.info(f"Created picking {picking.picking_number} for {so.so_number} "
                        f"with {len(picking.details)} lines")
            return picking

        return self._run(work, PickingRead.model_validate)

    def process_picking(self, picking_detail_id: int, quantity: int,
                        source_location_id: Optional[int]) -> PickingProcessResult:
        """
        Pick one line: move ``quantity`` from its source location to holding

        ``source_location_id`` must be given and must equal the location
        recorded on the line when it is re-read inside the transaction.
        """
        if source_location_id is None:
            raise MissingSourceLocationError(picking_detail_id)

        def work(session):
            picking_id = self._detail_parent_id(session, picking_detail_id)
            picking = self._lock(session, Picking, picking_id)
            detail = self._lock_child(session, PickingDetail, Picking, PickingDetail.picking_id, picking_detail_id)

            if detail.source_location_id is None:
                raise MissingSourceLocationError(detail.id)
            if detail.source_location_id != source_location_id:
                raise SourceLocationMismatchError(detail.source_location_id, source_location_id)
            if picking.status not in ACTIVE_PICKING_STATUSES:
                raise InvalidTransitionError("Picking", picking.status, PickingStatus.IN_PROGRESS.value)
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidQuantityError(quantity)
            if quantity > detail.remaining_quantity:
                raise QuantityMismatchError(quantity, detail.remaining_quantity)

            holding_location_id = detail.holding_location_id or picking.holding_location_id
            locations = self.ledger.lock_locations(
                session, self.company_id, [detail.source_location_id, holding_location_id]
            )
            source = locations[detail.source_location_id]
            if source.category != LocationCategory.STORAGE.value:
                raise LocationCategoryMismatchError(LocationCategory.STORAGE.value, source.category, source.id)

            outcome = self.operator.transfer(
                session, self.company_id, detail.item_id,
                detail.source_location_id, holding_location_id, quantity,
                reference=picking.picking_number,
            )
            detail.record_pick(quantity)
            if picking.status == PickingStatus.PENDING.value:
                PICKING_MACHINE.transition(picking, PickingStatus.IN_PROGRESS, system=True)

            logger.info(f"Picked {quantity} for {picking.picking_number} line {detail.id} "
                        f"({detail.quantity_picked}/{detail.quantity_required})")
            return picking, detail, outcome

        def present(result):
            picking, detail, outcome = result
            return PickingProcessResult(
                picking_id=picking.id,
                picking_status=picking.status,
                detail=PickingLineRead.model_validate(detail),
                transfer=TransferResult.from_outcome(outcome),
            )

        return self._run(work, present)

    def process_bulk_picking(self, lines: Iterable[PickingProcessRequest]) -> BulkPickingResult:
        """
        Pick several lines, each in its own transaction

        Lines asking for nothing are skipped. A line that fails (short stock,
        missing or wrong location, over-pick) is reported with its error code
        and does not undo lines already picked. Storage and concurrency
        failures still propagate.
        """
        results = []
        for line in lines:
            if line.quantity <= 0:
                continue
            try:
                picked = self.process_picking(line.picking_detail_id, line.quantity, line.source_location_id)
            except (ValidationError, BusinessLogicError, EntityNotFoundError) as e:
                logger.warning(f"Bulk picking skipped line {line.picking_detail_id}: {e}")
                results.append(BulkPickingLine(
                    picking_detail_id=line.picking_detail_id, error=e.code, detail=str(e)
                ))
                continue
            results.append(BulkPickingLine(
                picking_detail_id=line.picking_detail_id,
                quantity=line.quantity,
                picking_id=picked.picking_id,
                status=picked.detail.status,
            ))
        return BulkPickingResult(lines=results)

    def _detail_parent_id(self, session: Session, picking_detail_id: int) -> int:
        """Parent picking of a line, read without a lock so the picking can be locked first"""
        picking_id = session.execute(
            select(PickingDetail.picking_id)
            .join(Picking, PickingDetail.picking_id == Picking.id)
            .where(PickingDetail.id == picking_detail_id, Picking.company_id == self.company_id)
        ).scalar_one_or_none()
        if picking_id is None:
            raise EntityNotFoundError("PickingDetail", picking_detail_id)
        return picking_id

    def complete_picking(self, picking_id: int) -> PickingRead:
        """Close a fully picked list; its sales order becomes Picked"""
        def work(session):
            sales_order_id = self._get(session, Picking, picking_id).sales_order_id
            # sales order before picking, matching cancellation
            so = self._lock(session, SalesOrder, sales_order_id)
            picking = self._lock(session, Picking, picking_id)
            PICKING_MACHINE.assert_transition(picking.status, PickingStatus.COMPLETED)

            outstanding = sum(detail.remaining_quantity for detail in picking.details)
            if outstanding:
                required = sum(detail.quantity_required for detail in picking.details)
                raise QuantityMismatchError(
                    required, outstanding,
                    f"Picking {picking.picking_number} has {outstanding} units not yet picked"
                )

            SALES_ORDER_MACHINE.assert_transition(so.status, SalesOrderStatus.PICKED, system=True)
            PICKING_MACHINE.transition(picking, PickingStatus.COMPLETED)
            picking.completed_date = utcnow()
            SALES_ORDER_MACHINE.transition(so, SalesOrderStatus.PICKED, system=True)
            logger.info(f"Picking {picking.picking_number} completed; {so.so_number} picked")
            return picking

        return self._run(work, PickingRead.model_validate)

    def cancel_active_picking(self, session: Session, so: SalesOrder) -> Optional[Picking]:
        """
        Cancel the order's active picking inside the caller's transaction and
        return every picked unit from holding to its source location
        """
        picking = next((p for p in so.pickings if p.status in ACTIVE_PICKING_STATUSES), None)
        if picking is None:
            return None
        picking = self._lock(session, Picking, picking.id)
        PICKING_MACHINE.assert_transition(picking.status, PickingStatus.CANCELLED, system=True)

        returns = [detail for detail in picking.details if detail.quantity_picked > 0]
        incoming: Dict[int, int] = defaultdict(int)
        outgoing: Dict[int, int] = defaultdict(int)
        for detail in returns:
            incoming[detail.source_location_id] += detail.quantity_picked
            outgoing[detail.holding_location_id or picking.holding_location_id] += detail.quantity_picked
        locations = self.ledger.lock_locations(session, self.company_id, list(incoming) + list(outgoing))
        for location_id, quantity in incoming.items():
            self.ledger.check(locations[location_id], quantity)
        for location_id, quantity in outgoing.items():
            self.ledger.check(locations[location_id], -quantity)

        for detail in returns:
            self.operator.transfer(
                session, self.company_id, detail.item_id,
                detail.holding_location_id or picking.holding_location_id,
                detail.source_location_id,
                detail.quantity_picked,
                reference=picking.picking_number,
                notes="Returned on cancellation",
            )

        PICKING_MACHINE.transition(picking, PickingStatus.CANCELLED, system=True)
        logger.info(f"Picking {picking.picking_number} cancelled; {len(returns)} lines returned to storage")
        return picking

    def get(self, picking_id: int) -> PickingRead:
        return self._run(lambda session: self._get(session, Picking, picking_id), PickingRead.model_validate)

    def suggest_locations(self, item_id: int, quantity: int) -> List[PickingSuggestion]:
        """FIFO split of ``quantity`` across Storage locations"""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)

        def work(session):
            return self.validator.suggest_sources(session, self.company_id, item_id, quantity)

        return self._run(work, lambda rows: [
            PickingSuggestion(location_id=location_id, quantity=qty) for location_id, qty in rows
        ])

