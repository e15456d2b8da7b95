"""
Sales Order Service
Availability-checked order entry, shipment out of the holding location,
and cancellation with picking rollback
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

from wms.core.exceptions import InsufficientStockError, LocationCategoryMismatchError
from wms.models import LocationCategory, SalesOrder, SalesOrderDetail, SalesOrderStatus
from wms.schemas import SalesOrderLineCreate, SalesOrderRead
from wms.services.base import EngineService
from wms.services.orchestrators.picking import PickingService
from .numbering import next_so_number
from .state_machines import SALES_ORDER_MACHINE

logger = logging.getLogger(__name__)


class SalesOrderService(EngineService):
    """Sales order lifecycle"""

    def create_sales_order(self, customer_id: int, holding_location_id: int,
                           details: List[SalesOrderLineCreate],
                           notes: Optional[str] = None) -> SalesOrderRead:
        """
        Create a Pending sales order

        Every item must have the ordered quantity Available in Storage
        locations; nothing is reserved. The holding location must be an
        active Other location.
        """
        def work(session):
            holding = self.ledger.lock_location(session, self.company_id, holding_location_id)
            if holding.category != LocationCategory.HOLDING.value:
                raise LocationCategoryMismatchError(LocationCategory.HOLDING.value, holding.category, holding.id)
            self.ledger.check(holding, 0)

            self._require_items(session, [line.item_id for line in details])
            required: Dict[int, int] = defaultdict(int)
            for line in details:
                required[line.item_id] += line.quantity
            for item_id in sorted(required):
                self.validator.require_available(
                    session, self.company_id, item_id, required[item_id], LocationCategory.STORAGE
                )

            so = SalesOrder(
                company_id=self.company_id,
                so_number=next_so_number(session, self.company_id),
                customer_id=customer_id,
                holding_location_id=holding.id,
                status=SalesOrderStatus.PENDING.value,
                notes=notes,
            )
            total = Decimal("0")
            for line in details:
                line_total = Decimal(line.unit_price) * line.quantity
                so.details.append(SalesOrderDetail(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line_total,
                ))
                total += line_total
            so.total_amount = total
            session.add(so)
            logger.info(f"Created sales order {so.so_number} for customer {customer_id}")
            return so

        return self._run(work, SalesOrderRead.model_validate)

    def update_status(self, so_id: int, new_status, reason: Optional[str] = None) -> SalesOrderRead:
        """
        Caller-driven status change

        Shipped ships every line; Cancelled is routed through cancel().
        InProgress and Picked are reached only through picking.
        """
        requested = SalesOrderStatus(new_status)
        if requested == SalesOrderStatus.CANCELLED:
            return self.cancel(so_id, reason)

        def work(session):
            so = self._lock(session, SalesOrder, so_id)
            SALES_ORDER_MACHINE.assert_transition(so.status, requested)
            if requested == SalesOrderStatus.SHIPPED:
                self._ship(session, so)
            SALES_ORDER_MACHINE.transition(so, requested)
            logger.info(f"Sales order {so.so_number} -> {so.status}")
            return so

        return self._run(work, SalesOrderRead.model_validate)

    def ship(self, so_id: int) -> SalesOrderRead:
        return self.update_status(so_id, SalesOrderStatus.SHIPPED)

    def _ship(self, session, so: SalesOrder):
        """Remove every line from the holding location; all lines or none"""
        required: Dict[int, int] = defaultdict(int)
        for line in so.details:
            required[line.item_id] += line.quantity

        holding = self.ledger.lock_location(session, self.company_id, so.holding_location_id)
        self.ledger.check(holding, -sum(required.values()))
        for item_id in sorted(required):
            record = self.store.lock(session, self.company_id, item_id, holding.id)
            available = self.store.available_in(record)
            if available < required[item_id]:
                raise InsufficientStockError(available, required[item_id], item_id=item_id, location_id=holding.id)

        for line in so.details:
            self.operator.transfer(
                session, self.company_id, line.item_id,
                holding.id, None, line.quantity,
                reference=so.so_number,
            )

    def cancel(self, so_id: int, reason: Optional[str] = None) -> SalesOrderRead:
        """Cancel a Pending or InProgress order, returning any picked stock to storage"""
        def work(session):
            so = self._lock(session, SalesOrder, so_id)
            SALES_ORDER_MACHINE.assert_transition(so.status, SalesOrderStatus.CANCELLED)
            if so.status == SalesOrderStatus.IN_PROGRESS.value:
                PickingService(self.session_factory, self.company_id, self.operator).cancel_active_picking(session, so)
            SALES_ORDER_MACHINE.transition(so, SalesOrderStatus.CANCELLED)
            so.cancellation_reason = reason
            logger.info(f"Sales order {so.so_number} cancelled: {reason}")
            return so

        return self._run(work, SalesOrderRead.model_validate)

    def get(self, so_id: int) -> SalesOrderRead:
        return self._run(lambda session: self._get(session, SalesOrder, so_id), SalesOrderRead.model_validate)
