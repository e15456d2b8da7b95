"""
Purchase Order Service
Draft, send and cancel purchase orders
"""
import logging
from decimal import Decimal
from typing import List, Optional

from wms.models import PurchaseOrder, PurchaseOrderDetail, PurchaseOrderStatus
from wms.schemas import PurchaseOrderLineCreate, PurchaseOrderRead
from wms.services.base import EngineService
from .numbering import next_po_number
from .state_machines import PURCHASE_ORDER_MACHINE

logger = logging.getLogger(__name__)


class PurchaseOrderService(EngineService):
    """Purchase order lifecycle; receiving is driven by ASN creation"""

    def create_purchase_order(self, supplier_id: int, details: List[PurchaseOrderLineCreate],
                              notes: Optional[str] = None) -> PurchaseOrderRead:
        def work(session):
            self._require_items(session, [line.item_id for line in details])

            po = PurchaseOrder(
                company_id=self.company_id,
                po_number=next_po_number(session, self.company_id),
                supplier_id=supplier_id,
                status=PurchaseOrderStatus.DRAFT.value,
                notes=notes,
            )
            total = Decimal("0")
            for line in details:
                line_total = Decimal(line.unit_price) * line.quantity
                po.details.append(PurchaseOrderDetail(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=line_total,
                ))
                total += line_total
            po.total_amount = total
            session.add(po)
            logger.info(f"Created purchase order {po.po_number} for supplier {supplier_id}")
            return po

        return self._run(work, PurchaseOrderRead.model_validate)

    def send(self, po_id: int) -> PurchaseOrderRead:
        def work(session):
            po = self._lock(session, PurchaseOrder, po_id)
            PURCHASE_ORDER_MACHINE.transition(po, PurchaseOrderStatus.SENT)
            logger.info(f"Purchase order {po.po_number} sent")
            return po

        return self._run(work, PurchaseOrderRead.model_validate)

    def cancel(self, po_id: int, reason: Optional[str] = None) -> PurchaseOrderRead:
        def work(session):
            po = self._lock(session, PurchaseOrder, po_id)
            PURCHASE_ORDER_MACHINE.transition(po, PurchaseOrderStatus.CANCELLED)
            po.cancellation_reason = reason
            logger.info(f"Purchase order {po.po_number} cancelled: {reason}")
            return po

        return self._run(work, PurchaseOrderRead.model_validate)

    def get(self, po_id: int) -> PurchaseOrderRead:
        return self._run(lambda session: self._get(session, PurchaseOrder, po_id), PurchaseOrderRead.model_validate)
