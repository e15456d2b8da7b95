"""
ASN Service
Advanced shipping notices: creation against a PO, arrival into the
holding location, and cancellation with PO rollback
"""
import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_FLOOR
from typing import Dict, List, Optional

from sqlalchemy import func, select

from wms.core.config import settings
from wms.core.exceptions import (
    InvalidTransitionError, LocationCategoryMismatchError, QuantityMismatchError
)
from wms.models import (
    ASN, ASNDetail, ASNStatus, LocationCategory, PurchaseOrder, PurchaseOrderStatus
)
from wms.models.stock import utcnow
from wms.schemas import ASNLineCreate, ASNRead
from wms.services.base import EngineService
from .fees import unit_fee
from .numbering import next_asn_number
from .state_machines import ASN_MACHINE, PURCHASE_ORDER_MACHINE

logger = logging.getLogger(__name__)

RECEIVABLE_PO_STATUSES = (PurchaseOrderStatus.SENT.value, PurchaseOrderStatus.RECEIVED.value)


class ASNService(EngineService):
    """ASN lifecycle; arrival is the only point where net-new stock enters"""

    def create_asn(
        self,
        purchase_order_id: int,
        holding_location_id: int,
        details: List[ASNLineCreate],
        expected_arrival_date: Optional[datetime] = None,
        carrier_name: Optional[str] = None,
        tracking_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ASNRead:
        """
        Create an ASN against a Sent or Received purchase order

        The holding location must be an active Other location with room for
        every shipped unit. The first ASN moves its PO from Sent to Received.
        """
        def work(session):
            po = self._lock(session, PurchaseOrder, purchase_order_id)
            if po.status not in RECEIVABLE_PO_STATUSES:
                raise InvalidTransitionError("PurchaseOrder", po.status, PurchaseOrderStatus.RECEIVED.value)

            self._require_items(session, [line.item_id for line in details])
            self._check_against_po(session, po, details)

            holding = self.ledger.lock_location(session, self.company_id, holding_location_id)
            if holding.category != LocationCategory.HOLDING.value:
                raise LocationCategoryMismatchError(LocationCategory.HOLDING.value, holding.category, holding.id)
            self.ledger.check(holding, sum(line.shipped_quantity for line in details))

            asn = ASN(
                company_id=self.company_id,
                asn_number=next_asn_number(session, self.company_id),
                purchase_order_id=po.id,
                holding_location_id=holding.id,
                status=ASNStatus.PENDING.value,
                expected_arrival_date=expected_arrival_date,
                carrier_name=carrier_name,
                tracking_number=tracking_number,
                notes=notes,
            )
            for line in details:
                rate, fee = unit_fee(line.actual_price_per_item)
                asn.details.append(ASNDetail(
                    item_id=line.item_id,
                    shipped_quantity=line.shipped_quantity,
                    already_put_away_quantity=0,
                    remaining_quantity=line.shipped_quantity,
                    actual_price_per_item=line.actual_price_per_item,
                    warehouse_fee_rate=rate,
                    warehouse_fee_amount=fee,
                    notes=line.notes,
                ))
            session.add(asn)

            if po.status == PurchaseOrderStatus.SENT.value:
                PURCHASE_ORDER_MACHINE.transition(po, PurchaseOrderStatus.RECEIVED, system=True)

            logger.info(f"Created ASN {asn.asn_number} for purchase order {po.po_number}")
            return asn

        return self._run(work, ASNRead.model_validate)

    def _check_against_po(self, session, po: PurchaseOrder, details: List[ASNLineCreate]):
        """Every shipped item must be on the PO, within the overship tolerance"""
        ordered: Dict[int, int] = defaultdict(int)
        for po_line in po.details:
            ordered[po_line.item_id] += po_line.quantity

        shipped_before: Dict[int, int] = dict(session.execute(
            select(ASNDetail.item_id, func.sum(ASNDetail.shipped_quantity))
            .join(ASN, ASNDetail.asn_id == ASN.id)
            .where(ASN.purchase_order_id == po.id, ASN.status != ASNStatus.CANCELLED.value)
            .group_by(ASNDetail.item_id)
        ).all())

        shipping: Dict[int, int] = defaultdict(int)
        for line in details:
            shipping[line.item_id] += line.shipped_quantity

        for item_id, quantity in shipping.items():
            if item_id not in ordered:
                raise QuantityMismatchError(
                    quantity, 0, f"Item {item_id} is not on purchase order {po.po_number}"
                )
            tolerance = Decimal(str(settings.ASN_OVERSHIP_TOLERANCE))
            allowed = int((ordered[item_id] * (1 + tolerance)).to_integral_value(rounding=ROUND_FLOOR))
            remaining = allowed - int(shipped_before.get(item_id) or 0)
            if quantity > remaining:
                raise QuantityMismatchError(quantity, max(remaining, 0))

    def update_status(self, asn_id: int, new_status, reason: Optional[str] = None) -> ASNRead:
        """
        Move an ASN along Pending -> OnDelivery -> Arrived -> Processed

        Arrived receives every line into the holding location. Cancelled is
        routed through cancel().
        """
        requested = ASNStatus(new_status)
        if requested == ASNStatus.CANCELLED:
            return self.cancel(asn_id, reason)

        def work(session):
            asn = self._lock(session, ASN, asn_id)
            ASN_MACHINE.assert_transition(asn.status, requested)

            if requested == ASNStatus.ARRIVED:
                self._arrive(session, asn)
            elif requested == ASNStatus.PROCESSED:
                outstanding = sum(detail.remaining_quantity for detail in asn.details)
                if outstanding:
                    raise QuantityMismatchError(
                        0, outstanding,
                        f"ASN {asn.asn_number} still has {outstanding} units awaiting putaway"
                    )

            previous = asn.status
            asn.status = requested.value
            logger.info(f"ASN {asn.asn_number}: {previous} -> {asn.status}")
            return asn

        return self._run(work, ASNRead.model_validate)

    def _arrive(self, session, asn: ASN):
        holding = self.ledger.lock_location(session, self.company_id, asn.holding_location_id)
        self.ledger.check(holding, sum(detail.shipped_quantity for detail in asn.details))
        for item_id in sorted({detail.item_id for detail in asn.details}):
            self.store.check_receivable(self.store.lock(session, self.company_id, item_id, holding.id))

        for detail in asn.details:
            self.operator.transfer(
                session, self.company_id, detail.item_id,
                None, holding.id, detail.shipped_quantity,
                reference=asn.asn_number,
                unit_cost=Decimal(detail.actual_price_per_item),
            )
        asn.actual_arrival_date = utcnow()

    def cancel(self, asn_id: int, reason: Optional[str] = None) -> ASNRead:
        """Cancel a Pending ASN; the PO returns to Sent when no active ASN remains"""
        def work(session):
            purchase_order_id = self._get(session, ASN, asn_id).purchase_order_id
            # PO first, matching the lock order of create_asn
            po = self._lock(session, PurchaseOrder, purchase_order_id)
            asn = self._lock(session, ASN, asn_id)
            ASN_MACHINE.transition(asn, ASNStatus.CANCELLED)
            asn.cancellation_reason = reason

            active = session.execute(
                select(func.count(ASN.id)).where(
                    ASN.purchase_order_id == po.id,
                    ASN.id != asn.id,
                    ASN.status != ASNStatus.CANCELLED.value,
                )
            ).scalar_one()
            if not active and po.status == PurchaseOrderStatus.RECEIVED.value:
                PURCHASE_ORDER_MACHINE.transition(po, PurchaseOrderStatus.SENT, system=True)
                logger.info(f"Purchase order {po.po_number} rolled back to Sent")

            logger.info(f"ASN {asn.asn_number} cancelled: {reason}")
            return asn

        return self._run(work, ASNRead.model_validate)

    def get(self, asn_id: int) -> ASNRead:
        return self._run(lambda session: self._get(session, ASN, asn_id), ASNRead.model_validate)
