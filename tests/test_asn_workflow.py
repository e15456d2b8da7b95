"""
Business Workflow Tests: purchasing and receiving
Purchase orders, ASN creation against them, arrival and cancellation
"""
import re
from decimal import Decimal

import pytest

from wms.core.database import session_scope
from wms.core.exceptions import (
    CapacityExceededError, EntityNotFoundError, InvalidTransitionError, LocationCategoryMismatchError,
    LocationInactiveError, QuantityMismatchError, StockStatusConflictError
)
from wms.models import (
    ASN, ASNStatus, MovementType, PurchaseOrderStatus, StockMovement, StockStatus
)
from wms.schemas import ASNLineCreate, PurchaseOrderLineCreate
from wms.services import PurchaseOrderService
from wms.services.inventory import StockTransferOperator

from conftest import COMPANY_ID, OTHER_COMPANY_ID


def asn_lines(quantities, price=Decimal("12.50")):
    return [ASNLineCreate(item_id=item_id, shipped_quantity=qty, actual_price_per_item=price)
            for item_id, qty in quantities.items()]


class TestPurchaseOrders:
    """Test purchase order creation and status changes"""

    def test_create_purchase_order(self, po_service, item_x):
        """Test a new PO is Draft, numbered and totalled"""
        po = po_service.create_purchase_order(
            supplier_id=7,
            details=[PurchaseOrderLineCreate(item_id=item_x.id, quantity=10, unit_price=Decimal("2.50"))],
        )

        assert po.status == PurchaseOrderStatus.DRAFT
        assert re.fullmatch(r"PO-\d{8}-001", po.po_number)
        assert po.total_amount == Decimal("25.00")
        assert len(po.details) == 1

    def test_numbers_increase(self, po_service, item_x):
        """Test consecutive POs get consecutive sequence numbers"""
        line = [PurchaseOrderLineCreate(item_id=item_x.id, quantity=1)]
        first = po_service.create_purchase_order(7, line)
        second = po_service.create_purchase_order(7, line)

        assert first.po_number.endswith("-001")
        assert second.po_number.endswith("-002")

    def test_unknown_item_rejected(self, po_service):
        """Test a PO line must reference a known item"""
        with pytest.raises(EntityNotFoundError, match="Item 999"):
            po_service.create_purchase_order(7, [PurchaseOrderLineCreate(item_id=999, quantity=1)])

    def test_send_and_cancel(self, po_service, item_x):
        """Test Draft POs can be sent or cancelled, but not both"""
        line = [PurchaseOrderLineCreate(item_id=item_x.id, quantity=1)]
        sent = po_service.send(po_service.create_purchase_order(7, line).id)
        assert sent.status == PurchaseOrderStatus.SENT

        with pytest.raises(InvalidTransitionError):
            po_service.cancel(sent.id, "too late")

        cancelled = po_service.cancel(po_service.create_purchase_order(7, line).id, "duplicate")
        assert cancelled.status == PurchaseOrderStatus.CANCELLED
        assert cancelled.cancellation_reason == "duplicate"

    def test_company_scoping(self, po_service, session_factory, item_x):
        """Test another company cannot read the PO"""
        po = po_service.create_purchase_order(7, [PurchaseOrderLineCreate(item_id=item_x.id, quantity=1)])

        with pytest.raises(EntityNotFoundError):
            PurchaseOrderService(session_factory, OTHER_COMPANY_ID).get(po.id)


class TestASNCreation:
    """Test ASN creation rules"""

    def test_create_asn_receives_po(self, asn_service, po_service, sent_po_factory, item_x, receiving):
        """Test creating an ASN moves its PO to Received and computes fees"""
        po = sent_po_factory({item_x.id: 40})

        asn = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 40}), carrier_name="ACME")

        assert asn.status == ASNStatus.PENDING
        assert re.fullmatch(r"ASN-\d{8}-001", asn.asn_number)
        assert asn.carrier_name == "ACME"
        detail = asn.details[0]
        assert detail.remaining_quantity == 40
        assert detail.already_put_away_quantity == 0
        assert detail.warehouse_fee_rate == Decimal("0.05")
        assert detail.warehouse_fee_amount == Decimal("0.625")
        assert po_service.get(po.id).status == PurchaseOrderStatus.RECEIVED

    def test_second_asn_on_received_po(self, asn_service, sent_po_factory, item_x, receiving):
        """Test partial shipments may follow on a Received PO"""
        po = sent_po_factory({item_x.id: 40})
        asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 20}))

        second = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 20}))

        assert second.asn_number.endswith("-002")

    def test_draft_po_rejected(self, asn_service, po_service, item_x, receiving):
        """Test an ASN needs a PO that has been sent"""
        po = po_service.create_purchase_order(7, [PurchaseOrderLineCreate(item_id=item_x.id, quantity=10)])

        with pytest.raises(InvalidTransitionError):
            asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

    def test_storage_holding_location_rejected(self, helper, asn_service, sent_po_factory, item_x):
        """Test the receiving location must be an Other location"""
        po = sent_po_factory({item_x.id: 10})
        storage = helper.location("A-01")

        with pytest.raises(LocationCategoryMismatchError) as exc_info:
            asn_service.create_asn(po.id, storage.id, asn_lines({item_x.id: 10}))

        assert exc_info.value.expected == "Other"
        assert exc_info.value.actual == "Storage"
        assert helper.count(ASN) == 0

    def test_inactive_holding_location_rejected(self, helper, asn_service, sent_po_factory, item_x, receiving):
        """Test an inactive receiving location is refused"""
        po = sent_po_factory({item_x.id: 10})
        helper.deactivate(receiving)

        with pytest.raises(LocationInactiveError):
            asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

    def test_holding_capacity_checked(self, helper, asn_service, po_service, sent_po_factory, item_x):
        """Test the receiving location must have room for the shipment"""
        po = sent_po_factory({item_x.id: 100})
        small = helper.holding("RECV-SMALL", max_capacity=30)

        with pytest.raises(CapacityExceededError) as exc_info:
            asn_service.create_asn(po.id, small.id, asn_lines({item_x.id: 40}))

        assert (exc_info.value.available, exc_info.value.required) == (30, 40)
        assert po_service.get(po.id).status == PurchaseOrderStatus.SENT

    def test_item_not_on_po(self, helper, asn_service, sent_po_factory, item_x, receiving):
        """Test shipping an item the PO never ordered"""
        other = helper.item("ITEM-Y")
        po = sent_po_factory({item_x.id: 10})

        with pytest.raises(QuantityMismatchError, match="not on purchase order"):
            asn_service.create_asn(po.id, receiving.id, asn_lines({other.id: 5}))

    def test_overship_tolerance(self, asn_service, sent_po_factory, item_x, receiving):
        """Test up to 10% over the ordered quantity may be shipped"""
        po = sent_po_factory({item_x.id: 100})
        asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 105}))

        with pytest.raises(QuantityMismatchError) as exc_info:
            asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 6}))

        assert exc_info.value.remaining == 5

    def test_unknown_po(self, asn_service, item_x, receiving):
        """Test a missing PO is not found"""
        with pytest.raises(EntityNotFoundError, match="PurchaseOrder"):
            asn_service.create_asn(404, receiving.id, asn_lines({item_x.id: 1}))


class TestASNArrival:
    """Test arrival into the holding location"""

    def test_arrival_receives_stock(self, helper, asn_service, sent_po_factory, item_x):
        """Test an empty 100-unit receiving location takes an arrival of 40"""
        holding = helper.holding("RECV-A", max_capacity=100)
        po = sent_po_factory({item_x.id: 40})
        asn = asn_service.create_asn(po.id, holding.id, asn_lines({item_x.id: 40}))
        asn_service.update_status(asn.id, ASNStatus.ON_DELIVERY)

        arrived = asn_service.update_status(asn.id, ASNStatus.ARRIVED)

        assert arrived.status == ASNStatus.ARRIVED
        assert arrived.actual_arrival_date is not None
        assert arrived.details[0].remaining_quantity == 40
        assert helper.location_state(holding.id).current_capacity == 40
        record = helper.record(item_x.id, holding.id)
        assert record.quantity == 40
        assert record.status == StockStatus.AVAILABLE.value
        assert record.source_reference == asn.asn_number
        assert record.last_cost_price == Decimal("12.50")
        movements = helper.movements(item_x.id)
        assert [m.movement_type for m in movements] == [MovementType.INBOUND.value]
        helper.assert_invariants()

    def test_arrival_requires_on_delivery(self, helper, asn_service, sent_po_factory, item_x, receiving):
        """Test Pending cannot jump straight to Arrived"""
        po = sent_po_factory({item_x.id: 10})
        asn = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

        with pytest.raises(InvalidTransitionError):
            asn_service.update_status(asn.id, ASNStatus.ARRIVED)

        assert asn_service.get(asn.id).status == ASNStatus.PENDING
        assert helper.quantity(item_x.id, receiving.id) == 0

    def test_arrival_is_all_or_nothing(self, helper, asn_service, sent_po_factory, item_x):
        """Test a shipment that no longer fits is not partially received"""
        other = helper.item("ITEM-Y")
        holding = helper.holding("RECV-A", max_capacity=50)
        po = sent_po_factory({item_x.id: 20, other.id: 20})
        asn = asn_service.create_asn(po.id, holding.id, asn_lines({item_x.id: 20, other.id: 20}))
        asn_service.update_status(asn.id, ASNStatus.ON_DELIVERY)
        # something else fills the receiving location meanwhile
        helper.stock(helper.item("ITEM-Z"), holding, 20)
        before = helper.snapshot()

        with pytest.raises(CapacityExceededError) as exc_info:
            asn_service.update_status(asn.id, ASNStatus.ARRIVED)

        assert (exc_info.value.available, exc_info.value.required) == (30, 40)
        assert helper.snapshot() == before
        assert asn_service.get(asn.id).status == ASNStatus.ON_DELIVERY

    def test_arrival_into_held_record_rejected(self, helper, asn_service, sent_po_factory, item_x, receiving):
        """Test stock is not merged into a quarantined record in the receiving location"""
        po = sent_po_factory({item_x.id: 10})
        asn = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))
        asn_service.update_status(asn.id, ASNStatus.ON_DELIVERY)
        helper.stock(item_x, receiving, 3, status=StockStatus.QUARANTINE)

        with pytest.raises(StockStatusConflictError):
            asn_service.update_status(asn.id, ASNStatus.ARRIVED)

        assert helper.quantity(item_x.id, receiving.id) == 3

    def test_processed_requires_putaway(self, arrived_asn_factory, asn_service, item_x, receiving):
        """Test an ASN with stock still in holding cannot be closed"""
        asn = arrived_asn_factory({item_x.id: 10}, receiving)

        with pytest.raises(QuantityMismatchError) as exc_info:
            asn_service.update_status(asn.id, ASNStatus.PROCESSED)

        assert exc_info.value.remaining == 10


class TestASNCancellation:
    """Test cancellation and purchase order rollback"""

    def test_cancel_rolls_po_back(self, asn_service, po_service, sent_po_factory, item_x, receiving):
        """Test cancelling the only ASN returns its PO to Sent"""
        po = sent_po_factory({item_x.id: 10})
        asn = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

        cancelled = asn_service.update_status(asn.id, ASNStatus.CANCELLED, reason="carrier lost")

        assert cancelled.status == ASNStatus.CANCELLED
        assert cancelled.cancellation_reason == "carrier lost"
        assert po_service.get(po.id).status == PurchaseOrderStatus.SENT

    def test_cancel_keeps_po_received_with_other_asn(self, asn_service, po_service, sent_po_factory,
                                                     item_x, receiving):
        """Test the PO stays Received while another ASN is active"""
        po = sent_po_factory({item_x.id: 20})
        first = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))
        asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

        asn_service.cancel(first.id)

        assert po_service.get(po.id).status == PurchaseOrderStatus.RECEIVED

    def test_cancelled_quantity_can_be_reshipped(self, asn_service, sent_po_factory, item_x, receiving):
        """Test a cancelled ASN no longer counts towards the ordered quantity"""
        po = sent_po_factory({item_x.id: 10})
        first = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))
        asn_service.cancel(first.id)

        replacement = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))

        assert replacement.status == ASNStatus.PENDING

    def test_cannot_cancel_after_dispatch(self, asn_service, sent_po_factory, item_x, receiving):
        """Test an ASN on delivery cannot be cancelled"""
        po = sent_po_factory({item_x.id: 10})
        asn = asn_service.create_asn(po.id, receiving.id, asn_lines({item_x.id: 10}))
        asn_service.update_status(asn.id, ASNStatus.ON_DELIVERY)

        with pytest.raises(InvalidTransitionError):
            asn_service.cancel(asn.id)


class TestInboundIntoStorage:
    """Test an arrival booked straight into a Storage location"""

    def test_storage_location_receives_arrival(self, helper, item_x, session_factory):
        """Test Location A, Storage 0/100, receives 40 units as Available"""
        location_a = helper.location("A", max_capacity=100)

        with session_scope(session_factory) as session:
            StockTransferOperator().transfer(
                session, COMPANY_ID, item_x.id, None, location_a.id, 40, reference="ASN-20240101-001"
            )

        assert helper.location_state(location_a.id).current_capacity == 40
        assert helper.record(item_x.id, location_a.id).status == StockStatus.AVAILABLE.value
        assert helper.count(StockMovement) == 1
