"""
Tests for the stock transfer operator
Conservation, all-or-nothing validation and stock record lifecycle
"""
from decimal import Decimal

import pytest

from wms.core.database import session_scope
from wms.core.exceptions import (
    CapacityExceededError, EntityNotFoundError, InsufficientStockError, InvalidQuantityError,
    InvalidTransferError, LocationInactiveError, StockStatusConflictError
)
from wms.models import MovementType, StockMovement, StockRecord, StockStatus
from wms.services.inventory import StockTransferOperator, WeightedAverageCosting, build_transfer_operator

from conftest import COMPANY_ID


def transfer(session_factory, operator=None, **kwargs):
    """Run one transfer in its own transaction"""
    operator = operator or StockTransferOperator()
    with session_scope(session_factory) as session:
        outcome = operator.transfer(session, COMPANY_ID, **kwargs)
        return outcome.movement_type


class TestStockTransferOperator:
    """Test moves between locations"""

    def test_inbound_creates_available_record(self, helper, item_x, session_factory):
        """Test stock arriving from outside creates a record with its cost and reference"""
        receiving = helper.holding("RECV-01")

        movement_type = transfer(
            session_factory, item_id=item_x.id, source_location_id=None,
            destination_location_id=receiving.id, quantity=50,
            reference="ASN-20240101-001", unit_cost=Decimal("12.50"),
        )

        assert movement_type == MovementType.INBOUND.value
        record = helper.record(item_x.id, receiving.id)
        assert record.quantity == 50
        assert record.status == StockStatus.AVAILABLE.value
        assert record.source_reference == "ASN-20240101-001"
        assert record.last_cost_price == Decimal("12.50")
        assert helper.location_state(receiving.id).current_capacity == 50
        helper.assert_invariants()

    def test_transfer_between_locations(self, helper, item_x, session_factory):
        """Test a move decrements the source and increments the destination"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 30, cost=Decimal("8.00"))

        movement_type = transfer(
            session_factory, item_id=item_x.id, source_location_id=source.id,
            destination_location_id=destination.id, quantity=12,
        )

        assert movement_type == MovementType.TRANSFER.value
        assert helper.quantity(item_x.id, source.id) == 18
        assert helper.quantity(item_x.id, destination.id) == 12
        assert helper.location_state(source.id).current_capacity == 18
        assert helper.location_state(destination.id).current_capacity == 12
        # cost travels with the stock
        assert helper.record(item_x.id, destination.id).last_cost_price == Decimal("8.00")
        helper.assert_invariants()

    def test_outbound_removes_stock(self, helper, item_x, session_factory):
        """Test stock leaving the warehouse only touches the source"""
        holding = helper.holding("SHIP-01")
        helper.stock(item_x, holding, 20)

        movement_type = transfer(
            session_factory, item_id=item_x.id, source_location_id=holding.id,
            destination_location_id=None, quantity=5, reference="SO-20240101-001",
        )

        assert movement_type == MovementType.OUTBOUND.value
        assert helper.quantity(item_x.id, holding.id) == 15
        helper.assert_invariants()

    def test_total_quantity_is_conserved(self, helper, item_x, session_factory):
        """Test internal moves never change the warehouse total"""
        locations = [helper.location(f"A-0{i}") for i in range(1, 4)]
        helper.stock(item_x, locations[0], 60)

        transfer(session_factory, item_id=item_x.id, source_location_id=locations[0].id,
                 destination_location_id=locations[1].id, quantity=25)
        transfer(session_factory, item_id=item_x.id, source_location_id=locations[1].id,
                 destination_location_id=locations[2].id, quantity=10)
        transfer(session_factory, item_id=item_x.id, source_location_id=locations[0].id,
                 destination_location_id=locations[2].id, quantity=35)

        assert helper.total_quantity(item_x.id) == 60
        assert helper.quantity(item_x.id, locations[2].id) == 45
        helper.assert_invariants()

    def test_source_drained_to_zero_is_kept_as_empty(self, helper, item_x, session_factory):
        """Test a record emptied by a move is retained with status Empty"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 10)

        transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                 destination_location_id=destination.id, quantity=10)

        record = helper.record(item_x.id, source.id)
        assert record is not None
        assert record.quantity == 0
        assert record.status == StockStatus.EMPTY.value
        assert helper.location_state(source.id).current_capacity == 0
        helper.assert_invariants()

    def test_refill_of_empty_record_takes_incoming_values(self, helper, item_x, session_factory):
        """Test refilling an Empty record resets reference and cost"""
        location = helper.location("A-01")
        helper.stock(item_x, location, 0, status=StockStatus.EMPTY, cost=Decimal("3.00"), reference="OLD-REF")

        transfer(session_factory, item_id=item_x.id, source_location_id=None,
                 destination_location_id=location.id, quantity=7,
                 reference="NEW-REF", unit_cost=Decimal("9.00"))

        record = helper.record(item_x.id, location.id)
        assert record.quantity == 7
        assert record.status == StockStatus.AVAILABLE.value
        assert record.source_reference == "NEW-REF"
        assert record.last_cost_price == Decimal("9.00")

    def test_merge_into_available_record_keeps_cost(self, helper, item_x, session_factory):
        """Test the carried-forward policy leaves an existing record's cost alone"""
        location = helper.location("A-01")
        helper.stock(item_x, location, 10, cost=Decimal("5.00"))

        transfer(session_factory, item_id=item_x.id, source_location_id=None,
                 destination_location_id=location.id, quantity=10, unit_cost=Decimal("15.00"))

        record = helper.record(item_x.id, location.id)
        assert record.quantity == 20
        assert record.last_cost_price == Decimal("5.00")

    def test_one_record_per_item_and_location(self, helper, item_x, session_factory):
        """Test repeated arrivals merge into the same row"""
        location = helper.location("A-01")
        for _ in range(3):
            transfer(session_factory, item_id=item_x.id, source_location_id=None,
                     destination_location_id=location.id, quantity=4)

        assert helper.count(StockRecord) == 1
        assert helper.quantity(item_x.id, location.id) == 12

    def test_movement_journal_entries(self, helper, item_x, session_factory):
        """Test every transfer writes one movement row"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 10)

        transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                 destination_location_id=destination.id, quantity=4, reference="MOVE-1")

        movements = helper.movements(item_x.id)
        assert len(movements) == 1
        assert movements[0].movement_type == MovementType.TRANSFER.value
        assert movements[0].source_location_id == source.id
        assert movements[0].destination_location_id == destination.id
        assert movements[0].quantity == 4
        assert movements[0].reference == "MOVE-1"


class TestStockTransferRejections:
    """Test failed transfers change nothing"""

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_non_positive_quantity(self, helper, item_x, session_factory, quantity):
        """Test zero and negative quantities are rejected"""
        location = helper.location("A-01")

        with pytest.raises(InvalidQuantityError):
            transfer(session_factory, item_id=item_x.id, source_location_id=None,
                     destination_location_id=location.id, quantity=quantity)

        assert helper.count(StockRecord) == 0

    def test_same_source_and_destination(self, helper, item_x, session_factory):
        """Test a move onto itself is rejected"""
        location = helper.location("A-01")
        helper.stock(item_x, location, 10)

        with pytest.raises(InvalidTransferError):
            transfer(session_factory, item_id=item_x.id, source_location_id=location.id,
                     destination_location_id=location.id, quantity=5)

        assert helper.quantity(item_x.id, location.id) == 10

    def test_no_locations(self, item_x, session_factory):
        """Test a transfer needs at least one side"""
        with pytest.raises(InvalidTransferError):
            transfer(session_factory, item_id=item_x.id, source_location_id=None,
                     destination_location_id=None, quantity=5)

    def test_unknown_item(self, helper, session_factory):
        """Test an item the company does not own is not found"""
        location = helper.location("A-01")

        with pytest.raises(EntityNotFoundError, match="Item"):
            transfer(session_factory, item_id=12345, source_location_id=None,
                     destination_location_id=location.id, quantity=5)

    def test_insufficient_stock_reports_quantities(self, helper, item_x, session_factory):
        """Test moving more than the source holds reports available and required"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 30)
        before = helper.snapshot()

        with pytest.raises(InsufficientStockError) as exc_info:
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=31)

        assert exc_info.value.available == 30
        assert exc_info.value.required == 31
        assert helper.snapshot() == before
        assert helper.count(StockMovement) == 0

    def test_missing_source_record(self, helper, item_x, session_factory):
        """Test a source without the item has nothing available"""
        source = helper.location("A-01")
        destination = helper.location("A-02")

        with pytest.raises(InsufficientStockError) as exc_info:
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=1)

        assert exc_info.value.available == 0

    @pytest.mark.parametrize("status", [StockStatus.DAMAGED, StockStatus.QUARANTINE, StockStatus.BLOCKED,
                                        StockStatus.RESERVED])
    def test_held_stock_cannot_leave(self, helper, item_x, session_factory, status):
        """Test stock in a non-Available status counts as zero"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 30, status=status)
        before = helper.snapshot()

        with pytest.raises(InsufficientStockError) as exc_info:
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=5)

        assert exc_info.value.available == 0
        assert helper.snapshot() == before

    def test_destination_capacity_leaves_source_untouched(self, helper, item_x, session_factory):
        """Test a full destination fails the move before the source is decremented"""
        source = helper.location("A-01")
        destination = helper.location("A-02", max_capacity=10)
        helper.stock(item_x, source, 30)
        before = helper.snapshot()

        with pytest.raises(CapacityExceededError) as exc_info:
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=15)

        assert exc_info.value.available == 10
        assert exc_info.value.required == 15
        assert helper.snapshot() == before

    def test_inactive_destination(self, helper, item_x, session_factory):
        """Test an inactive destination refuses stock"""
        source = helper.location("A-01")
        destination = helper.location("A-02", is_active=False)
        helper.stock(item_x, source, 30)

        with pytest.raises(LocationInactiveError):
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=5)

        assert helper.quantity(item_x.id, source.id) == 30

    def test_inactive_source(self, helper, item_x, session_factory):
        """Test stock cannot leave an inactive location"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 30)
        helper.deactivate(source)

        with pytest.raises(LocationInactiveError):
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=5)

    def test_destination_on_hold_refuses_merge(self, helper, item_x, session_factory):
        """Test stock is never merged into a Damaged record"""
        source = helper.location("A-01")
        destination = helper.location("A-02")
        helper.stock(item_x, source, 30)
        helper.stock(item_x, destination, 5, status=StockStatus.DAMAGED)
        before = helper.snapshot()

        with pytest.raises(StockStatusConflictError):
            transfer(session_factory, item_id=item_x.id, source_location_id=source.id,
                     destination_location_id=destination.id, quantity=5)

        assert helper.snapshot() == before


class TestWeightedAverageCosting:
    """Test the weighted average costing policy"""

    def test_policy_selection(self):
        """Test the configured policy picks the operator"""
        assert isinstance(build_transfer_operator("weighted_average"), WeightedAverageCosting)
        assert isinstance(build_transfer_operator("carry_forward"), StockTransferOperator)

    def test_merge_averages_cost(self, helper, item_x, session_factory):
        """Test merged stock is priced at the quantity-weighted average"""
        location = helper.location("A-01")
        helper.stock(item_x, location, 10, cost=Decimal("5.00"))

        transfer(session_factory, operator=build_transfer_operator("weighted_average"),
                 item_id=item_x.id, source_location_id=None, destination_location_id=location.id,
                 quantity=30, unit_cost=Decimal("9.00"))

        record = helper.record(item_x.id, location.id)
        assert record.quantity == 40
        assert record.last_cost_price == Decimal("8.0000")

    def test_new_record_takes_incoming_cost(self, helper, item_x, session_factory):
        """Test a first arrival is priced at the incoming cost"""
        location = helper.location("A-01")

        transfer(session_factory, operator=build_transfer_operator("weighted_average"),
                 item_id=item_x.id, source_location_id=None, destination_location_id=location.id,
                 quantity=5, unit_cost=Decimal("4.25"))

        assert helper.record(item_x.id, location.id).last_cost_price == Decimal("4.25")
