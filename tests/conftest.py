"""
Test Configuration and Fixtures
Shared testing infrastructure for the WMS engine
"""
import os

# The application module engine is only used for the startup health check
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

import wms.models  # noqa: F401
from wms.api import deps
from wms.core.database import Base, build_engine, build_session_factory
from wms.main import app
from wms.models import (
    ASNDetail, Item, Location, LocationCategory, StockMovement, StockRecord, StockStatus
)
from wms.schemas import ASNLineCreate, PurchaseOrderLineCreate, SalesOrderLineCreate
from wms.services import (
    ASNService, InventoryService, PickingService, PurchaseOrderService, PutawayService,
    SalesOrderService
)
from wms.services.inventory import find_violations

COMPANY_ID = 1
OTHER_COMPANY_ID = 2

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)


@pytest.fixture(scope="function")
def engine(tmp_path):
    """A fresh SQLite file database per test, configured like production"""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'test_wms.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return build_session_factory(engine)


class WarehouseTestHelper:
    """Seeds master data and reads state back, one short session per call"""

    def __init__(self, session_factory: sessionmaker, company_id: int = COMPANY_ID):
        self.session_factory = session_factory
        self.company_id = company_id

    # Seeding

    def item(self, code: str = "ITEM-X", price: Decimal = Decimal("10.00"), company_id: Optional[int] = None) -> Item:
        with self.session_factory() as session:
            item = Item(
                company_id=company_id or self.company_id,
                item_code=code,
                name=f"Test item {code}",
                unit="PCS",
                purchase_price=price,
                selling_price=price * 2,
            )
            session.add(item)
            session.commit()
            return item

    def location(self, code: str, category: LocationCategory = LocationCategory.STORAGE,
                 max_capacity: int = 100, is_active: bool = True,
                 company_id: Optional[int] = None) -> Location:
        with self.session_factory() as session:
            location = Location(
                company_id=company_id or self.company_id,
                code=code,
                name=f"Location {code}",
                category=category.value,
                max_capacity=max_capacity,
                current_capacity=0,
                is_full=False,
                is_active=is_active,
            )
            session.add(location)
            session.commit()
            return location

    def holding(self, code: str = "RECV-01", max_capacity: int = 500) -> Location:
        return self.location(code, category=LocationCategory.HOLDING, max_capacity=max_capacity)

    def stock(self, item: Item, location: Location, quantity: int,
              status: StockStatus = StockStatus.AVAILABLE, cost: Decimal = Decimal("10.00"),
              last_updated: Optional[datetime] = None, reference: str = "SEED") -> StockRecord:
        """Place stock directly, keeping the location's capacity counter in step"""
        with self.session_factory() as session:
            loc = session.get(Location, location.id)
            record = StockRecord(
                company_id=loc.company_id,
                item_id=item.id,
                location_id=loc.id,
                quantity=quantity,
                status=status.value,
                last_cost_price=cost,
                source_reference=reference,
                last_updated=last_updated or BASE_TIME,
            )
            session.add(record)
            loc.current_capacity += quantity
            loc.is_full = loc.current_capacity >= loc.max_capacity
            session.commit()
            return record

    def deactivate(self, location: Location):
        with self.session_factory() as session:
            session.get(Location, location.id).is_active = False
            session.commit()

    def set_status(self, item_id: int, location_id: int, status: StockStatus):
        """Flip a record's status behind the engine's back"""
        with self.session_factory() as session:
            record = session.execute(
                select(StockRecord).where(StockRecord.item_id == item_id, StockRecord.location_id == location_id)
            ).scalar_one()
            record.status = status.value
            session.commit()

    # Reading

    def location_state(self, location_id: int) -> Location:
        with self.session_factory() as session:
            return session.get(Location, location_id)

    def record(self, item_id: int, location_id: int) -> Optional[StockRecord]:
        with self.session_factory() as session:
            return session.execute(
                select(StockRecord).where(StockRecord.item_id == item_id, StockRecord.location_id == location_id)
            ).scalar_one_or_none()

    def quantity(self, item_id: int, location_id: int) -> int:
        record = self.record(item_id, location_id)
        return record.quantity if record else 0

    def total_quantity(self, item_id: int) -> int:
        with self.session_factory() as session:
            return int(session.execute(
                select(func.coalesce(func.sum(StockRecord.quantity), 0)).where(StockRecord.item_id == item_id)
            ).scalar_one())

    def count(self, model) -> int:
        with self.session_factory() as session:
            return session.execute(select(func.count()).select_from(model)).scalar_one()

    def asn_detail(self, detail_id: int) -> ASNDetail:
        with self.session_factory() as session:
            return session.get(ASNDetail, detail_id)

    def movements(self, item_id: int) -> List[StockMovement]:
        with self.session_factory() as session:
            return session.execute(
                select(StockMovement).where(StockMovement.item_id == item_id).order_by(StockMovement.id)
            ).scalars().all()

    def snapshot(self) -> Dict[str, list]:
        """Every location counter and stock row, for before/after comparisons"""
        with self.session_factory() as session:
            locations = session.execute(select(Location).order_by(Location.id)).scalars().all()
            records = session.execute(select(StockRecord).order_by(StockRecord.id)).scalars().all()
            return {
                "locations": [(l.id, l.current_capacity, l.is_full) for l in locations],
                "records": [(r.id, r.quantity, r.status, r.source_reference) for r in records],
            }

    def violations(self, company_id: Optional[int] = None):
        with self.session_factory() as session:
            return find_violations(session, company_id or self.company_id)

    def assert_invariants(self):
        violations = self.violations()
        assert violations == [], [v.message for v in violations]


@pytest.fixture
def helper(session_factory) -> WarehouseTestHelper:
    return WarehouseTestHelper(session_factory)


@pytest.fixture
def inventory_service(session_factory) -> InventoryService:
    return InventoryService(session_factory, COMPANY_ID)


@pytest.fixture
def po_service(session_factory) -> PurchaseOrderService:
    return PurchaseOrderService(session_factory, COMPANY_ID)


@pytest.fixture
def asn_service(session_factory) -> ASNService:
    return ASNService(session_factory, COMPANY_ID)


@pytest.fixture
def putaway_service(session_factory) -> PutawayService:
    return PutawayService(session_factory, COMPANY_ID)


@pytest.fixture
def so_service(session_factory) -> SalesOrderService:
    return SalesOrderService(session_factory, COMPANY_ID)


@pytest.fixture
def picking_service(session_factory) -> PickingService:
    return PickingService(session_factory, COMPANY_ID)


@pytest.fixture
def item_x(helper) -> Item:
    return helper.item("ITEM-X")


@pytest.fixture
def receiving(helper) -> Location:
    """Holding location for inbound goods"""
    return helper.holding("RECV-01", max_capacity=500)


@pytest.fixture
def shipping(helper) -> Location:
    """Holding location for outbound goods"""
    return helper.holding("SHIP-01", max_capacity=500)


@pytest.fixture
def sent_po_factory(po_service):
    """Create a Sent purchase order for {item_id: quantity}"""
    def create(lines: Dict[int, int], price: Decimal = Decimal("10.00")):
        po = po_service.create_purchase_order(
            supplier_id=7,
            details=[PurchaseOrderLineCreate(item_id=item_id, quantity=qty, unit_price=price)
                     for item_id, qty in lines.items()],
        )
        return po_service.send(po.id)
    return create


@pytest.fixture
def arrived_asn_factory(asn_service, sent_po_factory):
    """Order, ship and receive {item_id: quantity} into a holding location"""
    def create(lines: Dict[int, int], holding: Location, price: Decimal = Decimal("12.50")):
        po = sent_po_factory(lines)
        asn = asn_service.create_asn(
            po.id, holding.id,
            [ASNLineCreate(item_id=item_id, shipped_quantity=qty, actual_price_per_item=price)
             for item_id, qty in lines.items()],
        )
        asn_service.update_status(asn.id, "OnDelivery")
        return asn_service.update_status(asn.id, "Arrived")
    return create


@pytest.fixture
def picked_order_factory(so_service, picking_service):
    """Sales order for {item_id: quantity} whose picking list is fully picked and completed"""
    def create(lines: Dict[int, int], holding: Location):
        so = so_service.create_sales_order(
            customer_id=3, holding_location_id=holding.id,
            details=[SalesOrderLineCreate(item_id=item_id, quantity=qty, unit_price=Decimal("20.00"))
                     for item_id, qty in lines.items()],
        )
        picking = picking_service.create_picking(so.id)
        for detail in picking.details:
            picking_service.process_picking(detail.id, detail.quantity_required, detail.source_location_id)
        picking_service.complete_picking(picking.id)
        return so_service.get(so.id)
    return create


@pytest.fixture(scope="function")
def client(session_factory) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test database"""
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def company_headers() -> Dict[str, str]:
    return {"X-Company-Id": str(COMPANY_ID)}


@pytest.fixture
def older():
    """Timestamps for FIFO ordering: older(0) < older(1) < ..."""
    return lambda hours: BASE_TIME + timedelta(hours=hours)
