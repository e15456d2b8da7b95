"""
Inventory invariant checks

Used by the health surface and the test-suite to prove that capacity
counters agree with the stock they describe.
"""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms.models import Location, StockRecord, StockStatus


@dataclass
class InvariantViolation:
    code: str
    message: str
    location_id: Optional[int] = None
    stock_record_id: Optional[int] = None


def find_violations(session: Session, company_id: int) -> List[InvariantViolation]:
    violations: List[InvariantViolation] = []

    totals = dict(
        session.execute(
            select(StockRecord.location_id, func.sum(StockRecord.quantity))
            .where(StockRecord.company_id == company_id)
            .group_by(StockRecord.location_id)
        ).all()
    )

    locations = session.execute(
        select(Location).where(Location.company_id == company_id).order_by(Location.id)
    ).scalars()
    for location in locations:
        held = int(totals.get(location.id) or 0)
        if location.current_capacity != held:
            violations.append(InvariantViolation(
                "CAPACITY_MISMATCH",
                f"Location {location.code} records {location.current_capacity} units but holds {held}",
                location_id=location.id,
            ))
        if location.current_capacity < 0 or location.current_capacity > location.max_capacity:
            violations.append(InvariantViolation(
                "CAPACITY_OUT_OF_BOUNDS",
                f"Location {location.code} at {location.current_capacity}/{location.max_capacity}",
                location_id=location.id,
            ))
        if location.is_full != (location.current_capacity >= location.max_capacity):
            violations.append(InvariantViolation(
                "FULL_FLAG_STALE",
                f"Location {location.code} is_full={location.is_full}",
                location_id=location.id,
            ))

    records = session.execute(
        select(StockRecord).where(StockRecord.company_id == company_id).order_by(StockRecord.id)
    ).scalars()
    for record in records:
        if record.quantity < 0:
            violations.append(InvariantViolation(
                "NEGATIVE_QUANTITY",
                f"Stock record {record.id} holds {record.quantity}",
                location_id=record.location_id,
                stock_record_id=record.id,
            ))
        elif record.quantity == 0 and record.status != StockStatus.EMPTY.value:
            violations.append(InvariantViolation(
                "EMPTY_STATUS",
                f"Stock record {record.id} has no stock but is {record.status}",
                location_id=record.location_id,
                stock_record_id=record.id,
            ))

    return violations
