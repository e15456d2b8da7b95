"""
Capacity Ledger
Per-location capacity counters; the only code that changes current_capacity
"""
import logging
from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.exceptions import (
    CapacityExceededError, EntityNotFoundError, LocationInactiveError, NegativeCapacityError
)
from wms.models import Location

logger = logging.getLogger(__name__)


class CapacityLedger:
    """
    Enforces 0 <= current_capacity <= max_capacity for every location

    Locations are always locked in ascending id order so that two
    transactions touching the same pair of locations cannot deadlock.
    """

    def lock_locations(self, session: Session, company_id: int, location_ids: Iterable[int]) -> Dict[int, Location]:
        """Re-read and lock the given locations; raises if any is missing"""
        ids = sorted(set(location_ids))
        if not ids:
            return {}

        stmt = (
            select(Location)
            .where(Location.company_id == company_id, Location.id.in_(ids))
            .order_by(Location.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        found = {location.id: location for location in session.execute(stmt).scalars()}

        for location_id in ids:
            if location_id not in found:
                raise EntityNotFoundError("Location", location_id)
        return found

    def lock_location(self, session: Session, company_id: int, location_id: int) -> Location:
        return self.lock_locations(session, company_id, [location_id])[location_id]

    @staticmethod
    def check(location: Location, delta: int, require_active: bool = True):
        """Validate a capacity change without applying it"""
        if require_active and not location.is_active:
            raise LocationInactiveError(location.id)

        new_capacity = location.current_capacity + delta
        if delta > 0 and new_capacity > location.max_capacity:
            raise CapacityExceededError(
                available=location.max_capacity - location.current_capacity,
                required=delta,
                location_id=location.id,
            )
        if new_capacity < 0:
            raise NegativeCapacityError(location.current_capacity, delta, location_id=location.id)

    @staticmethod
    def apply(location: Location, delta: int):
        """Apply a capacity change already validated with check()"""
        location.current_capacity += delta
        location.is_full = location.current_capacity >= location.max_capacity

    def reserve(self, session: Session, company_id: int, location_id: int, delta: int) -> Location:
        """
        Lock the location, validate and apply ``delta``

        Args:
            delta: positive for incoming stock, negative for outgoing

        Returns:
            The updated location
        """
        location = self.lock_location(session, company_id, location_id)
        self.check(location, delta)
        self.apply(location, delta)
        logger.debug(
            f"Location {location.code}: capacity {location.current_capacity - delta} -> "
            f"{location.current_capacity}/{location.max_capacity}"
        )
        return location
