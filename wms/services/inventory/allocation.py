"""
Allocation Validator
Answers whether a quantity of an item is available in a class of locations
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms.core.exceptions import InsufficientStockError
from wms.models import Location, LocationCategory, StockRecord, StockStatus

logger = logging.getLogger(__name__)


class AllocationValidator:
    """Availability queries over Available stock in active locations"""

    @staticmethod
    def _available_filter(company_id: int, item_id: int, category: LocationCategory):
        return (
            StockRecord.company_id == company_id,
            StockRecord.item_id == item_id,
            StockRecord.status == StockStatus.AVAILABLE.value,
            StockRecord.quantity > 0,
            Location.category == LocationCategory(category).value,
            Location.is_active.is_(True),
        )

    def available_quantity(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        category: LocationCategory = LocationCategory.STORAGE,
    ) -> int:
        stmt = (
            select(func.coalesce(func.sum(StockRecord.quantity), 0))
            .join(Location, StockRecord.location_id == Location.id)
            .where(*self._available_filter(company_id, item_id, category))
        )
        return int(session.execute(stmt).scalar_one())

    def require_available(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        required: int,
        category: LocationCategory = LocationCategory.STORAGE,
    ) -> int:
        """Raise InsufficientStockError(available, required) when short; returns available"""
        available = self.available_quantity(session, company_id, item_id, category)
        if available < required:
            logger.warning(f"Item {item_id}: {available} available in {LocationCategory(category).value}, {required} required")
            raise InsufficientStockError(available, required, item_id=item_id)
        return available

    def fifo_sources(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        category: LocationCategory = LocationCategory.STORAGE,
    ) -> List[StockRecord]:
        """Available records for an item, oldest receipt first"""
        stmt = (
            select(StockRecord)
            .join(Location, StockRecord.location_id == Location.id)
            .where(*self._available_filter(company_id, item_id, category))
            .order_by(StockRecord.last_updated.asc(), StockRecord.id.asc())
        )
        return list(session.execute(stmt).scalars())

    def suggest_sources(
        self,
        session: Session,
        company_id: int,
        item_id: int,
        quantity: int,
        allocated: Optional[Dict[int, int]] = None,
    ) -> List[Tuple[int, int]]:
        """
        Split ``quantity`` across Storage locations, oldest stock first

        Args:
            allocated: units per location already promised to earlier lines
                of the same document; updated in place

        Returns:
            [(location_id, quantity), ...] summing to ``quantity``
        """
        allocated = allocated if allocated is not None else {}
        suggestions: List[Tuple[int, int]] = []
        remaining = quantity
        total_free = 0

        for record in self.fifo_sources(session, company_id, item_id):
            free = record.quantity - allocated.get(record.location_id, 0)
            if free <= 0:
                continue
            total_free += free
            if remaining <= 0:
                continue
            take = min(free, remaining)
            suggestions.append((record.location_id, take))
            remaining -= take

        if remaining > 0:
            raise InsufficientStockError(total_free, quantity, item_id=item_id)

        for location_id, take in suggestions:
            allocated[location_id] = allocated.get(location_id, 0) + take
        return suggestions
