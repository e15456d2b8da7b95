"""
Putaway Orchestrator
Moves received stock from an ASN's holding location into Storage and
tracks per-line putaway progress
"""
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms.core.exceptions import (
    BusinessLogicError, CapacityExceededError, EntityNotFoundError, InvalidQuantityError,
    InvalidTransitionError, LocationCategoryMismatchError, QuantityMismatchError, ValidationError
)
from wms.models import (
    ASN, ASNDetail, ASNStatus, Location, LocationCategory, StockRecord, StockStatus
)
from wms.schemas import (
    ASNLineRead, AutoPutawayLine, AutoPutawayResult, LocationRead, PutawayResult, TransferResult
)
from wms.services.base import EngineService
from wms.services.documents.state_machines import ASN_MACHINE

logger = logging.getLogger(__name__)


class PutawayService(EngineService):
    """Putaway against ASN lines"""

    def process_putaway(self, asn_detail_id: int, quantity: int, target_location_id: int) -> PutawayResult:
        """
        Put ``quantity`` of an ASN line away into a Storage location

        Fails with QuantityMismatchError if more than the line's remaining
        quantity is requested, or CapacityExceededError if the target has
        no room. When the last line is fully put away the ASN is Processed.
        """
        def work(session):
            return self._put_away(session, asn_detail_id, quantity, target_location_id)

        return self._run(work, self._present)

    def _present(self, result) -> PutawayResult:
        asn, detail, outcome = result
        return PutawayResult(
            asn_id=asn.id,
            asn_status=asn.status,
            detail=ASNLineRead.model_validate(detail),
            transfer=TransferResult.from_outcome(outcome),
        )

    def _put_away(self, session: Session, asn_detail_id: int, quantity: int, target_location_id: int):
        asn_id = self._detail_parent_id(session, asn_detail_id)
        asn = self._lock(session, ASN, asn_id)
        detail = self._lock_child(session, ASNDetail, ASN, ASNDetail.asn_id, asn_detail_id)

        if asn.status != ASNStatus.ARRIVED.value:
            raise InvalidTransitionError("ASN", asn.status, "PutAway")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)
        if quantity > detail.remaining_quantity:
            raise QuantityMismatchError(quantity, detail.remaining_quantity)

        locations = self.ledger.lock_locations(
            session, self.company_id, [asn.holding_location_id, target_location_id]
        )
        target = locations[target_location_id]
        if target.category != LocationCategory.STORAGE.value:
            raise LocationCategoryMismatchError(LocationCategory.STORAGE.value, target.category, target.id)

        outcome = self.operator.transfer(
            session, self.company_id, detail.item_id,
            asn.holding_location_id, target.id, quantity,
            reference=asn.asn_number,
        )
        detail.record_put_away(quantity)

        if all(line.remaining_quantity == 0 for line in asn.details):
            ASN_MACHINE.transition(asn, ASNStatus.PROCESSED)
            logger.info(f"ASN {asn.asn_number} fully put away and processed")

        logger.info(f"Put away {quantity} of ASN {asn.asn_number} line {detail.id} into {target.code}; "
                    f"{detail.remaining_quantity} remaining")
        return asn, detail, outcome

    def _detail_parent_id(self, session: Session, asn_detail_id: int) -> int:
        asn_id = session.execute(
            select(ASNDetail.asn_id)
            .join(ASN, ASNDetail.asn_id == ASN.id)
            .where(ASNDetail.id == asn_detail_id, ASN.company_id == self.company_id)
        ).scalar_one_or_none()
        if asn_id is None:
            raise EntityNotFoundError("ASNDetail", asn_detail_id)
        return asn_id

    def _suggest(self, session: Session, item_id: int, quantity: int) -> Optional[Location]:
        """
        Active Storage location with room for ``quantity``; locations already
        holding the item come first, then the least utilised
        """
        candidates = session.execute(
            select(Location).where(
                Location.company_id == self.company_id,
                Location.category == LocationCategory.STORAGE.value,
                Location.is_active.is_(True),
                Location.max_capacity - Location.current_capacity >= quantity,
            )
        ).scalars().all()

        statuses = dict(session.execute(
            select(StockRecord.location_id, StockRecord.status).where(
                StockRecord.company_id == self.company_id,
                StockRecord.item_id == item_id,
            )
        ).all())

        def rank(location: Location):
            status = statuses.get(location.id)
            holds_item = status == StockStatus.AVAILABLE.value
            return (0 if holds_item else 1, location.utilization_percentage, location.id)

        receivable = [
            location for location in candidates
            if statuses.get(location.id) in (None, StockStatus.AVAILABLE.value, StockStatus.EMPTY.value)
        ]
        return min(receivable, key=rank, default=None)

    def suggest_location(self, item_id: int, quantity: int) -> Optional[LocationRead]:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)

        def present(location):
            return LocationRead.model_validate(location) if location is not None else None

        return self._run(lambda session: self._suggest(session, item_id, quantity), present)

    def auto_putaway(self, asn_id: int) -> AutoPutawayResult:
        """
        Put every outstanding line of an Arrived ASN into suggested locations

        Each line runs in its own transaction, so one line failing (no room,
        inactive location) leaves the lines already put away committed. The
        result lists what happened to every line.
        """
        def outstanding(session):
            asn = self._get(session, ASN, asn_id)
            if asn.status != ASNStatus.ARRIVED.value:
                raise InvalidTransitionError("ASN", asn.status, "PutAway")
            return [(d.id, d.item_id, d.remaining_quantity) for d in asn.details if d.remaining_quantity > 0]

        lines = []
        for detail_id, item_id, remaining in self._run(outstanding):
            def work(session, detail_id=detail_id, item_id=item_id, remaining=remaining):
                location = self._suggest(session, item_id, remaining)
                if location is None:
                    raise CapacityExceededError(self._largest_free(session), remaining)
                return self._put_away(session, detail_id, remaining, location.id)

            try:
                result = self._run(work, self._present)
            except (ValidationError, BusinessLogicError) as e:
                logger.warning(f"Auto putaway skipped ASN line {detail_id}: {e}")
                lines.append(AutoPutawayLine(
                    asn_detail_id=detail_id, item_id=item_id, error=e.code, detail=str(e)
                ))
                continue
            lines.append(AutoPutawayLine(
                asn_detail_id=detail_id,
                item_id=item_id,
                location_id=result.transfer.destination_location_id,
                quantity=result.transfer.quantity,
            ))

        status = self._run(lambda session: self._get(session, ASN, asn_id).status)
        return AutoPutawayResult(asn_id=asn_id, asn_status=status, lines=lines)

    def _largest_free(self, session: Session) -> int:
        return int(session.execute(
            select(func.coalesce(func.max(Location.max_capacity - Location.current_capacity), 0)).where(
                Location.company_id == self.company_id,
                Location.category == LocationCategory.STORAGE.value,
                Location.is_active.is_(True),
            )
        ).scalar_one())
