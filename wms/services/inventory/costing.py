"""
Costing policies layered over the transfer operator
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from wms.core.config import settings
from .stock_transfer import StockTransferOperator, TransferOutcome

logger = logging.getLogger(__name__)

COST_PLACES = Decimal("0.0001")


class WeightedAverageCosting:
    """
    Re-prices a destination record at the weighted average of the stock it
    already held and the incoming stock. Transfers into an empty or new record
    keep the plain carried-forward cost.
    """

    def __init__(self, operator: StockTransferOperator):
        self.operator = operator

    @property
    def ledger(self):
        return self.operator.ledger

    @property
    def store(self):
        return self.operator.store

    def transfer(self, session, company_id, item_id, source_location_id, destination_location_id,
                 quantity, reference=None, unit_cost=None, notes=None) -> TransferOutcome:
        outcome = self.operator.transfer(
            session, company_id, item_id, source_location_id, destination_location_id,
            quantity, reference=reference, unit_cost=unit_cost, notes=notes,
        )

        record = outcome.destination_record
        if record is None or not outcome.destination_prior_quantity or outcome.unit_cost is None:
            return outcome

        prior_qty = outcome.destination_prior_quantity
        prior_cost = Decimal(outcome.destination_prior_cost or 0)
        incoming_cost = Decimal(outcome.unit_cost)
        average = (prior_cost * prior_qty + incoming_cost * quantity) / (prior_qty + quantity)
        record.last_cost_price = average.quantize(COST_PLACES, rounding=ROUND_HALF_UP)
        logger.debug(f"Weighted average cost for stock record {record.id}: {prior_cost} -> {record.last_cost_price}")
        return outcome


def build_transfer_operator(policy: Optional[str] = None):
    """Transfer operator for the configured costing policy"""
    operator = StockTransferOperator()
    if (policy or settings.COSTING_POLICY) == "weighted_average":
        return WeightedAverageCosting(operator)
    return operator
