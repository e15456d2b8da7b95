"""
Document State Machines
Explicit transition tables for every warehouse document type
"""
from enum import Enum
from typing import Dict, Iterable, List, Tuple, Union

from wms.core.exceptions import InvalidTransitionError
from wms.models.enums import ASNStatus, PickingStatus, PurchaseOrderStatus, SalesOrderStatus

StatusValue = Union[str, Enum]


def _value(status: StatusValue) -> str:
    return status.value if isinstance(status, Enum) else str(status)


class StateMachine:
    """
    Transition table for one document type

    Transitions marked system-only are performed by the engine as a side
    effect of another operation (e.g. creating an ASN receives its PO) and
    are rejected when requested directly by a caller.
    """

    def __init__(self, document: str, transitions: Iterable[Tuple[StatusValue, StatusValue, bool]]):
        self.document = document
        self._table: Dict[Tuple[str, str], bool] = {
            (_value(current), _value(target)): system_only
            for current, target, system_only in transitions
        }

    def can_transition(self, current: StatusValue, requested: StatusValue, system: bool = False) -> bool:
        key = (_value(current), _value(requested))
        if key not in self._table:
            return False
        return system or not self._table[key]

    def assert_transition(self, current: StatusValue, requested: StatusValue, system: bool = False):
        if not self.can_transition(current, requested, system=system):
            raise InvalidTransitionError(self.document, _value(current), _value(requested))

    def transition(self, document, requested: StatusValue, system: bool = False):
        """Check and apply a status change on a document row"""
        self.assert_transition(document.status, requested, system=system)
        document.status = _value(requested)

    def targets(self, current: StatusValue, system: bool = False) -> List[str]:
        return [
            target for (source, target), system_only in self._table.items()
            if source == _value(current) and (system or not system_only)
        ]


PURCHASE_ORDER_MACHINE = StateMachine("PurchaseOrder", [
    (PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.SENT, False),
    (PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.CANCELLED, False),
    (PurchaseOrderStatus.SENT, PurchaseOrderStatus.RECEIVED, True),
    # rollback when the last active ASN is cancelled
    (PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.SENT, True),
])

ASN_MACHINE = StateMachine("ASN", [
    (ASNStatus.PENDING, ASNStatus.ON_DELIVERY, False),
    (ASNStatus.ON_DELIVERY, ASNStatus.ARRIVED, False),
    (ASNStatus.ARRIVED, ASNStatus.PROCESSED, False),
    (ASNStatus.PENDING, ASNStatus.CANCELLED, False),
])

SALES_ORDER_MACHINE = StateMachine("SalesOrder", [
    (SalesOrderStatus.PENDING, SalesOrderStatus.IN_PROGRESS, True),
    (SalesOrderStatus.IN_PROGRESS, SalesOrderStatus.PICKED, True),
    (SalesOrderStatus.PICKED, SalesOrderStatus.SHIPPED, False),
    (SalesOrderStatus.PENDING, SalesOrderStatus.CANCELLED, False),
    (SalesOrderStatus.IN_PROGRESS, SalesOrderStatus.CANCELLED, False),
])

PICKING_MACHINE = StateMachine("Picking", [
    (PickingStatus.PENDING, PickingStatus.IN_PROGRESS, True),
    (PickingStatus.IN_PROGRESS, PickingStatus.COMPLETED, False),
    # only together with the parent sales order
    (PickingStatus.PENDING, PickingStatus.CANCELLED, True),
    (PickingStatus.IN_PROGRESS, PickingStatus.CANCELLED, True),
])
