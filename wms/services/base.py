"""
Shared plumbing for engine services
"""
import logging
from typing import Callable, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from wms.core.database import run_in_transaction
from wms.core.exceptions import EntityNotFoundError
from wms.models import Item
from wms.services.inventory import (
    AllocationValidator, CapacityLedger, StockRecordStore, build_transfer_operator
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EngineService:
    """
    Base for request-scoped services

    A service is built per request with a session factory and the caller's
    company; every public operation opens its own transaction through
    run_in_transaction and returns detached read models.
    """

    def __init__(self, session_factory: Callable[[], Session], company_id: int, operator=None):
        self.session_factory = session_factory
        self.company_id = company_id
        self.operator = operator or build_transfer_operator()
        self.ledger: CapacityLedger = self.operator.ledger
        self.store: StockRecordStore = self.operator.store
        self.validator = AllocationValidator()

    def _run(self, work: Callable[[Session], T], present: Optional[Callable[[T], object]] = None):
        return run_in_transaction(self.session_factory, work, present)

    def _lock(self, session: Session, model: Type, entity_id: int, name: Optional[str] = None):
        """Re-read and lock a company-owned row"""
        stmt = (
            select(model)
            .where(model.id == entity_id, model.company_id == self.company_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise EntityNotFoundError(name or model.__name__, entity_id)
        return row

    def _lock_child(self, session: Session, model: Type, parent: Type, foreign_key, entity_id: int,
                    name: Optional[str] = None):
        """Re-read and lock a line row whose company lives on its parent"""
        stmt = (
            select(model)
            .join(parent, foreign_key == parent.id)
            .where(model.id == entity_id, parent.company_id == self.company_id)
            .with_for_update(of=model)
            .execution_options(populate_existing=True)
        )
        row = session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise EntityNotFoundError(name or model.__name__, entity_id)
        return row

    def _require_items(self, session: Session, item_ids):
        """Raise EntityNotFoundError for the first item the company does not own"""
        wanted = set(item_ids)
        known = set(session.execute(
            select(Item.id).where(Item.company_id == self.company_id, Item.id.in_(wanted))
        ).scalars())
        missing = sorted(wanted - known)
        if missing:
            raise EntityNotFoundError("Item", missing[0])

    def _get(self, session: Session, model: Type, entity_id: int, name: Optional[str] = None):
        row = session.execute(
            select(model).where(model.id == entity_id, model.company_id == self.company_id)
        ).scalar_one_or_none()
        if row is None:
            raise EntityNotFoundError(name or model.__name__, entity_id)
        return row
