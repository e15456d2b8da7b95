"""
Document number generation

PO-20240115-001, ASN-20240115-001, SO-20240115-001, PKG-2024-01-15-001.
Sequences restart every day per company and document type.
"""
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from wms.models import ASN, Picking, PurchaseOrder, SalesOrder

COMPACT_DATE = "%Y%m%d"
DASHED_DATE = "%Y-%m-%d"


def next_document_number(session: Session, model, column, company_id: int, prefix: str,
                         on: Optional[date] = None, date_format: str = COMPACT_DATE) -> str:
    stem = f"{prefix}-{(on or date.today()).strftime(date_format)}-"
    latest = session.execute(
        select(column)
        .where(model.company_id == company_id, column.like(f"{stem}%"))
        .order_by(func.length(column).desc(), column.desc())
        .limit(1)
    ).scalar_one_or_none()

    sequence = int(latest.rsplit("-", 1)[1]) + 1 if latest else 1
    return f"{stem}{sequence:03d}"


def next_po_number(session: Session, company_id: int, on: Optional[date] = None) -> str:
    return next_document_number(session, PurchaseOrder, PurchaseOrder.po_number, company_id, "PO", on)


def next_asn_number(session: Session, company_id: int, on: Optional[date] = None) -> str:
    return next_document_number(session, ASN, ASN.asn_number, company_id, "ASN", on)


def next_so_number(session: Session, company_id: int, on: Optional[date] = None) -> str:
    return next_document_number(session, SalesOrder, SalesOrder.so_number, company_id, "SO", on)


def next_picking_number(session: Session, company_id: int, on: Optional[date] = None) -> str:
    return next_document_number(session, Picking, Picking.picking_number, company_id, "PKG", on,
                                date_format=DASHED_DATE)
