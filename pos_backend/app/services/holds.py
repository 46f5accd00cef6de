from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from pos_backend.app.models.hold import HOLD_STATUS, InvoiceHold, InvoiceHoldLine
from pos_backend.app.schemas.hold import HoldCreate
from pos_backend.app.schemas.invoice import InvoiceCreate, InvoiceLineIn
from pos_backend.app.services.aggregates import build_aggregates
from pos_backend.app.services.audit import log_action
from pos_backend.app.services.customer_resolver import existing_customer_id
from pos_backend.app.services.errors import WARNING_HOLD, NotFoundError, SideEffectWarning
from pos_backend.app.services.invoice_engine import SaveResult, compose_invoice_timestamp, save_invoice
from pos_backend.app.services.operator import Operator
from pos_backend.app.services.pricing import normalize_lines

logger = logging.getLogger(__name__)

HOLD_LIST_LIMIT = 200


def _hold_to_dict(hold: InvoiceHold) -> dict[str, Any]:
    return {
        "id": hold.id,
        "invoice_number": hold.invoice_number,
        "date_time": hold.date_time,
        "customer_id": hold.customer_id,
        "customer_name": hold.customer_name,
        "net_total": hold.net_total,
        "total_discount": hold.total_discount,
        "total_cost": hold.total_cost,
        "total_profit": hold.total_profit,
        "cash_payment": hold.cash_payment,
        "card_payment": hold.card_payment,
        "card_info": hold.card_info,
        "user_name": hold.user_name,
        "remark": hold.remark,
        "status": hold.status,
        "created_at": hold.created_at,
    }


def _line_to_dict(line: InvoiceHoldLine) -> dict[str, Any]:
    return {
        "id": line.id,
        "item_id": line.item_id,
        "item_name": line.item_name,
        "barcode": line.barcode,
        "qty": line.qty,
        "warranty": line.warranty,
        "cost": line.cost,
        "market_price": line.market_price,
        "selling_price": line.selling_price,
        "discount": line.discount,
        "total_value": line.total_value,
        "other": line.other,
    }


def _load(db: Session, hold_id: int) -> InvoiceHold:
    hold = db.scalar(
        select(InvoiceHold)
        .options(selectinload(InvoiceHold.lines))
        .where(InvoiceHold.id == hold_id)
    )
    if hold is None:
        raise NotFoundError(f"Hold {hold_id} not found")
    return hold


# ─── Hold store ───────────────────────────────────────────────────────────────


def save_hold(
    db: Session,
    payload: HoldCreate,
    operator: Operator,
    *,
    now: datetime | None = None,
) -> int:
    """Park an unfinished cart.

    Lines are normalized exactly like invoice lines, but there is no payment
    check, no stock movement and no ledger posting.
    """
    lines = normalize_lines(payload.items)
    agg = build_aggregates(lines, payload.card_info)
    date_time = compose_invoice_timestamp(payload.date, now) if payload.date else None

    hold = InvoiceHold(
        invoice_number=(payload.invoice_number or "").strip() or None,
        date_time=date_time,
        customer_id=existing_customer_id(db, payload.customer_id),
        customer_name=(payload.customer_name or "").strip() or None,
        net_total=agg.net_total,
        total_discount=agg.total_discount,
        total_cost=agg.total_cost,
        total_profit=agg.total_profit,
        cash_payment=payload.cash_payment,
        card_payment=payload.card_payment,
        card_info=(payload.card_info or "").strip() or None,
        user_name=operator.name,
        remark=payload.remark,
        status=HOLD_STATUS,
    )
    for line in lines:
        hold.lines.append(
            InvoiceHoldLine(
                item_id=line.item_id,
                item_name=line.item_name,
                barcode=line.barcode,
                qty=line.qty,
                warranty=line.warranty,
                cost=line.cost,
                market_price=line.market_price,
                selling_price=line.selling_price,
                discount=line.discount,
                total_value=line.total_value,
                other=line.other,
            )
        )
    db.add(hold)
    db.flush()

    log_action(
        db,
        operator=operator,
        action="HOLD_SAVED",
        resource_type="invoice_hold",
        resource_id=str(hold.id),
        changes={"lines": len(lines), "net_total": str(agg.net_total)},
    )
    db.commit()
    logger.info("Hold %s saved by %s (%d lines)", hold.id, operator.name, len(lines))
    return hold.id


def list_holds(db: Session, limit: int = HOLD_LIST_LIMIT) -> list[dict[str, Any]]:
    """Newest holds first."""
    holds = db.scalars(
        select(InvoiceHold)
        .order_by(InvoiceHold.created_at.desc(), InvoiceHold.id.desc())
        .limit(limit)
    ).all()
    return [_hold_to_dict(h) for h in holds]


def get_hold(db: Session, hold_id: int) -> dict[str, Any]:
    hold = _load(db, hold_id)
    return {"hold": _hold_to_dict(hold), "items": [_line_to_dict(l) for l in hold.lines]}


def delete_hold(db: Session, hold_id: int, operator: Operator) -> None:
    hold = _load(db, hold_id)
    db.delete(hold)
    log_action(
        db,
        operator=operator,
        action="HOLD_DELETED",
        resource_type="invoice_hold",
        resource_id=str(hold_id),
    )
    db.commit()
    logger.info("Hold %s deleted by %s", hold_id, operator.name)


# ─── Convert ──────────────────────────────────────────────────────────────────


def hold_to_invoice_payload(
    hold: InvoiceHold,
    *,
    invoice_number: str | None = None,
    customer_name: str | None = None,
    now: datetime | None = None,
) -> InvoiceCreate:
    date_time = hold.date_time or now or datetime.now()
    items = [
        InvoiceLineIn(
            item_id=line.item_id,
            barcode=line.barcode,
            item_name=line.item_name,
            qty=line.qty,
            warranty=line.warranty,
            cost=line.cost,
            market_price=line.market_price,
            selling_price=line.selling_price,
            discount=line.discount,
            total_value=line.total_value,
            other=line.other,
        )
        for line in hold.lines
    ]
    return InvoiceCreate(
        invoice_number=invoice_number or hold.invoice_number,
        date=date_time.date().isoformat(),
        customer_id=hold.customer_id,
        customer_name=customer_name or hold.customer_name,
        items=items,
        cash_payment=hold.cash_payment,
        card_payment=hold.card_payment,
        card_info=hold.card_info,
        status="completed",
    )


def convert_hold(
    db: Session,
    hold_id: int,
    operator: Operator,
    *,
    invoice_number: str | None = None,
    customer_name: str | None = None,
    now: datetime | None = None,
) -> SaveResult:
    """Turn a hold into a committed invoice, then drop the hold.

    The invoice goes through the full save path (payment check included).
    Removing the hold happens after the invoice committed; if that fails the
    invoice stands and a ``hold`` warning is returned.
    """
    hold = _load(db, hold_id)
    payload = hold_to_invoice_payload(
        hold, invoice_number=invoice_number, customer_name=customer_name, now=now
    )
    result = save_invoice(db, payload, operator, now=now)

    try:
        hold = _load(db, hold_id)
        db.delete(hold)
        log_action(
            db,
            operator=operator,
            action="HOLD_CONVERTED",
            resource_type="invoice_hold",
            resource_id=str(hold_id),
            changes={"invoice_id": result.invoice_id},
        )
        db.commit()
    except (SQLAlchemyError, NotFoundError) as exc:
        db.rollback()
        logger.exception("Hold %s not removed after conversion to invoice %s", hold_id, result.invoice_id)
        result.warnings.append(
            SideEffectWarning(WARNING_HOLD, f"Hold {hold_id} was not removed: {exc}")
        )
    else:
        logger.info("Hold %s converted to invoice %s", hold_id, result.invoice_id)
    return result
