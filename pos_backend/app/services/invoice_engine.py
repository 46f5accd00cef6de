"""Invoice transaction coordinator.

Turns a cart into an invoice header, its lines and one stock decrement per
line inside a single database transaction, then posts the payment split to
the cashbook once the invoice is committed.

    VALIDATING -> CUSTOMER_RESOLVING -> HEADER_INSERTED -> LINES_INSERTING
               -> STOCK_ADJUSTING -> COMMITTED
    (any state before COMMITTED) -> ROLLED_BACK

Stock decrements run in SAVEPOINTs of the invoice transaction: a failed
decrement is only a warning, while a rollback of the invoice also undoes
every decrement already applied.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos_backend.app.core.database import unit_of_work
from pos_backend.app.models.invoice import InvoiceLine
from pos_backend.app.models.item import Item
from pos_backend.app.schemas.invoice import InvoiceCreate
from pos_backend.app.services.aggregates import (
    InvoiceAggregates,
    PaymentSettlement,
    build_aggregates,
    settle_payment,
)
from pos_backend.app.services.audit import log_action
from pos_backend.app.services.customer_resolver import existing_customer_id, resolve_customer
from pos_backend.app.services.errors import (
    WARNING_SNAPSHOT,
    WARNING_STOCK,
    NotFoundError,
    SideEffectWarning,
    TransactionFailure,
    ValidationError,
)
from pos_backend.app.services.invoice_header import (
    insert_invoice_header,
    read_invoice_header,
    update_invoice_header,
)
from pos_backend.app.services.ledger import LedgerMetadata, dispatch_ledger_post, invoice_remark
from pos_backend.app.services.operator import Operator
from pos_backend.app.services.pricing import NormalizedLine, normalize_lines
from pos_backend.app.services.stock import decrement_stock, fetch_item_snapshots

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MISSING_FIELDS_MESSAGE = "Missing required fields (date, items)."


class SaveState(str, Enum):
    VALIDATING = "VALIDATING"
    CUSTOMER_RESOLVING = "CUSTOMER_RESOLVING"
    HEADER_INSERTED = "HEADER_INSERTED"
    LINES_INSERTING = "LINES_INSERTING"
    STOCK_ADJUSTING = "STOCK_ADJUSTING"
    COMMITTED = "COMMITTED"
    ROLLED_BACK = "ROLLED_BACK"


OUTCOME_COMMITTED = "COMMITTED"
OUTCOME_COMMITTED_WITH_WARNINGS = "COMMITTED_WITH_WARNINGS"


@dataclass
class SaveResult:
    invoice_id: int
    updated_items: list[dict[str, Any]]
    aggregates: InvoiceAggregates
    settlement: PaymentSettlement
    warnings: list[SideEffectWarning] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        return OUTCOME_COMMITTED_WITH_WARNINGS if self.warnings else OUTCOME_COMMITTED


@dataclass(frozen=True)
class PreparedInvoice:
    date_time: datetime
    lines: list[NormalizedLine]
    aggregates: InvoiceAggregates
    settlement: PaymentSettlement


# ─── Validation ───────────────────────────────────────────────────────────────


def compose_invoice_timestamp(value: str | None, now: datetime | None = None) -> datetime:
    """Caller's calendar date with the server's wall-clock time.

    Any time part in ``value`` is ignored; tills only pick a day.
    """
    if value is None or not value.strip():
        raise ValidationError(MISSING_FIELDS_MESSAGE)
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}") from exc
    now = now or datetime.now()
    return datetime.combine(parsed.date(), now.time().replace(microsecond=0))


def prepare_invoice(payload: InvoiceCreate, now: datetime | None = None) -> PreparedInvoice:
    """Entry guard: everything that can reject an invoice before any write."""
    if not payload.date or not payload.items:
        raise ValidationError(MISSING_FIELDS_MESSAGE)

    date_time = compose_invoice_timestamp(payload.date, now)
    lines = normalize_lines(payload.items)
    aggregates = build_aggregates(lines, payload.card_info)
    settlement = settle_payment(aggregates.net_total, payload.cash_payment, payload.card_payment)
    if not settlement.covered:
        raise ValidationError(
            f"Payment {settlement.total_paid} does not cover net total {aggregates.net_total}",
            {
                "net_total": str(aggregates.net_total),
                "total_paid": str(settlement.total_paid),
            },
        )
    return PreparedInvoice(date_time, lines, aggregates, settlement)


# ─── Row builders ─────────────────────────────────────────────────────────────


def _header_values(
    payload: InvoiceCreate,
    prepared: PreparedInvoice,
    customer_id: int | None,
    operator: Operator,
) -> dict[str, Any]:
    agg = prepared.aggregates
    return {
        "invoice_number": (payload.invoice_number or "").strip() or None,
        "date_time": prepared.date_time,
        "customer_id": customer_id,
        "customer_name": (payload.customer_name or "").strip() or None,
        "net_total": agg.net_total,
        "total_discount": agg.total_discount,
        "total_cost": agg.total_cost,
        "total_profit": agg.total_profit,
        "cash_payment": payload.cash_payment,
        "card_payment": payload.card_payment,
        "card_info": (payload.card_info or "").strip(),
        "user_name": operator.name,
        "status": payload.status,
    }


def _line_row(invoice_id: int, line: NormalizedLine) -> InvoiceLine:
    return InvoiceLine(
        invoice_id=invoice_id,
        item_id=line.item_id,
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


def _insert_lines(db: Session, invoice_id: int, lines: list[NormalizedLine]) -> None:
    db.add_all([_line_row(invoice_id, line) for line in lines])
    db.flush()


def _quantities_by_item(rows: Any) -> dict[int, Decimal]:
    totals: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for item_id, qty in rows:
        if item_id is not None:
            totals[item_id] += Decimal(qty)
    return dict(totals)


def _after_commit(
    db: Session,
    invoice_id: int,
    adjusted_ids: list[int],
    warnings: list[SideEffectWarning],
) -> list[dict[str, Any]]:
    try:
        return fetch_item_snapshots(db, adjusted_ids)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Item snapshot refresh failed after invoice %s", invoice_id)
        warnings.append(SideEffectWarning(WARNING_SNAPSHOT, f"Item refresh failed: {exc}"))
        return []


# ─── Create ───────────────────────────────────────────────────────────────────


def save_invoice(
    db: Session,
    payload: InvoiceCreate,
    operator: Operator,
    *,
    now: datetime | None = None,
    post_ledger: bool = True,
) -> SaveResult:
    """Record one completed sale.

    Raises ``ValidationError`` before any write when the date or items are
    missing, a line is invalid, or cash + card does not cover the net total.
    Raises ``TransactionFailure`` (everything rolled back, stock included)
    when a header, line or audit write fails; ``state`` is the last state
    reached. Stock, snapshot and ledger problems come back as warnings.
    """
    state = SaveState.VALIDATING
    prepared = prepare_invoice(payload, now)
    warnings: list[SideEffectWarning] = []
    adjusted_ids: list[int] = []

    try:
        with unit_of_work(db):
            state = SaveState.CUSTOMER_RESOLVING
            customer_id = resolve_customer(
                db, existing_customer_id(db, payload.customer_id), payload.customer_name
            )

            invoice_id = insert_invoice_header(
                db, _header_values(payload, prepared, customer_id, operator)
            )
            state = SaveState.HEADER_INSERTED

            state = SaveState.LINES_INSERTING
            _insert_lines(db, invoice_id, prepared.lines)

            state = SaveState.STOCK_ADJUSTING
            for line in prepared.lines:
                if line.item_id is None:
                    continue
                adjustment = decrement_stock(db, line.item_id, line.qty)
                if adjustment.applied:
                    adjusted_ids.append(line.item_id)
                else:
                    warnings.append(adjustment.warning)

            log_action(
                db,
                operator=operator,
                action="INVOICE_CREATED",
                resource_type="invoices",
                resource_id=str(invoice_id),
                changes={
                    "net_total": str(prepared.aggregates.net_total),
                    "lines": len(prepared.lines),
                    "customer_id": customer_id,
                },
            )
    except SQLAlchemyError as exc:
        logger.exception("Invoice save rolled back at %s", state.value)
        raise TransactionFailure(
            str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc),
            state.value,
            {"rolled_back": True},
        ) from exc

    state = SaveState.COMMITTED
    logger.info(
        "Invoice %s committed by %s: net=%s lines=%d",
        invoice_id, operator.name, prepared.aggregates.net_total, len(prepared.lines),
    )

    updated_items = _after_commit(db, invoice_id, adjusted_ids, warnings)

    if post_ledger:
        ledger_warning = dispatch_ledger_post(
            db,
            invoice_id,
            prepared.settlement.cash_applied,
            prepared.settlement.card_applied,
            operator,
            LedgerMetadata(card_info=(payload.card_info or "").strip(), date=prepared.date_time),
        )
        if ledger_warning is not None:
            warnings.append(ledger_warning)

    return SaveResult(
        invoice_id=invoice_id,
        updated_items=updated_items,
        aggregates=prepared.aggregates,
        settlement=prepared.settlement,
        warnings=warnings,
    )


# ─── Edit ─────────────────────────────────────────────────────────────────────


def update_invoice(
    db: Session,
    invoice_id: int,
    payload: InvoiceCreate,
    operator: Operator,
    *,
    now: datetime | None = None,
    post_ledger: bool = True,
) -> SaveResult:
    """Replace an invoice's header and lines.

    Stock moves by the per-item difference between the new and old lines.
    Stock is never put back: a reduced quantity only yields a ``stock``
    warning. The cashbook receives just the change in applied cash / card,
    so an edit never counts a payment twice.
    """
    state = SaveState.VALIDATING
    prepared = prepare_invoice(payload, now)

    previous = read_invoice_header(db, invoice_id)
    if previous is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")
    previous_settlement = settle_payment(
        Decimal(previous["net_total"]),
        Decimal(previous["cash_payment"]),
        Decimal(previous["card_payment"]),
    )
    old_qty = _quantities_by_item(
        db.execute(
            select(InvoiceLine.item_id, InvoiceLine.qty).where(InvoiceLine.invoice_id == invoice_id)
        ).all()
    )
    new_qty = _quantities_by_item((line.item_id, line.qty) for line in prepared.lines)

    warnings: list[SideEffectWarning] = []
    adjusted_ids: list[int] = []

    try:
        with unit_of_work(db):
            state = SaveState.CUSTOMER_RESOLVING
            customer_id = resolve_customer(
                db, existing_customer_id(db, payload.customer_id), payload.customer_name
            )

            update_invoice_header(
                db, invoice_id, _header_values(payload, prepared, customer_id, operator)
            )
            state = SaveState.HEADER_INSERTED

            state = SaveState.LINES_INSERTING
            db.execute(
                delete(InvoiceLine)
                .where(InvoiceLine.invoice_id == invoice_id)
                .execution_options(synchronize_session=False)
            )
            _insert_lines(db, invoice_id, prepared.lines)

            state = SaveState.STOCK_ADJUSTING
            for item_id in dict.fromkeys([*new_qty, *old_qty]):
                delta = new_qty.get(item_id, ZERO) - old_qty.get(item_id, ZERO)
                if delta > 0:
                    adjustment = decrement_stock(db, item_id, delta)
                    if adjustment.applied:
                        adjusted_ids.append(item_id)
                    else:
                        warnings.append(adjustment.warning)
                elif delta < 0:
                    warnings.append(
                        SideEffectWarning(
                            WARNING_STOCK,
                            f"Quantity of item {item_id} reduced by {-delta}; stock not restored",
                            item_id,
                        )
                    )

            log_action(
                db,
                operator=operator,
                action="INVOICE_UPDATED",
                resource_type="invoices",
                resource_id=str(invoice_id),
                changes={
                    "net_total": str(prepared.aggregates.net_total),
                    "previous_net_total": str(previous["net_total"]),
                    "lines": len(prepared.lines),
                },
            )
    except SQLAlchemyError as exc:
        logger.exception("Invoice %s update rolled back at %s", invoice_id, state.value)
        raise TransactionFailure(
            str(exc.orig) if getattr(exc, "orig", None) is not None else str(exc),
            state.value,
            {"rolled_back": True, "invoice_id": invoice_id},
        ) from exc

    logger.info("Invoice %s updated by %s", invoice_id, operator.name)
    updated_items = _after_commit(db, invoice_id, adjusted_ids, warnings)

    cash_delta = prepared.settlement.cash_applied - previous_settlement.cash_applied
    card_delta = prepared.settlement.card_applied - previous_settlement.card_applied
    if post_ledger and (cash_delta != 0 or card_delta != 0):
        ledger_warning = dispatch_ledger_post(
            db,
            invoice_id,
            cash_delta,
            card_delta,
            operator,
            LedgerMetadata(
                card_info=(payload.card_info or "").strip(),
                date=prepared.date_time,
                remark=invoice_remark(invoice_id, edit=True),
            ),
        )
        if ledger_warning is not None:
            warnings.append(ledger_warning)

    return SaveResult(
        invoice_id=invoice_id,
        updated_items=updated_items,
        aggregates=prepared.aggregates,
        settlement=prepared.settlement,
        warnings=warnings,
    )


# ─── Read ─────────────────────────────────────────────────────────────────────


def get_invoice(db: Session, invoice_id: int) -> dict[str, Any]:
    """Header plus lines; lines carry the catalogue item name and barcode."""
    header = read_invoice_header(db, invoice_id)
    if header is None:
        raise NotFoundError(f"Invoice {invoice_id} not found")

    rows = db.execute(
        select(
            InvoiceLine.id,
            InvoiceLine.item_id,
            Item.item_name,
            func.coalesce(Item.item_barcode, InvoiceLine.barcode).label("item_barcode"),
            InvoiceLine.qty,
            InvoiceLine.warranty,
            InvoiceLine.cost,
            InvoiceLine.market_price,
            InvoiceLine.selling_price,
            InvoiceLine.discount,
            InvoiceLine.total_value,
            InvoiceLine.other,
        )
        .outerjoin(Item, Item.id == InvoiceLine.item_id)
        .where(InvoiceLine.invoice_id == invoice_id)
        .order_by(InvoiceLine.id)
    ).mappings().all()

    return {"invoice": header, "items": [dict(r) for r in rows]}

