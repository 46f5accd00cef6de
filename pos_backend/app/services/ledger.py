from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from kombu.exceptions import OperationalError as BrokerError
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos_backend.app.core.config import settings
from pos_backend.app.models.cashbook import CashbookEntry
from pos_backend.app.services.audit import log_action
from pos_backend.app.services.errors import WARNING_LEDGER, SideEffectWarning
from pos_backend.app.services.operator import SYSTEM_OPERATOR_NAME, Operator

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")
ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerMetadata:
    card_info: str = ""
    date: datetime | None = None
    remark: str | None = None


def invoice_remark(invoice_id: int, *, edit: bool = False) -> str:
    return f"Invoice {invoice_id} (edit)" if edit else f"Invoice {invoice_id}"


# ─── Posting ──────────────────────────────────────────────────────────────────


def post_invoice_payment(
    db: Session,
    invoice_id: int,
    cash_applied: Decimal,
    card_applied: Decimal,
    operator_name: str,
    metadata: LedgerMetadata | None = None,
) -> CashbookEntry:
    """Record the realized cash / card split of a committed invoice.

    ``cash_applied`` already excludes change handed back; ``card_applied``
    is the card amount as entered. Commits its own transaction, separate
    from the invoice's.
    """
    metadata = metadata or LedgerMetadata()
    entry = CashbookEntry(
        date=metadata.date or datetime.now(),
        remark=metadata.remark or invoice_remark(invoice_id),
        other=metadata.card_info or "",
        cash=Decimal(cash_applied).quantize(Q, rounding=ROUND_HALF_UP),
        bank=Decimal(card_applied).quantize(Q, rounding=ROUND_HALF_UP),
        user=operator_name.strip() or SYSTEM_OPERATOR_NAME,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(
        "Ledger posted for invoice %s: cash=%s bank=%s user=%s",
        invoice_id, entry.cash, entry.bank, entry.user,
    )
    return entry


def dispatch_ledger_post(
    db: Session,
    invoice_id: int,
    cash_applied: Decimal,
    card_applied: Decimal,
    operator: Operator,
    metadata: LedgerMetadata | None = None,
) -> SideEffectWarning | None:
    """Post now, or queue on Celery when ``LEDGER_POST_ASYNC`` is set.

    Must only be called after the invoice committed. Never raises: a failed
    post comes back as a ``ledger`` warning.
    """
    metadata = metadata or LedgerMetadata()

    if settings.LEDGER_POST_ASYNC:
        from pos_backend.app.workers.tasks.ledger import post_invoice_payment_task

        try:
            post_invoice_payment_task.delay(
                invoice_id,
                str(cash_applied),
                str(card_applied),
                operator.ledger_name,
                metadata.card_info,
                metadata.date.isoformat() if metadata.date else None,
                metadata.remark,
            )
        except BrokerError as exc:
            logger.exception("Could not queue ledger post for invoice %s", invoice_id)
            return SideEffectWarning(WARNING_LEDGER, f"Ledger post not queued: {exc}")
        return None

    try:
        post_invoice_payment(
            db, invoice_id, cash_applied, card_applied, operator.ledger_name, metadata
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Ledger post failed for invoice %s", invoice_id)
        return SideEffectWarning(WARNING_LEDGER, f"Ledger post failed: {exc}")
    return None


# ─── Cashbook ─────────────────────────────────────────────────────────────────


def _entry_to_dict(entry: CashbookEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "date": entry.date,
        "remark": entry.remark,
        "other": entry.other,
        "cash": entry.cash,
        "bank": entry.bank,
        "user": entry.user,
    }


def list_cashbook(db: Session) -> dict[str, Any]:
    """All cashbook rows, oldest first, with their cash / bank totals."""
    entries = db.scalars(select(CashbookEntry).order_by(CashbookEntry.id)).all()
    totals = {"cash": ZERO, "bank": ZERO}
    for entry in entries:
        totals["cash"] += entry.cash or ZERO
        totals["bank"] += entry.bank or ZERO
    return {"data": [_entry_to_dict(e) for e in entries], "totals": totals}


def add_cashbook_entry(
    db: Session,
    operator: Operator,
    *,
    date: datetime | None = None,
    remark: str = "",
    other: str = "",
    cash: Decimal = ZERO,
    bank: Decimal = ZERO,
) -> CashbookEntry:
    entry = CashbookEntry(
        date=date or datetime.now(),
        remark=remark,
        other=other,
        cash=cash.quantize(Q, rounding=ROUND_HALF_UP),
        bank=bank.quantize(Q, rounding=ROUND_HALF_UP),
        user=operator.ledger_name,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def clear_cashbook_for_user(db: Session, username: str, operator: Operator) -> int:
    """Delete every cashbook row of ``username`` (trimmed, case-insensitive)."""
    target = username.strip().lower()
    result = db.execute(
        delete(CashbookEntry)
        .where(func.lower(func.trim(CashbookEntry.user)) == target)
        .execution_options(synchronize_session=False)
    )
    removed = result.rowcount or 0
    log_action(
        db,
        operator=operator,
        action="CASHBOOK_CLEARED",
        resource_type="cashbook",
        resource_id=target,
        changes={"removed": removed},
    )
    db.commit()
    logger.info("Cashbook cleared for %s by %s: %d rows", target, operator.name, removed)
    return removed
