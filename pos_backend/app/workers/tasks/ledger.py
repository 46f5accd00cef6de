"""Ledger posting task: writes the cashbook row of a committed invoice."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import OperationalError

from pos_backend.app.workers.celery_app import celery


@celery.task(
    name="pos_backend.app.workers.tasks.ledger.post_invoice_payment",
    autoretry_for=(ConnectionError, OperationalError),
    retry_backoff=True,
    max_retries=5,
)
def post_invoice_payment_task(
    invoice_id: int,
    cash_applied: str,
    card_applied: str,
    operator_name: str,
    card_info: str = "",
    date: str | None = None,
    remark: str | None = None,
) -> dict:
    """Amounts travel as strings so Decimal precision survives JSON."""
    from decimal import Decimal

    from pos_backend.app.core.database import SessionLocal
    from pos_backend.app.services.ledger import LedgerMetadata, post_invoice_payment

    db = SessionLocal()
    try:
        entry = post_invoice_payment(
            db,
            invoice_id,
            Decimal(cash_applied),
            Decimal(card_applied),
            operator_name,
            LedgerMetadata(
                card_info=card_info or "",
                date=datetime.fromisoformat(date) if date else None,
                remark=remark,
            ),
        )
        return {"status": "posted", "cashbook_id": entry.id}
    finally:
        db.close()
