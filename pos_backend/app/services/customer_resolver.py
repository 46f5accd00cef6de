from __future__ import annotations

import logging
import time

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos_backend.app.core.config import settings
from pos_backend.app.models.customer import UNKNOWN_CUSTOMER_CODE, Customer

logger = logging.getLogger(__name__)

AUTO_CREATED_MARKER = "auto-created"


def _epoch_ms(now: float | None) -> int:
    return int((time.time() if now is None else now) * 1000)


def _code_taken(db: Session, code: str) -> bool:
    return db.scalar(select(Customer.id).where(Customer.customer_code == code)) is not None


def _synthesize_code(db: Session, name: str, now: float | None) -> str:
    if name.lower() == UNKNOWN_CUSTOMER_CODE.lower():
        return UNKNOWN_CUSTOMER_CODE
    stamp = _epoch_ms(now)
    code = f"CUST_{stamp}"
    while _code_taken(db, code):
        stamp += 1
        code = f"CUST_{stamp}"
    return code


def existing_customer_id(db: Session, customer_id: int | None) -> int | None:
    """``customer_id`` if that customer row exists, else ``None``.

    Tills cache customer ids; a row deleted since must not fail the sale on
    the foreign key.
    """
    if customer_id is None:
        return None
    if db.get(Customer, customer_id) is None:
        logger.warning("Customer %s no longer exists, link dropped", customer_id)
        return None
    return customer_id


def resolve_customer(
    db: Session,
    customer_id: int | None,
    customer_name: str | None,
    *,
    now: float | None = None,
) -> int | None:
    """Return the customer id an invoice should link to.

    An explicit ``customer_id`` is trusted as-is. Otherwise the name (blank
    means ``settings.DEFAULT_CUSTOMER_NAME``) is matched against customer
    name or code, and a placeholder customer is created when nothing
    matches. Failures are logged and yield ``None``: the sale goes through
    without a customer link. All writes happen in a SAVEPOINT so a failure
    here leaves the caller's transaction usable.
    """
    if customer_id is not None:
        return customer_id

    name = (customer_name or "").strip() or settings.DEFAULT_CUSTOMER_NAME
    try:
        with db.begin_nested():
            existing = db.scalar(
                select(Customer.id)
                .where(or_(Customer.customer_name == name, Customer.customer_code == name))
                .order_by(Customer.id)
                .limit(1)
            )
            if existing is not None:
                return existing

            code = _synthesize_code(db, name, now)
            if code == UNKNOWN_CUSTOMER_CODE:
                # Placeholder may exist under a different display name.
                reused = db.scalar(select(Customer.id).where(Customer.customer_code == code))
                if reused is not None:
                    return reused

            customer = Customer(
                customer_code=code,
                customer_name=name,
                other=AUTO_CREATED_MARKER,
            )
            db.add(customer)
            db.flush()
            logger.info("Auto-created customer %s (%s)", customer.id, code)
            return customer.id
    except SQLAlchemyError:
        logger.exception("Customer resolution failed for %r, continuing without link", name)
        return None
