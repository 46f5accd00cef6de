"""Invoice header writes, with or without the denormalized customer_name.

Deployments migrated at different times may lack ``invoices.customer_name``.
Which shape to write is decided once, from ``INVOICE_HEADER_CUSTOMER_NAME``
when configured or else by inspecting the live table, and never by catching
a failed insert.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Connection, inspect, insert, select, update
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session

from pos_backend.app.core.config import settings
from pos_backend.app.models.invoice import Invoice
from pos_backend.app.services.errors import SchemaFallbackError

logger = logging.getLogger(__name__)

OPTIONAL_COLUMN = "customer_name"

# Every column written by the reduced shape.
REQUIRED_COLUMNS = frozenset(
    c.name for c in Invoice.__table__.columns if c.name not in (OPTIONAL_COLUMN, "created_at")
)


@dataclass(frozen=True)
class HeaderCapabilities:
    customer_name: bool


_capability_cache: dict[str, HeaderCapabilities] = {}


def detect_header_capabilities(conn: Connection) -> HeaderCapabilities:
    table = Invoice.__tablename__
    try:
        columns = {c["name"] for c in inspect(conn).get_columns(table)}
    except NoSuchTableError as exc:
        raise SchemaFallbackError(f"Table '{table}' does not exist") from exc

    missing = sorted(REQUIRED_COLUMNS - columns)
    if missing:
        raise SchemaFallbackError(
            f"Table '{table}' fits no supported header shape",
            {"missing_columns": missing},
        )
    return HeaderCapabilities(customer_name=OPTIONAL_COLUMN in columns)


def get_header_capabilities(db: Session) -> HeaderCapabilities:
    if settings.INVOICE_HEADER_CUSTOMER_NAME is not None:
        return HeaderCapabilities(customer_name=settings.INVOICE_HEADER_CUSTOMER_NAME)

    key = str(db.get_bind().url)
    caps = _capability_cache.get(key)
    if caps is None:
        caps = detect_header_capabilities(db.connection())
        _capability_cache[key] = caps
        logger.info(
            "Invoice header shape for %s: customer_name column %s",
            db.get_bind().url.render_as_string(hide_password=True),
            "present" if caps.customer_name else "absent",
        )
    return caps


def reset_header_capabilities() -> None:
    _capability_cache.clear()


def _shape(values: dict[str, Any], caps: HeaderCapabilities) -> dict[str, Any]:
    if caps.customer_name:
        return values
    return {k: v for k, v in values.items() if k != OPTIONAL_COLUMN}


def insert_invoice_header(db: Session, values: dict[str, Any]) -> int:
    caps = get_header_capabilities(db)
    result = db.execute(insert(Invoice.__table__).values(**_shape(values, caps)))
    return result.inserted_primary_key[0]


def update_invoice_header(db: Session, invoice_id: int, values: dict[str, Any]) -> None:
    caps = get_header_capabilities(db)
    db.execute(
        update(Invoice.__table__)
        .where(Invoice.__table__.c.id == invoice_id)
        .values(**_shape(values, caps))
    )


def header_columns(db: Session) -> list[Any]:
    """Columns safe to SELECT from ``invoices`` on this database."""
    caps = get_header_capabilities(db)
    return [
        c for c in Invoice.__table__.columns
        if c.name != "created_at" and (caps.customer_name or c.name != OPTIONAL_COLUMN)
    ]


def read_invoice_header(db: Session, invoice_id: int) -> dict[str, Any] | None:
    row = (
        db.execute(select(*header_columns(db)).where(Invoice.__table__.c.id == invoice_id))
        .mappings()
        .first()
    )
    if row is None:
        return None
    header = dict(row)
    header.setdefault(OPTIONAL_COLUMN, None)
    return header
