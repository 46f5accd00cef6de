"""Tests for the invoice header shape selection (with / without customer_name)."""
from __future__ import annotations

from collections.abc import Generator
from decimal import Decimal

import pytest
from sqlalchemy import Engine, text
from sqlalchemy.orm import Session, sessionmaker

from pos_backend.app.core.config import settings
from pos_backend.app.core.database import Base, build_engine
from pos_backend.app.models.item import Item
from pos_backend.app.schemas.invoice import InvoiceCreate
from pos_backend.app.services.errors import SchemaFallbackError
from pos_backend.app.services.invoice_engine import get_invoice, save_invoice
from pos_backend.app.services.invoice_header import (
    detect_header_capabilities,
    get_header_capabilities,
)
from pos_backend.app.services.operator import Operator

LEGACY_INVOICES_DDL = """
CREATE TABLE invoices (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_number VARCHAR(100),
    date_time DATETIME NOT NULL,
    customer_id INTEGER REFERENCES customers (id),
    net_total NUMERIC(20, 4) NOT NULL DEFAULT 0,
    total_discount NUMERIC(20, 4) NOT NULL DEFAULT 0,
    total_cost NUMERIC(20, 4) NOT NULL DEFAULT 0,
    total_profit NUMERIC(20, 4) NOT NULL DEFAULT 0,
    cash_payment NUMERIC(20, 4) NOT NULL DEFAULT 0,
    card_payment NUMERIC(20, 4) NOT NULL DEFAULT 0,
    card_info TEXT NOT NULL DEFAULT '',
    user_name VARCHAR(150) NOT NULL DEFAULT '',
    status VARCHAR(20) NOT NULL DEFAULT 'completed',
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

CASHIER = Operator(name="cashier1")


@pytest.fixture()
def legacy_engine(tmp_path) -> Generator[Engine, None, None]:
    """A database whose invoices table predates the customer_name column."""
    eng = build_engine(f"sqlite:///{tmp_path / 'legacy.sqlite3'}")
    with eng.begin() as conn:
        conn.execute(text(LEGACY_INVOICES_DDL))
    Base.metadata.create_all(
        eng, tables=[t for t in Base.metadata.sorted_tables if t.name != "invoices"]
    )
    yield eng
    eng.dispose()


@pytest.fixture()
def legacy_db(legacy_engine: Engine) -> Generator[Session, None, None]:
    session = sessionmaker(bind=legacy_engine, autoflush=False)()
    yield session
    session.close()


def _payload(**overrides) -> InvoiceCreate:
    data = {
        "date": "2026-10-19",
        "customerName": "Walk-in Kamal",
        "items": [{"itemId": 1, "qty": 1, "market_price": 100, "selling_price": 90}],
        "cashPayment": 100,
    }
    data.update(overrides)
    return InvoiceCreate.model_validate(data)


class TestDetection:
    def test_current_schema_has_customer_name(self, db: Session) -> None:
        assert detect_header_capabilities(db.connection()).customer_name is True

    def test_legacy_schema_lacks_customer_name(self, legacy_db: Session) -> None:
        assert detect_header_capabilities(legacy_db.connection()).customer_name is False

    def test_missing_table(self, tmp_path) -> None:
        eng = build_engine(f"sqlite:///{tmp_path / 'empty.sqlite3'}")
        with eng.connect() as conn, pytest.raises(SchemaFallbackError, match="does not exist"):
            detect_header_capabilities(conn)
        eng.dispose()

    def test_table_missing_required_column(self, tmp_path) -> None:
        eng = build_engine(f"sqlite:///{tmp_path / 'broken.sqlite3'}")
        with eng.begin() as conn:
            conn.execute(text("CREATE TABLE invoices (id INTEGER PRIMARY KEY, date_time DATETIME)"))
        with eng.connect() as conn, pytest.raises(SchemaFallbackError) as exc_info:
            detect_header_capabilities(conn)
        assert "net_total" in exc_info.value.details["missing_columns"]
        eng.dispose()

    def test_config_flag_overrides_detection(self, db: Session, monkeypatch) -> None:
        monkeypatch.setattr(settings, "INVOICE_HEADER_CUSTOMER_NAME", False)
        assert get_header_capabilities(db).customer_name is False

    def test_detected_once_per_database(self, db: Session, monkeypatch) -> None:
        from pos_backend.app.services import invoice_header

        calls = []
        real = invoice_header.detect_header_capabilities

        def _counting(conn):
            calls.append(conn)
            return real(conn)

        monkeypatch.setattr(invoice_header, "detect_header_capabilities", _counting)
        get_header_capabilities(db)
        get_header_capabilities(db)
        assert len(calls) == 1


class TestReducedShape:
    def test_save_and_read_on_legacy_schema(self, legacy_db: Session) -> None:
        """Same values are written; only the customer_name column is left out."""
        legacy_db.add(Item(item_name="USB Cable", qty=Decimal("5")))
        legacy_db.commit()

        result = save_invoice(legacy_db, _payload(), CASHIER)

        loaded = get_invoice(legacy_db, result.invoice_id)
        header = loaded["invoice"]
        assert header["customer_name"] is None
        assert header["net_total"] == Decimal("90")
        assert header["user_name"] == "cashier1"
        assert len(loaded["items"]) == 1

    def test_flag_off_skips_column_on_current_schema(self, db: Session, monkeypatch) -> None:
        monkeypatch.setattr(settings, "INVOICE_HEADER_CUSTOMER_NAME", False)
        result = save_invoice(db, _payload(), CASHIER)
        stored = db.execute(
            text("SELECT customer_name, net_total FROM invoices WHERE id = :id"),
            {"id": result.invoice_id},
        ).one()
        assert stored.customer_name is None
        assert Decimal(str(stored.net_total)) == Decimal("90")

    def test_full_shape_keeps_customer_name(self, db: Session) -> None:
        result = save_invoice(db, _payload(), CASHIER)
        assert get_invoice(db, result.invoice_id)["invoice"]["customer_name"] == "Walk-in Kamal"
