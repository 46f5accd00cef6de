"""Shared test fixtures.

Every test gets its own SQLite database file, created from the ORM metadata,
so service code can commit, roll back and use SAVEPOINTs for real.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

import pos_backend.app.models.registry  # noqa: F401
from pos_backend.app.core.database import Base, build_engine, get_db
from pos_backend.app.core.security import create_access_token, get_password_hash
from pos_backend.app.main import app
from pos_backend.app.models.customer import Customer
from pos_backend.app.models.item import Item
from pos_backend.app.models.user import User
from pos_backend.app.services.invoice_header import reset_header_capabilities
from pos_backend.app.services.operator import Operator


# ─── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def engine(tmp_path) -> Generator[Engine, None, None]:
    eng = build_engine(f"sqlite:///{tmp_path / 'pos.sqlite3'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def _fresh_header_capabilities() -> Generator[None, None, None]:
    reset_header_capabilities()
    yield
    reset_header_capabilities()


@pytest.fixture()
def client(session_factory: sessionmaker, db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient; each request gets its own session on the test DB.

    The test's own ``db`` session is committed first: a read it left open
    holds a SQLite SHARED lock that would block the request's write.
    """

    def _override_get_db() -> Generator[Session, None, None]:
        db.commit()
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Auth helpers ─────────────────────────────────────────────────────────────


@pytest.fixture()
def cashier_user(db: Session) -> User:
    user = User(username="cashier1", hashed_password=get_password_hash("pass"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def operator(cashier_user: User) -> Operator:
    return Operator(name=cashier_user.username, user_id=cashier_user.id)


@pytest.fixture()
def cashier_headers(cashier_user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject=str(cashier_user.id))}"}


# ─── Catalogue fixtures ───────────────────────────────────────────────────────


@pytest.fixture()
def make_item(db: Session) -> Callable[..., Item]:
    def _make(name: str, qty: str, barcode: str | None = None) -> Item:
        item = Item(
            item_name=name,
            item_barcode=barcode,
            qty=Decimal(qty),
            qty_type="pcs",
            category="General",
            total_cost=Decimal("0"),
            user_name="seed",
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make


@pytest.fixture()
def item_a(make_item: Callable[..., Item]) -> Item:
    return make_item("USB Cable", "10", barcode="4790001")


@pytest.fixture()
def item_b(make_item: Callable[..., Item]) -> Item:
    return make_item("Phone Case", "2", barcode="4790002")


@pytest.fixture()
def customer(db: Session) -> Customer:
    c = Customer(customer_code="C001", customer_name="Nimal Perera")
    db.add(c)
    db.commit()
    db.refresh(c)
    return c
