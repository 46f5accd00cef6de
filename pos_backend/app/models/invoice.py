from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pos_backend.app.core.database import Base

STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"


class Invoice(Base):
    """One completed sale.

    ``customer_name`` is deferred: older deployments may not have the
    column, so it is only read or written when the header capability check
    says it exists (``services.invoice_header``).
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True
    )
    customer_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True, deferred=True
    )
    net_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    total_discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    total_profit: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    cash_payment: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    card_payment: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    card_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user_name: Mapped[str] = mapped_column(String(150), nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=STATUS_COMPLETED
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    lines: Mapped[list[InvoiceLine]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.id",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'completed')", name="ck_invoice_status"
        ),
        Index("ix_invoices_date_time", "date_time"),
        Index("ix_invoices_customer", "customer_id"),
        Index("ix_invoices_user_name", "user_name"),
    )


class InvoiceLine(Base):
    __tablename__ = "invoice_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )
    # No FK: lines outlive catalogue rows and may carry only a barcode.
    item_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    barcode: Mapped[str | None] = mapped_column(String(100), nullable=True)
    qty: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    warranty: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    cost: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    market_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    selling_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    total_value: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    other: Mapped[str] = mapped_column(Text, nullable=False, default="")

    invoice: Mapped[Invoice] = relationship(back_populates="lines")

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_invoice_item_qty_positive"),
        Index("ix_invoice_items_invoice", "invoice_id"),
        Index("ix_invoice_items_item", "item_id"),
    )
