from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from pos_backend.app.core.database import Base


class Item(Base):
    """Sellable stock item.

    The invoice engine only ever touches ``qty``, and only downwards
    (see ``services.stock.decrement_stock``). Everything else belongs to the
    item catalogue screens.
    """

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    item_barcode: Mapped[str | None] = mapped_column(String(100), nullable=True)
    qty: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    qty_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    warranty: Mapped[str | None] = mapped_column(String(100), nullable=True)
    item_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_cost: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    user_name: Mapped[str | None] = mapped_column(String(150), nullable=True)
    other: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_item_qty_non_negative"),
        Index("ix_items_barcode", "item_barcode"),
    )
