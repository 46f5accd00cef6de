from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from pos_backend.app.core.database import Base


class CashbookEntry(Base):
    """Cash / bank movement recorded against an operator's running balance."""

    __tablename__ = "cashbook"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    remark: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    other: Mapped[str] = mapped_column(Text, nullable=False, default="")
    cash: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    bank: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    user: Mapped[str] = mapped_column(String(150), nullable=False, default="system")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_cashbook_user", "user"),
        Index("ix_cashbook_date", "date"),
    )
