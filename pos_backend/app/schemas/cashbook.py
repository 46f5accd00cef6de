from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_validator


class CashbookEntryCreate(BaseModel):
    date: datetime | None = None
    remark: str = ""
    other: str = ""
    cash: Decimal = Decimal("0")
    bank: Decimal = Decimal("0")


class CashbookEntryOut(BaseModel):
    id: int
    date: datetime
    remark: str
    other: str
    cash: Decimal
    bank: Decimal
    user: str


class CashbookTotalsOut(BaseModel):
    cash: Decimal
    bank: Decimal


class CashbookOut(BaseModel):
    success: bool = True
    data: list[CashbookEntryOut]
    totals: CashbookTotalsOut


class CashbookClearOut(CashbookOut):
    removed: int
    remaining: int
    message: str | None = None


class CashbookClearRequest(BaseModel):
    """The owner of the rows re-enters their password to confirm."""

    username: str
    password: str

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Username is required")
        return v
