from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pos_backend.app.schemas.invoice import InvoiceCreate


# ─── Request ──────────────────────────────────────────────────────────────────


class HoldCreate(InvoiceCreate):
    """Same shape as an invoice plus a free-text remark. Never payment-checked."""

    remark: str | None = None


class HoldConvertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_number: str | None = Field(
        default=None, validation_alias=AliasChoices("invoiceNumber", "invoice_number")
    )
    customer_name: str | None = Field(
        default=None, validation_alias=AliasChoices("customerName", "customer_name")
    )


# ─── Response ─────────────────────────────────────────────────────────────────


class HoldSavedOut(BaseModel):
    success: bool = True
    hold_id: int = Field(serialization_alias="holdId")


class HoldSummaryOut(BaseModel):
    id: int
    invoice_number: str | None
    date_time: datetime | None
    customer_id: int | None
    customer_name: str | None
    net_total: Decimal
    total_discount: Decimal
    remark: str | None
    created_at: datetime | None


class HoldListOut(BaseModel):
    success: bool = True
    holds: list[HoldSummaryOut]


class HoldLineOut(BaseModel):
    id: int
    item_id: int | None
    item_name: str | None
    barcode: str | None
    qty: Decimal
    warranty: str | None
    cost: Decimal | None
    market_price: Decimal | None
    selling_price: Decimal | None
    discount: Decimal
    total_value: Decimal | None
    other: str | None


class HoldHeaderOut(HoldSummaryOut):
    total_cost: Decimal
    total_profit: Decimal
    cash_payment: Decimal
    card_payment: Decimal
    card_info: str | None
    user_name: str | None
    status: str


class HoldOut(BaseModel):
    success: bool = True
    hold: HoldHeaderOut
    items: list[HoldLineOut]


class SuccessOut(BaseModel):
    success: bool = True
