from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# ─── Cart line (boundary shape) ──────────────────────────────────────────────


class InvoiceLineIn(BaseModel):
    """One cart line as clients send it.

    Clients disagree on field names (``qty`` vs ``quantity``, ``price`` vs
    ``sellingPrice`` vs ``selling_price`` ...). Every accepted spelling is
    listed here, earlier aliases winning, so nothing past this model has to
    care. Derived values are computed by ``services.pricing.normalize_line``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    item_id: int | None = Field(
        default=None, validation_alias=AliasChoices("itemId", "item_id")
    )
    barcode: str | None = Field(
        default=None,
        validation_alias=AliasChoices("barcode", "item_barcode", "itemBarcode"),
    )
    item_name: str | None = Field(
        default=None, validation_alias=AliasChoices("itemName", "item_name")
    )
    qty: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("qty", "quantity")
    )
    warranty: str | None = None
    cost: Decimal | None = None
    market_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("market_price", "marketPrice", "orig_market_price"),
    )
    selling_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("selling_price", "sellingPrice", "price"),
    )
    discount: Decimal | None = None
    total: Decimal | None = None
    total_value: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("total_value", "totalValue")
    )
    other: str | None = None

    @field_validator("barcode", "item_name", "warranty", "other", mode="before")
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator(
        "qty", "cost", "market_price", "selling_price", "discount", "total", "total_value",
        mode="before",
    )
    @classmethod
    def blank_as_missing(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ─── Request ──────────────────────────────────────────────────────────────────


class InvoiceCreate(BaseModel):
    """Body of invoice create / update.

    ``date`` and ``items`` are optional here on purpose: the engine's guard
    rejects a missing date or an empty cart with its own message.
    ``userName`` is accepted for compatibility but ignored; the operator is
    always the authenticated user.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_number: str | None = Field(
        default=None, validation_alias=AliasChoices("invoiceNumber", "invoice_number")
    )
    date: str | None = None
    customer_id: int | None = Field(
        default=None, validation_alias=AliasChoices("customerId", "customer_id")
    )
    customer_name: str | None = Field(
        default=None, validation_alias=AliasChoices("customerName", "customer_name")
    )
    items: list[InvoiceLineIn] = Field(default_factory=list)
    cash_payment: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("cashPayment", "cash_payment")
    )
    card_payment: Decimal = Field(
        default=Decimal("0"), validation_alias=AliasChoices("cardPayment", "card_payment")
    )
    card_info: str | None = Field(
        default=None,
        validation_alias=AliasChoices("cardInfo", "card_info", "cardNumberBankType"),
    )
    status: Literal["draft", "completed"] = "completed"

    @field_validator("cash_payment", "card_payment", mode="before")
    @classmethod
    def missing_payment_is_zero(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return Decimal("0")
        return v

    @field_validator("cash_payment", "card_payment")
    @classmethod
    def payment_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Payment amounts cannot be negative")
        return v


# ─── Response ─────────────────────────────────────────────────────────────────


class ItemSnapshotOut(BaseModel):
    """Post-sale item row, for the client to refresh its local item cache."""

    id: int
    item_name: str
    item_barcode: str | None
    qty: Decimal
    qty_type: str | None
    warranty: str | None
    item_description: str | None
    category: str | None
    total_cost: Decimal | None
    user_name: str | None
    other: str | None


class WarningOut(BaseModel):
    kind: str
    message: str
    item_id: int | None = None


class SaveInvoiceOut(BaseModel):
    success: bool = True
    invoice_id: int = Field(serialization_alias="invoiceId")
    updated_items: list[ItemSnapshotOut] = Field(serialization_alias="updatedItems")
    warnings: list[WarningOut] = []


class InvoiceLineOut(BaseModel):
    id: int
    item_id: int | None
    item_name: str | None
    item_barcode: str | None
    qty: Decimal
    warranty: str
    cost: Decimal | None
    market_price: Decimal | None
    selling_price: Decimal | None
    discount: Decimal
    total_value: Decimal | None
    other: str


class InvoiceHeaderOut(BaseModel):
    id: int
    invoice_number: str | None
    date_time: datetime
    customer_id: int | None
    customer_name: str | None
    net_total: Decimal
    total_discount: Decimal
    total_cost: Decimal
    total_profit: Decimal
    cash_payment: Decimal
    card_payment: Decimal
    card_info: str
    user_name: str
    status: str


class InvoiceOut(BaseModel):
    success: bool = True
    invoice: InvoiceHeaderOut
    items: list[InvoiceLineOut]
