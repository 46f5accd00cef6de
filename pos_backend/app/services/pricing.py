"""Line pricing: turn one raw cart line into its canonical, derived form.

Pure functions, no I/O. Precedence rules:

    discount (per unit)  explicit value
                         else market_price - selling_price when both are known
                         else 0
    line total           explicit ``total``
                         else explicit ``total_value``
                         else qty * market_price
                         else qty * selling_price
                         else unknown (None)

A zero discount is a real value, not "unknown".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pos_backend.app.schemas.invoice import InvoiceLineIn
from pos_backend.app.services.errors import InvalidLineError

Q = Decimal("0.0001")
ZERO = Decimal("0")


@dataclass(frozen=True)
class NormalizedLine:
    item_id: int | None
    barcode: str | None
    item_name: str | None
    qty: Decimal
    warranty: str
    cost: Decimal | None
    market_price: Decimal | None
    selling_price: Decimal | None
    discount: Decimal
    total_value: Decimal | None
    other: str


def _q(value: Decimal) -> Decimal:
    return value.quantize(Q, rounding=ROUND_HALF_UP)


def per_unit_discount(
    discount: Decimal | None,
    market_price: Decimal | None,
    selling_price: Decimal | None,
) -> Decimal:
    if discount is not None:
        return _q(discount)
    if market_price is not None and selling_price is not None:
        return _q(market_price - selling_price)
    return ZERO


def line_total(
    qty: Decimal,
    total: Decimal | None,
    total_value: Decimal | None,
    market_price: Decimal | None,
    selling_price: Decimal | None,
) -> Decimal | None:
    if total is not None:
        return _q(total)
    if total_value is not None:
        return _q(total_value)
    if market_price is not None:
        return _q(qty * market_price)
    if selling_price is not None:
        return _q(qty * selling_price)
    return None


def _coerce(raw: InvoiceLineIn | Mapping[str, Any], position: int | None) -> InvoiceLineIn:
    if isinstance(raw, InvoiceLineIn):
        return raw
    try:
        return InvoiceLineIn.model_validate(raw)
    except PydanticValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise InvalidLineError(
            _where(position) + "Non-numeric value in " + ", ".join(fields or ["line"]),
            {"position": position, "fields": fields},
        ) from exc


def _where(position: int | None) -> str:
    return "" if position is None else f"Line {position + 1}: "


def normalize_line(
    raw: InvoiceLineIn | Mapping[str, Any],
    position: int | None = None,
) -> NormalizedLine:
    """Validate one cart line and compute its discount and total.

    Raises ``InvalidLineError`` when the quantity is missing, non-numeric,
    zero or negative, or when the line references neither an item id nor a
    barcode. Missing optional fields never raise.
    """
    line = _coerce(raw, position)

    if line.qty is None:
        raise InvalidLineError(_where(position) + "Quantity is required", {"position": position})
    if not line.qty.is_finite() or line.qty <= 0:
        raise InvalidLineError(
            _where(position) + "Quantity must be greater than zero",
            {"position": position, "qty": str(line.qty)},
        )

    barcode = (line.barcode or "").strip() or None
    if line.item_id is None and barcode is None:
        raise InvalidLineError(
            _where(position) + "Line has no item reference (item id or barcode)",
            {"position": position},
        )

    return NormalizedLine(
        item_id=line.item_id,
        barcode=barcode,
        item_name=line.item_name,
        qty=line.qty,
        warranty=line.warranty or "",
        cost=line.cost,
        market_price=line.market_price,
        selling_price=line.selling_price,
        discount=per_unit_discount(line.discount, line.market_price, line.selling_price),
        total_value=line_total(
            line.qty, line.total, line.total_value, line.market_price, line.selling_price
        ),
        other=line.other or "",
    )


def normalize_lines(
    raws: Iterable[InvoiceLineIn | Mapping[str, Any]],
) -> list[NormalizedLine]:
    return [normalize_line(raw, position=i) for i, raw in enumerate(raws)]
