from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from pos_backend.app.services.pricing import NormalizedLine

Q = Decimal("0.0001")
ZERO = Decimal("0")


@dataclass(frozen=True)
class InvoiceAggregates:
    subtotal: Decimal
    total_discount: Decimal
    net_total: Decimal
    total_cost: Decimal
    total_profit: Decimal


@dataclass(frozen=True)
class PaymentSettlement:
    total_paid: Decimal
    balance: Decimal
    change: Decimal
    cash_applied: Decimal
    card_applied: Decimal
    covered: bool


def has_card_info(card_info: str | None) -> bool:
    return bool(card_info and card_info.strip())


def build_aggregates(
    lines: Iterable[NormalizedLine],
    card_info: str | None = None,
) -> InvoiceAggregates:
    """Fold normalized lines into invoice totals.

    subtotal = sum(qty * market_price), discount = sum(qty * per-unit discount),
    cost = sum(qty * cost); a missing price or cost counts as 0 for its line.
    Card sales get no cash discount: when ``card_info`` is set the aggregate
    discount is 0 and net equals subtotal. Line-level discounts are untouched.
    """
    subtotal = ZERO
    discount = ZERO
    cost = ZERO
    for line in lines:
        subtotal += line.qty * (line.market_price if line.market_price is not None else ZERO)
        discount += line.qty * line.discount
        cost += line.qty * (line.cost if line.cost is not None else ZERO)

    if has_card_info(card_info):
        discount = ZERO

    subtotal = subtotal.quantize(Q, rounding=ROUND_HALF_UP)
    discount = discount.quantize(Q, rounding=ROUND_HALF_UP)
    cost = cost.quantize(Q, rounding=ROUND_HALF_UP)
    net = subtotal - discount
    return InvoiceAggregates(
        subtotal=subtotal,
        total_discount=discount,
        net_total=net,
        total_cost=cost,
        total_profit=net - cost,
    )


def settle_payment(net_total: Decimal, cash: Decimal, card: Decimal) -> PaymentSettlement:
    """Split what the customer handed over against what they owe.

    Change is only ever given back in cash, so it comes off the cash side.
    """
    cash = cash.quantize(Q, rounding=ROUND_HALF_UP)
    card = card.quantize(Q, rounding=ROUND_HALF_UP)
    paid = cash + card
    change = max(paid - net_total, ZERO)
    return PaymentSettlement(
        total_paid=paid,
        balance=paid - net_total,
        change=change,
        cash_applied=cash - change,
        card_applied=card,
        covered=paid >= net_total,
    )
