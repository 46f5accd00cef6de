from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pos_backend.app.models.item import Item
from pos_backend.app.services.errors import WARNING_STOCK, SideEffectWarning

logger = logging.getLogger(__name__)

# Columns a till needs to refresh its local item cache after a sale.
SNAPSHOT_COLUMNS = (
    Item.id,
    Item.item_name,
    Item.item_barcode,
    Item.qty,
    Item.qty_type,
    Item.warranty,
    Item.item_description,
    Item.category,
    Item.total_cost,
    Item.user_name,
    Item.other,
)


@dataclass(frozen=True)
class StockAdjustment:
    item_id: int
    quantity: Decimal
    warning: SideEffectWarning | None = None

    @property
    def applied(self) -> bool:
        return self.warning is None


def decrement_stock(db: Session, item_id: int, quantity: Decimal) -> StockAdjustment:
    """Take ``quantity`` off an item's on-hand qty, never below zero.

    One conditional UPDATE, so two tills selling the same item at once cannot
    lose an update. Runs in a SAVEPOINT: a failure is rolled back on its own
    and returned as a warning, the surrounding invoice transaction carries on.
    """
    stmt = (
        update(Item)
        .where(Item.id == item_id)
        .values(qty=case((Item.qty - quantity > 0, Item.qty - quantity), else_=0))
        .execution_options(synchronize_session=False)
    )
    try:
        with db.begin_nested():
            result = db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.exception("Stock decrement failed for item %s (qty %s)", item_id, quantity)
        return StockAdjustment(
            item_id,
            quantity,
            SideEffectWarning(WARNING_STOCK, f"Stock update failed: {exc}", item_id),
        )

    if result.rowcount == 0:
        logger.warning("Stock decrement skipped: item %s not found", item_id)
        return StockAdjustment(
            item_id,
            quantity,
            SideEffectWarning(WARNING_STOCK, f"Item {item_id} not found", item_id),
        )
    return StockAdjustment(item_id, quantity)


def fetch_item_snapshots(db: Session, item_ids: Iterable[int]) -> list[dict[str, Any]]:
    """Post-adjustment rows for ``item_ids``, in first-seen order, deduplicated."""
    ids: list[int] = list(dict.fromkeys(item_ids))
    if not ids:
        return []
    rows: Sequence[Any] = (
        db.execute(select(*SNAPSHOT_COLUMNS).where(Item.id.in_(ids))).mappings().all()
    )
    by_id = {row["id"]: dict(row) for row in rows}
    return [by_id[i] for i in ids if i in by_id]
