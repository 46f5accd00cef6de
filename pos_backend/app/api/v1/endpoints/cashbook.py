from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_backend.app.api.deps import get_operator
from pos_backend.app.core.database import get_db
from pos_backend.app.core.security import verify_password
from pos_backend.app.models.user import User
from pos_backend.app.schemas.cashbook import (
    CashbookClearOut,
    CashbookClearRequest,
    CashbookEntryCreate,
    CashbookOut,
)
from pos_backend.app.services.errors import AuthenticationError
from pos_backend.app.services.ledger import (
    add_cashbook_entry,
    clear_cashbook_for_user,
    list_cashbook,
)
from pos_backend.app.services.operator import Operator

router = APIRouter()


@router.get("", response_model=CashbookOut)
def get_cashbook(
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return {"success": True, **list_cashbook(db)}


@router.post("", response_model=CashbookOut, status_code=status.HTTP_201_CREATED)
def create_cashbook_entry(
    payload: CashbookEntryCreate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    add_cashbook_entry(
        db,
        operator,
        date=payload.date,
        remark=payload.remark,
        other=payload.other,
        cash=payload.cash,
        bank=payload.bank,
    )
    return {"success": True, **list_cashbook(db)}


@router.post("/clear", response_model=CashbookClearOut)
def clear_cashbook(
    payload: CashbookClearRequest,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    user = db.query(User).filter(User.username == payload.username.strip()).first()
    if user is None:
        raise AuthenticationError("Invalid user")
    if not verify_password(payload.password, user.hashed_password):
        raise AuthenticationError("Invalid password")

    removed = clear_cashbook_for_user(db, user.username, operator)
    book = list_cashbook(db)
    return {
        "success": True,
        "removed": removed,
        "remaining": len(book["data"]),
        "message": None if removed else "No transactions found for this user",
        **book,
    }
