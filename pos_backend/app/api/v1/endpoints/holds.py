from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from pos_backend.app.api.deps import get_operator
from pos_backend.app.api.v1.endpoints.invoices import save_result_out
from pos_backend.app.core.database import get_db
from pos_backend.app.schemas.hold import (
    HoldConvertRequest,
    HoldCreate,
    HoldListOut,
    HoldOut,
    HoldSavedOut,
    SuccessOut,
)
from pos_backend.app.schemas.invoice import SaveInvoiceOut
from pos_backend.app.services.holds import (
    convert_hold,
    delete_hold,
    get_hold,
    list_holds,
    save_hold,
)
from pos_backend.app.services.operator import Operator

router = APIRouter()


@router.post("", response_model=HoldSavedOut, status_code=status.HTTP_201_CREATED)
def park_invoice(
    payload: HoldCreate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return {"success": True, "hold_id": save_hold(db, payload, operator)}


@router.get("", response_model=HoldListOut)
def get_holds(
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return {"success": True, "holds": list_holds(db)}


@router.get("/{hold_id}", response_model=HoldOut)
def get_single_hold(
    hold_id: int,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return {"success": True, **get_hold(db, hold_id)}


@router.delete("/{hold_id}", response_model=SuccessOut)
def remove_hold(
    hold_id: int,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    delete_hold(db, hold_id, operator)
    return {"success": True}


@router.post("/{hold_id}/convert", response_model=SaveInvoiceOut)
def convert_hold_to_invoice(
    hold_id: int,
    payload: HoldConvertRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    overrides = payload or HoldConvertRequest()
    result = convert_hold(
        db,
        hold_id,
        operator,
        invoice_number=overrides.invoice_number,
        customer_name=overrides.customer_name,
    )
    return save_result_out(result)
