from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pos_backend.app.api.deps import get_operator
from pos_backend.app.core.database import get_db
from pos_backend.app.schemas.invoice import InvoiceCreate, InvoiceOut, SaveInvoiceOut
from pos_backend.app.services.invoice_engine import (
    SaveResult,
    get_invoice,
    save_invoice,
    update_invoice,
)
from pos_backend.app.services.operator import Operator

router = APIRouter()


def save_result_out(result: SaveResult) -> dict:
    return {
        "success": True,
        "invoice_id": result.invoice_id,
        "updated_items": result.updated_items,
        "warnings": [asdict(w) for w in result.warnings],
    }


@router.post("", response_model=SaveInvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return save_result_out(save_invoice(db, payload, operator))


@router.put("/{invoice_id}", response_model=SaveInvoiceOut)
def edit_invoice(
    invoice_id: int,
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return save_result_out(update_invoice(db, invoice_id, payload, operator))


@router.get("/{invoice_id}", response_model=InvoiceOut)
def read_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    operator: Operator = Depends(get_operator),
) -> dict:
    return {"success": True, **get_invoice(db, invoice_id)}
