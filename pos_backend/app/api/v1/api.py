from fastapi import APIRouter

from pos_backend.app.api.v1.endpoints import auth, cashbook, holds, invoices

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(holds.router, prefix="/holds", tags=["holds"])
api_router.include_router(cashbook.router, prefix="/cashbook", tags=["cashbook"])
