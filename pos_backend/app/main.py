import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pos_backend.app.api.errors import register_exception_handlers
from pos_backend.app.api.v1.api import api_router
from pos_backend.app.core.config import settings

# Every mapped class, so relationships resolve before the first request
import pos_backend.app.models.registry  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="POS Invoice Engine")

# ─── CORS: restrict to configured origins ─────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)

register_exception_handlers(app)

app.include_router(api_router)
