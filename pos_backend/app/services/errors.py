"""Failure taxonomy of the invoice engine.

Exceptions abort the operation that raised them. Failures of best-effort
side effects (stock decrement, ledger posting, snapshot refresh, hold
cleanup) are not exceptions: they are returned as ``SideEffectWarning``
values on an otherwise successful result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class InvoiceEngineError(Exception):
    """Base class for every error the engine raises to its callers."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(InvoiceEngineError):
    """Input rejected before any write happened."""


class InvalidLineError(ValidationError):
    """A cart line cannot be normalized (bad quantity or no item reference)."""


class NotFoundError(InvoiceEngineError):
    pass


class AuthenticationError(InvoiceEngineError):
    """Credentials re-entered to confirm an action do not match."""


class SchemaFallbackError(InvoiceEngineError):
    """The invoice header table fits neither supported insert shape."""


class TransactionFailure(InvoiceEngineError):
    """A write inside the invoice transaction failed; everything was rolled back."""

    def __init__(
        self,
        message: str,
        state: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.state = state


WARNING_STOCK = "stock"
WARNING_LEDGER = "ledger"
WARNING_SNAPSHOT = "snapshot"
WARNING_HOLD = "hold"


@dataclass(frozen=True)
class SideEffectWarning:
    kind: str
    message: str
    item_id: int | None = None
