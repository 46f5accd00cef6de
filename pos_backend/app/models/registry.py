# pos_backend/app/models/registry.py: import every mapped class so that
# Base.metadata is complete (create_all, Alembic autogenerate, relationship
# resolution by string name).

from pos_backend.app.models.audit import AuditLog
from pos_backend.app.models.cashbook import CashbookEntry
from pos_backend.app.models.customer import Customer
from pos_backend.app.models.hold import InvoiceHold, InvoiceHoldLine
from pos_backend.app.models.invoice import Invoice, InvoiceLine
from pos_backend.app.models.item import Item
from pos_backend.app.models.user import User

__all__ = [
    "AuditLog",
    "CashbookEntry",
    "Customer",
    "InvoiceHold",
    "InvoiceHoldLine",
    "Invoice",
    "InvoiceLine",
    "Item",
    "User",
]
