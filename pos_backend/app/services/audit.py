from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pos_backend.app.models.audit import AuditLog
from pos_backend.app.services.operator import Operator


def log_action(
    db: Session,
    *,
    operator: Operator | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> None:
    """Add an audit_logs row to the caller's transaction.

    Never commits: the row lives or dies with the invoice / hold write it
    describes.
    """
    values = dict(changes or {})
    if operator is not None:
        values.setdefault("operator", operator.name)
    db.add(
        AuditLog(
            table_name=resource_type,
            record_id=resource_id,
            action=action,
            changed_by=operator.user_id if operator else None,
            new_values=values or None,
            ip_address=ip_address,
        )
    )
