from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

SYSTEM_OPERATOR_NAME = "system"


@dataclass(frozen=True)
class Operator:
    """Who is recording the sale. Resolved once at the HTTP boundary."""

    name: str
    user_id: UUID | None = None

    @property
    def ledger_name(self) -> str:
        return self.name.strip() or SYSTEM_OPERATOR_NAME
