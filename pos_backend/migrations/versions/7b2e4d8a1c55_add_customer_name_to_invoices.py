"""add_customer_name_to_invoices

Revision ID: 7b2e4d8a1c55
Revises: 3f1a9c2b7d10
Create Date: 2026-10-19 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7b2e4d8a1c55'
down_revision: Union[str, Sequence[str], None] = '3f1a9c2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Denormalized customer display name on the invoice header."""
    op.add_column('invoices', sa.Column('customer_name', sa.String(length=255), nullable=True))


def downgrade() -> None:
    """Remove customer_name from invoices."""
    op.drop_column('invoices', 'customer_name')
