"""create_pos_tables

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(precision=20, scale=4), nullable=True)
    return sa.Column(name, sa.Numeric(precision=20, scale=4), nullable=False, server_default='0')


def upgrade() -> None:
    """Create users, customers, items, invoices, holds, cashbook and audit_logs."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_code', sa.String(length=50), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=False, server_default=''),
        sa.Column('contact_number', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('vat_no', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('svat_no', sa.String(length=50), nullable=False, server_default=''),
        sa.Column('other', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_code'),
    )
    op.create_index('ix_customers_name', 'customers', ['customer_name'])

    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('item_barcode', sa.String(length=100), nullable=True),
        _money('qty'),
        sa.Column('qty_type', sa.String(length=50), nullable=True),
        sa.Column('warranty', sa.String(length=100), nullable=True),
        sa.Column('item_description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=True),
        _money('total_cost', nullable=True),
        sa.Column('user_name', sa.String(length=150), nullable=True),
        sa.Column('other', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('qty >= 0', name='ck_item_qty_non_negative'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_items_barcode', 'items', ['item_barcode'])

    # customer_name arrives in a later revision; older deployments lack it.
    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_number', sa.String(length=100), nullable=True),
        sa.Column('date_time', sa.DateTime(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        _money('net_total'),
        _money('total_discount'),
        _money('total_cost'),
        _money('total_profit'),
        _money('cash_payment'),
        _money('card_payment'),
        sa.Column('card_info', sa.Text(), nullable=False, server_default=''),
        sa.Column('user_name', sa.String(length=150), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('draft', 'completed')", name='ck_invoice_status'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoices_date_time', 'invoices', ['date_time'])
    op.create_index('ix_invoices_customer', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_user_name', 'invoices', ['user_name'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('barcode', sa.String(length=100), nullable=True),
        sa.Column('qty', sa.Numeric(precision=20, scale=4), nullable=False),
        sa.Column('warranty', sa.String(length=100), nullable=False, server_default=''),
        _money('cost', nullable=True),
        _money('market_price', nullable=True),
        _money('selling_price', nullable=True),
        _money('discount'),
        _money('total_value', nullable=True),
        sa.Column('other', sa.Text(), nullable=False, server_default=''),
        sa.CheckConstraint('qty > 0', name='ck_invoice_item_qty_positive'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoice_items_invoice', 'invoice_items', ['invoice_id'])
    op.create_index('ix_invoice_items_item', 'invoice_items', ['item_id'])

    op.create_table(
        'invoice_hold',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_number', sa.String(length=100), nullable=True),
        sa.Column('date_time', sa.DateTime(), nullable=True),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        _money('net_total'),
        _money('total_discount'),
        _money('total_cost'),
        _money('total_profit'),
        _money('cash_payment'),
        _money('card_payment'),
        sa.Column('card_info', sa.Text(), nullable=True),
        sa.Column('user_name', sa.String(length=150), nullable=True),
        sa.Column('remark', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='hold'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoice_hold_created_at', 'invoice_hold', ['created_at'])

    op.create_table(
        'invoice_hold_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('hold_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('barcode', sa.String(length=100), nullable=True),
        _money('qty'),
        sa.Column('warranty', sa.String(length=100), nullable=True),
        _money('cost', nullable=True),
        _money('market_price', nullable=True),
        _money('selling_price', nullable=True),
        _money('discount'),
        _money('total_value', nullable=True),
        sa.Column('other', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['hold_id'], ['invoice_hold.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_invoice_hold_items_hold', 'invoice_hold_items', ['hold_id'])

    op.create_table(
        'cashbook',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('remark', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('other', sa.Text(), nullable=False, server_default=''),
        _money('cash'),
        _money('bank'),
        sa.Column('user', sa.String(length=150), nullable=False, server_default='system'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cashbook_user', 'cashbook', ['user'])
    op.create_index('ix_cashbook_date', 'cashbook', ['date'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('table_name', sa.String(length=100), nullable=False),
        sa.Column('record_id', sa.String(length=255), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.Uuid(), nullable=True),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_table_record', 'audit_logs', ['table_name', 'record_id'])
    op.create_index('ix_audit_created_at', 'audit_logs', ['created_at'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])


def downgrade() -> None:
    """Drop every POS table."""
    op.drop_table('audit_logs')
    op.drop_table('cashbook')
    op.drop_table('invoice_hold_items')
    op.drop_table('invoice_hold')
    op.drop_table('invoice_items')
    op.drop_table('invoices')
    op.drop_table('items')
    op.drop_index('ix_customers_name', table_name='customers')
    op.drop_table('customers')
    op.drop_table('users')
