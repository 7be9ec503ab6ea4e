"""Outgoing inventory headers and items

Revision ID: 20261019_outgoing
Revises: 20261018_initial
Create Date: 2026-10-19

This migration adds:
1. outgoing_inventory: one sales invoice / delivery challan / transfer note
2. outgoing_inventory_items: one line per dispatched SKU
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_outgoing'
down_revision = '20261018_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('outgoing_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('document_type', sa.String(length=32), nullable=False),
        sa.Column('document_sub_type', sa.String(length=32), nullable=True),
        sa.Column('vendor_sub_type', sa.String(length=32), nullable=True),
        sa.Column('delivery_challan_sub_type', sa.String(length=32), nullable=True),
        sa.Column('invoice_challan_date', sa.Date(), nullable=False),
        sa.Column('invoice_challan_number', sa.String(length=64), nullable=True),
        sa.Column('docket_number', sa.String(length=64), nullable=True),
        sa.Column('transportor_name', sa.String(length=255), nullable=True),
        sa.Column('destination_type', sa.String(length=32), nullable=False),
        sa.Column('destination_id', sa.Integer(), nullable=True),
        sa.Column('destination_name', sa.String(length=255), nullable=True),
        sa.Column('dispatched_by', sa.String(length=255), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('total_value', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_outgoing_inventory_company_id', 'outgoing_inventory', ['company_id'])
    op.create_index('ix_outgoing_inventory_status', 'outgoing_inventory', ['status'])
    op.create_index('ix_outgoing_inventory_company_active', 'outgoing_inventory', ['company_id', 'is_active'])
    op.create_index('ix_outgoing_inventory_challan_date', 'outgoing_inventory', ['company_id', 'invoice_challan_date'])

    op.create_table('outgoing_inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('outgoing_inventory_id', sa.Integer(), nullable=False),
        sa.Column('sku_id', sa.Integer(), nullable=False),
        sa.Column('outgoing_quantity', sa.Integer(), nullable=False),
        sa.Column('rejected_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('gst_percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('gst_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_value_excl_gst', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_value_incl_gst', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('outgoing_quantity > 0', name='ck_outgoing_items_quantity_pos'),
        sa.CheckConstraint('rejected_quantity >= 0', name='ck_outgoing_items_rejected_nonneg'),
        sa.ForeignKeyConstraint(['outgoing_inventory_id'], ['outgoing_inventory.id']),
        sa.ForeignKeyConstraint(['sku_id'], ['skus.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_outgoing_inventory_items_outgoing_inventory_id', 'outgoing_inventory_items', ['outgoing_inventory_id'])
    op.create_index('ix_outgoing_inventory_items_sku_id', 'outgoing_inventory_items', ['sku_id'])


def downgrade():
    op.drop_table('outgoing_inventory_items')
    op.drop_table('outgoing_inventory')
