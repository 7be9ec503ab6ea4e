"""Initial schema: tenants, auth, library, SKUs, incoming inventory, reports

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration adds:
1. Companies (tenant root, six-letter company_id), users, session tokens
2. Vendors, brands and the product -> item -> sub category hierarchy
3. SKUs (14-character sku_code, current_stock)
4. Incoming inventory headers and items (received/short/rejected reconciliation)
5. Rejected item reports and price history
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated: bool = False):
    cols = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())]
    if with_updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()))
    return cols


def upgrade():
    # ==========================================================================
    # 1. TENANTS AND AUTH
    # ==========================================================================
    op.create_table('companies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('gst_number', sa.String(length=15), nullable=False),
        sa.Column('business_type', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('state', sa.String(length=120), nullable=True),
        sa.Column('pincode', sa.String(length=12), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_companies_company_id', 'companies', ['company_id'], unique=True)
    op.create_index('ix_companies_gst_number', 'companies', ['gst_number'], unique=True)
    op.create_index('ix_companies_is_active', 'companies', ['is_active'])

    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'email', name='uq_users_company_email'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_company_id', 'users', ['company_id'])
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])
    op.create_index('ix_session_tokens_company_id', 'session_tokens', ['company_id'])

    # ==========================================================================
    # 2. LIBRARY
    # ==========================================================================
    op.create_table('vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('gst_number', sa.String(length=15), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('state', sa.String(length=120), nullable=True),
        sa.Column('pin', sa.String(length=12), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'name', name='uq_vendors_company_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_vendors_company_id', 'vendors', ['company_id'])
    op.create_index('ix_vendors_company_active', 'vendors', ['company_id', 'is_active'])

    for table, unique_name in (
        ('brands', 'uq_brands_company_name'),
        ('product_categories', 'uq_product_categories_company_name'),
    ):
        op.create_table(table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.String(length=6), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('company_id', 'name', name=unique_name),
            sqlite_autoincrement=True,
        )
        op.create_index(f'ix_{table}_company_id', table, ['company_id'])

    op.create_table('item_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('product_category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['product_category_id'], ['product_categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('product_category_id', 'name', name='uq_item_categories_parent_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_item_categories_company_id', 'item_categories', ['company_id'])
    op.create_index('ix_item_categories_product_category_id', 'item_categories', ['product_category_id'])

    op.create_table('sub_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('item_category_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['item_category_id'], ['item_categories.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('item_category_id', 'name', name='uq_sub_categories_parent_name'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sub_categories_company_id', 'sub_categories', ['company_id'])
    op.create_index('ix_sub_categories_item_category_id', 'sub_categories', ['item_category_id'])

    # ==========================================================================
    # 3. SKUS
    # ==========================================================================
    op.create_table('skus',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('sku_code', sa.String(length=14), nullable=False),
        sa.Column('product_category_id', sa.Integer(), nullable=True),
        sa.Column('item_category_id', sa.Integer(), nullable=True),
        sa.Column('sub_category_id', sa.Integer(), nullable=True),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('brand_id', sa.Integer(), nullable=True),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('item_details', sa.Text(), nullable=True),
        sa.Column('vendor_item_code', sa.String(length=64), nullable=True),
        sa.Column('hsn_sac_code', sa.String(length=16), nullable=True),
        sa.Column('model', sa.String(length=120), nullable=True),
        sa.Column('series', sa.String(length=120), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='Pcs'),
        sa.Column('rack_number', sa.String(length=64), nullable=True),
        sa.Column('current_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reorder_point', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['product_category_id'], ['product_categories.id']),
        sa.ForeignKeyConstraint(['item_category_id'], ['item_categories.id']),
        sa.ForeignKeyConstraint(['sub_category_id'], ['sub_categories.id']),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_skus_sku_code', 'skus', ['sku_code'], unique=True)
    op.create_index('ix_skus_company_id', 'skus', ['company_id'])
    op.create_index('ix_skus_company_active', 'skus', ['company_id', 'is_active'])
    op.create_index('ix_skus_company_name', 'skus', ['company_id', 'item_name'])

    # ==========================================================================
    # 4. INCOMING INVENTORY
    # ==========================================================================
    op.create_table('incoming_inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('invoice_number', sa.String(length=64), nullable=False),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('docket_number', sa.String(length=64), nullable=True),
        sa.Column('transportor_name', sa.String(length=255), nullable=True),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('warranty', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('warranty_unit', sa.String(length=16), nullable=False, server_default='months'),
        sa.Column('receiving_date', sa.Date(), nullable=False),
        sa.Column('received_by', sa.String(length=255), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('document_type', sa.String(length=32), nullable=False, server_default='bill'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='draft'),
        sa.Column('total_value', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(with_updated=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id']),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_incoming_inventory_company_id', 'incoming_inventory', ['company_id'])
    op.create_index('ix_incoming_inventory_vendor_id', 'incoming_inventory', ['vendor_id'])
    op.create_index('ix_incoming_inventory_brand_id', 'incoming_inventory', ['brand_id'])
    op.create_index('ix_incoming_inventory_status', 'incoming_inventory', ['status'])
    op.create_index('ix_incoming_inventory_company_active', 'incoming_inventory', ['company_id', 'is_active'])
    op.create_index('ix_incoming_inventory_company_invoice', 'incoming_inventory', ['company_id', 'invoice_number'])
    op.create_index('ix_incoming_inventory_receiving_date', 'incoming_inventory', ['company_id', 'receiving_date'])

    op.create_table('incoming_inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('incoming_inventory_id', sa.Integer(), nullable=False),
        sa.Column('sku_id', sa.Integer(), nullable=False),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('received', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('short', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rejected', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('initial_short', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('gst_percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        sa.Column('gst_amount', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_value_excl_gst', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('total_value_incl_gst', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('number_of_boxes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('received_boxes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('challan_number', sa.String(length=64), nullable=True),
        sa.Column('challan_date', sa.Date(), nullable=True),
        *_timestamps(with_updated=True),
        sa.CheckConstraint('received >= 0', name='ck_incoming_items_received_nonneg'),
        sa.CheckConstraint('short >= 0', name='ck_incoming_items_short_nonneg'),
        sa.CheckConstraint('rejected >= 0', name='ck_incoming_items_rejected_nonneg'),
        sa.CheckConstraint(
            'received + short + rejected <= total_quantity',
            name='ck_incoming_items_quantities_bounded',
        ),
        sa.ForeignKeyConstraint(['incoming_inventory_id'], ['incoming_inventory.id']),
        sa.ForeignKeyConstraint(['sku_id'], ['skus.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_incoming_inventory_items_incoming_inventory_id', 'incoming_inventory_items', ['incoming_inventory_id'])
    op.create_index('ix_incoming_inventory_items_sku_id', 'incoming_inventory_items', ['sku_id'])

    # ==========================================================================
    # 5. REPORTS AND PRICE HISTORY
    # ==========================================================================
    op.create_table('rejected_item_reports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('report_number', sa.String(length=100), nullable=False),
        sa.Column('original_invoice_number', sa.String(length=64), nullable=False),
        sa.Column('incoming_inventory_id', sa.Integer(), nullable=False),
        sa.Column('incoming_inventory_item_id', sa.Integer(), nullable=False),
        sa.Column('sku_id', sa.Integer(), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('sent_to_vendor', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('received_back', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scrapped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('net_rejected', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Pending'),
        sa.Column('reason', sa.String(length=30), nullable=True),
        sa.Column('inspection_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(with_updated=True),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['incoming_inventory_id'], ['incoming_inventory.id']),
        sa.ForeignKeyConstraint(['incoming_inventory_item_id'], ['incoming_inventory_items.id']),
        sa.ForeignKeyConstraint(['sku_id'], ['skus.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'report_number', name='uq_rejected_reports_company_number'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_rejected_item_reports_company_id', 'rejected_item_reports', ['company_id'])
    op.create_index('ix_rejected_item_reports_incoming_inventory_id', 'rejected_item_reports', ['incoming_inventory_id'])
    op.create_index('ix_rejected_item_reports_incoming_inventory_item_id', 'rejected_item_reports', ['incoming_inventory_item_id'])
    op.create_index('ix_rejected_reports_company_invoice', 'rejected_item_reports', ['company_id', 'original_invoice_number'])

    op.create_table('price_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('company_id', sa.String(length=6), nullable=False),
        sa.Column('sku_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=True),
        sa.Column('vendor_name', sa.String(length=255), nullable=True),
        sa.Column('buying_date', sa.Date(), nullable=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=True),
        sa.Column('incoming_inventory_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['company_id'], ['companies.company_id']),
        sa.ForeignKeyConstraint(['sku_id'], ['skus.id']),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.ForeignKeyConstraint(['incoming_inventory_id'], ['incoming_inventory.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_price_history_company_id', 'price_history', ['company_id'])
    op.create_index('ix_price_history_sku_id', 'price_history', ['sku_id'])
    op.create_index('ix_price_history_sku_type_active', 'price_history', ['sku_id', 'type', 'is_active'])


def downgrade():
    op.drop_table('price_history')
    op.drop_table('rejected_item_reports')
    op.drop_table('incoming_inventory_items')
    op.drop_table('incoming_inventory')
    op.drop_table('skus')
    op.drop_table('sub_categories')
    op.drop_table('item_categories')
    op.drop_table('product_categories')
    op.drop_table('brands')
    op.drop_table('vendors')
    op.drop_table('session_tokens')
    op.drop_table('users')
    op.drop_table('companies')
