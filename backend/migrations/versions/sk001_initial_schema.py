"""initial storekeep schema

Revision ID: sk001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the complete multi-tenant schema:
- users / session_tokens: Accounts (OWNER is the tenant root) and opaque sessions
- stores / categories / products: Tenant-scoped catalog with on-hand quantity
- transactions: SALE and TRANSFER documents with derived lifecycle state
- product_checks: Append-only stock audits
- security_events: Denied access and failed login audit trail
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'sk001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # users: OWNER rows are tenant roots (owner_id NULL)
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_users_owner_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_owner_id', 'users', ['owner_id'])
    op.create_index('ix_users_deleted_at', 'users', ['deleted_at'])
    op.create_index('ix_users_owner_role', 'users', ['owner_id', 'role'])

    # ============================================================================
    # session_tokens: SHA-256 hashed bearer tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # stores: Codes unique per tenant
    # ============================================================================
    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('city', sa.String(length=120), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('opening_time', sa.String(length=5), nullable=True),
        sa.Column('closing_time', sa.String(length=5), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=False, server_default='UTC'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_stores_owner_id_users'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], name='fk_stores_created_by_users'),
        sa.PrimaryKeyConstraint('id', name='pk_stores'),
        sa.UniqueConstraint('owner_id', 'code', name='uq_stores_owner_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_owner_id', 'stores', ['owner_id'])
    op.create_index('ix_stores_deleted_at', 'stores', ['deleted_at'])
    op.create_index('ix_stores_owner_active', 'stores', ['owner_id', 'is_active'])

    # ============================================================================
    # categories
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_categories_store_id_stores'),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_categories_store_id', 'categories', ['store_id'])
    op.create_index('ix_categories_deleted_at', 'categories', ['deleted_at'])
    op.create_index('ix_categories_store_name', 'categories', ['store_id', 'name'])

    # ============================================================================
    # products: quantity is the on-hand count, never negative
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('purchase_price_cents', sa.Integer(), nullable=True),
        sa.Column('sale_price_cents', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_products_store_id_stores'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], name='fk_products_category_id_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_store_id', 'products', ['store_id'])
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_deleted_at', 'products', ['deleted_at'])
    op.create_index('ix_products_store_sku', 'products', ['store_id', 'sku'])
    op.create_index('ix_products_store_name', 'products', ['store_id', 'name'])

    # ============================================================================
    # transactions: state is derived from is_finished / approved_by / photo_proof_url
    # ============================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('finished_by', sa.Integer(), nullable=True),
        sa.Column('from_store_id', sa.Integer(), nullable=True),
        sa.Column('to_store_id', sa.Integer(), nullable=True),
        sa.Column('product_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('amount_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('photo_proof_url', sa.String(length=1024), nullable=True),
        sa.Column('transfer_proof_url', sa.String(length=1024), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('is_finished', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('finished_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint(
            "type != 'TRANSFER' OR (from_store_id IS NOT NULL AND to_store_id IS NOT NULL)",
            name='ck_transactions_transfer_requires_stores',
        ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], name='fk_transactions_created_by_users'),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], name='fk_transactions_approved_by_users'),
        sa.ForeignKeyConstraint(['finished_by'], ['users.id'], name='fk_transactions_finished_by_users'),
        sa.ForeignKeyConstraint(['from_store_id'], ['stores.id'], name='fk_transactions_from_store_id_stores'),
        sa.ForeignKeyConstraint(['to_store_id'], ['stores.id'], name='fk_transactions_to_store_id_stores'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_transactions_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_created_by', 'transactions', ['created_by'])
    op.create_index('ix_transactions_from_store_id', 'transactions', ['from_store_id'])
    op.create_index('ix_transactions_to_store_id', 'transactions', ['to_store_id'])
    op.create_index('ix_transactions_product_id', 'transactions', ['product_id'])
    op.create_index('ix_transactions_type_finished', 'transactions', ['type', 'is_finished'])

    # ============================================================================
    # product_checks: append-only, resolved rows never change
    # ============================================================================
    op.create_table(
        'product_checks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('expected_quantity', sa.Integer(), nullable=False),
        sa.Column('actual_quantity', sa.Integer(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('checked_by', sa.Integer(), nullable=False),
        sa.Column('checked_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('resolved_by', sa.Integer(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_product_checks_product_id_products'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], name='fk_product_checks_store_id_stores'),
        sa.ForeignKeyConstraint(['checked_by'], ['users.id'], name='fk_product_checks_checked_by_users'),
        sa.ForeignKeyConstraint(['resolved_by'], ['users.id'], name='fk_product_checks_resolved_by_users'),
        sa.PrimaryKeyConstraint('id', name='pk_product_checks'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_product_checks_product_id', 'product_checks', ['product_id'])
    op.create_index('ix_product_checks_status', 'product_checks', ['status'])
    op.create_index('ix_product_checks_product_checked', 'product_checks', ['product_id', 'checked_at'])
    op.create_index('ix_product_checks_store_status', 'product_checks', ['store_id', 'status'])

    # ============================================================================
    # security_events: immutable except for retention cleanup
    # ============================================================================
    op.create_table(
        'security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], name='fk_security_events_owner_id_users'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_security_events_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_security_events'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_security_events_owner_id', 'security_events', ['owner_id'])
    op.create_index('ix_security_events_user_id', 'security_events', ['user_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_occurred_at', 'security_events', ['occurred_at'])
    op.create_index('ix_security_events_user_type', 'security_events', ['user_id', 'event_type'])
    op.create_index('ix_security_events_owner_occurred', 'security_events', ['owner_id', 'occurred_at'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('security_events')
    op.drop_table('product_checks')
    op.drop_table('transactions')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('stores')
    op.drop_table('session_tokens')
    op.drop_table('users')
