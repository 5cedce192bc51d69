"""Initial schema: tenants, auth, catalog, sales

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration creates:
1. organization (tenant root) and shop
2. role (JSON policy list), user (globally unique email), session_token
3. product_group, product (barcode unique per organization), stock_level
4. sale, orderline (orderline_type enum), transaction

Every tenant-owned table carries organization_id with ON DELETE CASCADE and
created_at / updated_at / deleted_at. Money and quantity columns are exact
NUMERIC(precision, scale).
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _organization_fk():
    return sa.ForeignKeyConstraint(['organization_id'], ['organization.id'], ondelete='CASCADE')


def upgrade():
    # ==========================================================================
    # 1. TENANCY
    # ==========================================================================
    op.create_table('organization',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('shop',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('meta', sa.JSON(), nullable=True),
        *_timestamps(),
        _organization_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shop_organization_id', 'shop', ['organization_id'], unique=False)

    # ==========================================================================
    # 2. AUTH
    # ==========================================================================
    op.create_table('role',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('policies', sa.JSON(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_role_organization_id', 'role', ['organization_id'], unique=False)

    op.create_table('user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_user_organization_id', 'user', ['organization_id'], unique=False)
    op.create_index('ix_user_role_id', 'user', ['role_id'], unique=False)

    op.create_table('session_token',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['user.id'], ondelete='CASCADE'),
        _organization_fk(),
        sa.ForeignKeyConstraint(['role_id'], ['role.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_session_token_token_hash', 'session_token', ['token_hash'], unique=True)
    op.create_index('ix_session_token_user_id', 'session_token', ['user_id'], unique=False)
    op.create_index('ix_session_token_organization_id', 'session_token', ['organization_id'], unique=False)

    # ==========================================================================
    # 3. CATALOG
    # ==========================================================================
    op.create_table('product_group',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_product_group_organization_id', 'product_group', ['organization_id'], unique=False)

    op.create_table('product',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=14, scale=3), nullable=False),
        sa.Column('product_group_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.ForeignKeyConstraint(['product_group_id'], ['product_group.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode', 'organization_id', name='barcode_organization_id'),
    )
    op.create_index('ix_product_organization_id', 'product', ['organization_id'], unique=False)
    op.create_index('ix_product_product_group_id', 'product', ['product_group_id'], unique=False)

    op.create_table('stock_level',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.ForeignKeyConstraint(['product_id'], ['product.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['shop_id'], ['shop.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_stock_level_organization_id', 'stock_level', ['organization_id'], unique=False)
    op.create_index('ix_stock_level_product_id', 'stock_level', ['product_id'], unique=False)
    op.create_index('ix_stock_level_shop_id', 'stock_level', ['shop_id'], unique=False)

    # ==========================================================================
    # 4. SALES
    # ==========================================================================
    op.create_table('sale',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('discount_percentage', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('discount_amount', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('total_amount', sa.Numeric(precision=14, scale=3), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.ForeignKeyConstraint(['shop_id'], ['shop.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sale_organization_id', 'sale', ['organization_id'], unique=False)
    op.create_index('ix_sale_shop_id', 'sale', ['shop_id'], unique=False)

    op.create_table('orderline',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        sa.Column('orderline_type', sa.Enum('sale', 'return', name='orderline_type'), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=3), nullable=False),
        sa.Column('discount_percentage', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('discount_amount', sa.Numeric(precision=10, scale=3), nullable=True),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.ForeignKeyConstraint(['product_id'], ['product.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['sale_id'], ['sale.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orderline_organization_id', 'orderline', ['organization_id'], unique=False)
    op.create_index('ix_orderline_product_id', 'orderline', ['product_id'], unique=False)
    op.create_index('ix_orderline_sale_id', 'orderline', ['sale_id'], unique=False)

    op.create_table('transaction',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('organization_id', sa.Integer(), nullable=False),
        *_timestamps(),
        _organization_fk(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transaction_organization_id', 'transaction', ['organization_id'], unique=False)


def downgrade():
    op.drop_table('transaction')
    op.drop_table('orderline')
    sa.Enum(name='orderline_type').drop(op.get_bind(), checkfirst=True)
    op.drop_table('sale')
    op.drop_table('stock_level')
    op.drop_table('product')
    op.drop_table('product_group')
    op.drop_table('session_token')
    op.drop_table('user')
    op.drop_table('role')
    op.drop_table('shop')
    op.drop_table('organization')
