"""Initial marketplace schema: profiles, catalog, orders, group buying, inventory

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-08-01

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('business_name', sa.String(length=200), nullable=False),
        sa.Column('contact_phone', sa.String(length=20), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('trust_score', sa.Float(), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint("role IN ('vendor', 'supplier')", name='profile_role_check'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_profiles_user_id'), 'profiles', ['user_id'], unique=True)
    op.create_index('profiles_by_role', 'profiles', ['role'])

    op.create_table('products',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('min_order_quantity', sa.Float(), nullable=False),
        sa.Column('max_order_quantity', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.CheckConstraint('price >= 0', name='product_price_non_negative_check'),
        sa.CheckConstraint('quantity >= 0', name='product_quantity_non_negative_check'),
        sa.CheckConstraint(
            'max_order_quantity IS NULL OR max_order_quantity >= min_order_quantity',
            name='product_order_quantity_range_check'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('products_by_supplier', 'products', ['supplier_id'])
    op.create_index('products_by_category', 'products', ['category'])
    op.create_index('products_by_active', 'products', ['is_active'])

    op.create_table('group_buying',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('target_quantity', sa.Float(), nullable=False),
        sa.Column('current_quantity', sa.Float(), nullable=False),
        sa.Column('discount_percentage', sa.Float(), nullable=False),
        sa.Column('original_price', sa.Float(), nullable=False),
        sa.Column('discounted_price', sa.Float(), nullable=False),
        sa.Column('min_participants', sa.Integer(), nullable=False),
        sa.Column('max_participants', sa.Integer(), nullable=False),
        sa.Column('current_participants', sa.Integer(), nullable=False),
        sa.Column('deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'discount_percentage >= 0 AND discount_percentage <= 100',
            name='group_discount_range_check'
        ),
        sa.CheckConstraint('current_participants <= max_participants', name='group_capacity_check'),
        sa.CheckConstraint(
            "status IN ('active', 'completed', 'cancelled', 'expired')",
            name='group_status_check'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('group_buying_by_product', 'group_buying', ['product_id'])
    op.create_index('group_buying_by_supplier', 'group_buying', ['supplier_id'])
    op.create_index('group_buying_by_status', 'group_buying', ['status'])
    op.create_index('group_buying_by_creator', 'group_buying', ['created_by'])

    op.create_table('orders',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('vendor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('unit_price', sa.Float(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('group_buying_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint('quantity > 0', name='order_quantity_positive_check'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'delivered', 'cancelled')",
            name='order_status_check'
        ),
        sa.ForeignKeyConstraint(['group_buying_id'], ['group_buying.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('orders_by_vendor', 'orders', ['vendor_id'])
    op.create_index('orders_by_supplier', 'orders', ['supplier_id'])
    op.create_index('orders_by_status', 'orders', ['status'])
    op.create_index('orders_by_group', 'orders', ['group_buying_id'])

    op.create_table('group_participants',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('group_buying_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('vendor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Float(), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('quantity > 0', name='participant_quantity_positive_check'),
        sa.ForeignKeyConstraint(['group_buying_id'], ['group_buying.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('group_buying_id', 'vendor_id', name='unique_group_vendor')
    )
    op.create_index('group_participants_by_group', 'group_participants', ['group_buying_id'])
    op.create_index('group_participants_by_vendor', 'group_participants', ['vendor_id'])

    op.create_table('vendor_inventory',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('vendor_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_name', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('current_stock', sa.Float(), nullable=False),
        sa.Column('min_stock_level', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(length=50), nullable=False),
        sa.Column('last_restocked', sa.DateTime(timezone=True), nullable=False),
        sa.Column('supplier_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint('current_stock >= 0', name='inventory_stock_non_negative_check'),
        sa.CheckConstraint('min_stock_level >= 0', name='inventory_min_stock_non_negative_check'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('vendor_inventory_by_vendor', 'vendor_inventory', ['vendor_id'])
    op.create_index('vendor_inventory_by_category', 'vendor_inventory', ['category'])


def downgrade():
    op.drop_table('vendor_inventory')
    op.drop_table('group_participants')
    op.drop_table('orders')
    op.drop_table('group_buying')
    op.drop_table('products')
    op.drop_table('profiles')
