"""initial tracker schema

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates:
- tasks: per-variant production totals (materialized from order line items)
- orders: tracked orders with fulfilled counters and sticky archived status
- order_line_items: one variant's quantity within one order
- sync_history: record of every sync attempt
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('variant_id', sa.String(length=255), nullable=False),
        sa.Column('variant_title', sa.String(length=255), nullable=False),
        sa.Column('product_title', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('total_quantity', sa.Integer(), nullable=False),
        sa.Column('made_quantity', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('pending', 'in_progress', 'completed')", name='ck_tasks_status'),
        sa.CheckConstraint('total_quantity >= 0', name='ck_tasks_total_nonneg'),
        sa.CheckConstraint('made_quantity >= 0', name='ck_tasks_made_nonneg'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_tasks_variant_id', 'tasks', ['variant_id'], unique=True)
    op.create_index('ix_tasks_status', 'tasks', ['status'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=255), nullable=False),
        sa.Column('order_name', sa.String(length=128), nullable=False),
        sa.Column('order_date', sa.DateTime(), nullable=False),
        sa.Column('total_items', sa.Integer(), nullable=False),
        sa.Column('fulfilled_items', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'fulfilled', 'archived')",
            name='ck_orders_status',
        ),
        sa.CheckConstraint('fulfilled_items >= 0', name='ck_orders_fulfilled_nonneg'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_order_date', 'orders', ['order_date'])

    op.create_table(
        'order_line_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.String(length=255), nullable=False),
        sa.Column('line_item_id', sa.String(length=255), nullable=False),
        sa.Column('variant_id', sa.String(length=255), nullable=False),
        sa.Column('variant_title', sa.String(length=255), nullable=False),
        sa.Column('product_title', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('fulfilled_quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id'], ondelete='CASCADE'),
        sa.UniqueConstraint('line_item_id'),
        sa.CheckConstraint('quantity >= 0', name='ck_line_items_quantity_nonneg'),
        sa.CheckConstraint('fulfilled_quantity >= 0', name='ck_line_items_fulfilled_nonneg'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_order_line_items_order_id', 'order_line_items', ['order_id'])
    op.create_index('ix_order_line_items_variant_id', 'order_line_items', ['variant_id'])
    op.create_index('ix_line_items_order_variant', 'order_line_items', ['order_id', 'variant_id'])

    op.create_table(
        'sync_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('synced_at', sa.DateTime(), nullable=False),
        sa.Column('orders_fetched', sa.Integer(), nullable=False),
        sa.Column('variants_updated', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('success', 'error')", name='ck_sync_history_status'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sync_history_synced_at', 'sync_history', ['synced_at'])


def downgrade():
    op.drop_index('ix_sync_history_synced_at', table_name='sync_history')
    op.drop_table('sync_history')
    op.drop_index('ix_line_items_order_variant', table_name='order_line_items')
    op.drop_index('ix_order_line_items_variant_id', table_name='order_line_items')
    op.drop_index('ix_order_line_items_order_id', table_name='order_line_items')
    op.drop_table('order_line_items')
    op.drop_index('ix_orders_order_date', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_order_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_tasks_status', table_name='tasks')
    op.drop_index('ix_tasks_variant_id', table_name='tasks')
    op.drop_table('tasks')
