"""inventory and app settings

Revision ID: c8d2e4f6a1b3
Revises: b7c1d2e3f4a5
Create Date: 2026-10-19 12:00:00.000000

Creates:
- inventory: shop-reported stock level per variant
- app_settings: key/value settings (auto-sync schedule)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c8d2e4f6a1b3'
down_revision = 'b7c1d2e3f4a5'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'inventory',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('variant_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.String(length=255), nullable=False),
        sa.Column('product_title', sa.String(length=255), nullable=False),
        sa.Column('variant_title', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('inventory_quantity', sa.Integer(), nullable=False),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_variant_id', 'inventory', ['variant_id'], unique=True)
    op.create_index('ix_inventory_quantity', 'inventory', ['inventory_quantity'])

    op.create_table(
        'app_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=128), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
        sqlite_autoincrement=True
    )


def downgrade():
    op.drop_table('app_settings')
    op.drop_index('ix_inventory_quantity', table_name='inventory')
    op.drop_index('ix_inventory_variant_id', table_name='inventory')
    op.drop_table('inventory')
