"""Crear tablas menus y menu_items

Revision ID: a1c4e7d2b9f0
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7d2b9f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

MENU_ITEM_TYPES = ('page', 'post', 'category', 'service', 'project', 'custom-link', 'external-link')
MENU_ITEM_TARGETS = ('_self', '_blank')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'menus',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('position', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_published', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('cache_key', sa.String(length=200), nullable=False),
        sa.Column('items_cache', JSONType, nullable=False),
        sa.Column('last_cached', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_menus_slug', 'menus', ['slug'], unique=True)
    op.create_index('ix_menus_position', 'menus', ['position'])

    op.create_table(
        'menu_items',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('menu_id', sa.String(length=36), sa.ForeignKey('menus.id', ondelete='CASCADE'), nullable=False),
        sa.Column('parent_id', sa.String(length=36), sa.ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('slug', sa.String(length=120), nullable=False),
        sa.Column('type', sa.Enum(*MENU_ITEM_TYPES, name='menuitemtype'), nullable=False),
        sa.Column('reference', sa.String(length=200), nullable=True),
        sa.Column('url', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=100), nullable=True),
        sa.Column('target', sa.Enum(*MENU_ITEM_TARGETS, name='menuitemtarget'), server_default='_self', nullable=False),
        sa.Column('css_class', sa.String(length=200), nullable=True),
        sa.Column('order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_published', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('meta', JSONType, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_menu_items_menu_id', 'menu_items', ['menu_id'])
    op.create_index('ix_menu_items_parent_id', 'menu_items', ['parent_id'])
    op.create_index('ix_menu_items_slug', 'menu_items', ['slug'], unique=True)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_menu_items_slug', table_name='menu_items')
    op.drop_index('ix_menu_items_parent_id', table_name='menu_items')
    op.drop_index('ix_menu_items_menu_id', table_name='menu_items')
    op.drop_table('menu_items')
    op.drop_index('ix_menus_position', table_name='menus')
    op.drop_index('ix_menus_slug', table_name='menus')
    op.drop_table('menus')
    sa.Enum(name='menuitemtarget').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='menuitemtype').drop(op.get_bind(), checkfirst=True)
