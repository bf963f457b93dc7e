"""initial storefront schema: users, tokens, products and carts

Revision ID: a1f3c9d2e7b4
Revises:
Create Date: 2026-03-02 12:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = 'a1f3c9d2e7b4'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('google_id', sa.String(length=64), nullable=True),
        sa.Column('password_hash', sa.String(length=128), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('picture', sa.String(length=512), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
        sa.UniqueConstraint('email', name='uq_users_email'),
        sa.UniqueConstraint('google_id', name='uq_users_google_id'),
    )
    op.create_index('ix_users_status_created_at', 'users', ['status', 'created_at'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('stock >= 0', name=op.f('ck_products_stock_non_negative')),
        sa.CheckConstraint('price >= 0', name=op.f('ck_products_price_non_negative')),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_products')),
    )

    op.create_table(
        'ephemeral_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('purpose', sa.String(length=32), nullable=False),
        sa.Column('token_digest', sa.String(length=64), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_ephemeral_tokens_user_id_users'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_ephemeral_tokens')),
        sa.UniqueConstraint('token_digest', name='uq_ephemeral_tokens_token_digest'),
    )
    op.create_index('ix_ephemeral_tokens_user_purpose', 'ephemeral_tokens', ['user_id', 'purpose'])
    op.create_index(
        'ix_ephemeral_tokens_sweep', 'ephemeral_tokens', ['purpose', 'status', 'created_at']
    )

    op.create_table(
        'carts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('order_status', sa.String(length=16), nullable=True),
        sa.Column('checked_out_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name=op.f('fk_carts_user_id_users'), ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_carts')),
    )
    op.create_index('ix_carts_status', 'carts', ['status'])
    # At most one open cart per user
    op.create_index(
        'uq_carts_open_user', 'carts', ['user_id'], unique=True,
        postgresql_where=sa.text("status = 'open'"),
        sqlite_where=sa.text("status = 'open'"),
    )

    op.create_table(
        'cart_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cart_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name=op.f('ck_cart_items_quantity_positive')),
        sa.ForeignKeyConstraint(
            ['cart_id'], ['carts.id'], name=op.f('fk_cart_items_cart_id_carts'), ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name=op.f('fk_cart_items_product_id_products'), ondelete='RESTRICT',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_cart_items')),
        sa.UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
    )


def downgrade():
    op.drop_table('cart_items')
    op.drop_index('uq_carts_open_user', table_name='carts')
    op.drop_index('ix_carts_status', table_name='carts')
    op.drop_table('carts')
    op.drop_index('ix_ephemeral_tokens_sweep', table_name='ephemeral_tokens')
    op.drop_index('ix_ephemeral_tokens_user_purpose', table_name='ephemeral_tokens')
    op.drop_table('ephemeral_tokens')
    op.drop_table('products')
    op.drop_index('ix_users_status_created_at', table_name='users')
    op.drop_table('users')
