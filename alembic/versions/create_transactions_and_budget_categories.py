"""create_transactions_and_budget_categories

Revision ID: create_transactions_and_budget_categories
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'create_transactions_and_budget_categories'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint(
            'user_id', 'description', 'amount', 'category', 'date',
            name='uq_transactions_owner_tuple',
        ),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])

    op.create_table(
        'budget_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'name', name='uq_budget_categories_owner_name'),
    )
    op.create_index('ix_budget_categories_user_id', 'budget_categories', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_budget_categories_user_id', table_name='budget_categories')
    op.drop_table('budget_categories')
    op.drop_index('ix_transactions_user_id', table_name='transactions')
    op.drop_table('transactions')
