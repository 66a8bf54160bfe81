"""create_purchase_requests

Revision ID: 3f9a1c2d7e10
Revises:
Create Date: 2026-10-18 09:12:44.120331+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7e10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('purchase_requests',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('requester', sa.String(length=200), nullable=False),
    sa.Column('requester_email', sa.String(length=255), nullable=False),
    sa.Column('item_name', sa.String(length=255), nullable=False),
    sa.Column('quantity', sa.Integer(), nullable=False),
    sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('delivery_charges', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('tax_amount', sa.Numeric(precision=12, scale=2), nullable=False),
    sa.Column('total_price', sa.Numeric(precision=14, scale=2), nullable=False),
    sa.Column('approver_email', sa.String(length=255), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.Column('decided_at', sa.DateTime(), nullable=True),
    sa.CheckConstraint('quantity > 0', name='chk_pr_quantity'),
    sa.CheckConstraint('unit_price > 0', name='chk_pr_unit_price'),
    sa.CheckConstraint('delivery_charges >= 0 AND tax_amount >= 0', name='chk_pr_charges'),
    sa.CheckConstraint("status IN ('Pending', 'Approved', 'Rejected')", name='chk_pr_status'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_pr_approver_status', 'purchase_requests', ['approver_email', 'status'], unique=False)
    op.create_index('idx_pr_requester', 'purchase_requests', ['requester'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_pr_requester', table_name='purchase_requests')
    op.drop_index('idx_pr_approver_status', table_name='purchase_requests')
    op.drop_table('purchase_requests')
