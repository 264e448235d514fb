"""Create risk_assessments

Revision ID: 3b1f9c2d7a10
Revises:
Create Date: 2026-10-19 10:12:31.204518
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f9c2d7a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'risk_assessments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False),
        sa.Column('gender', sa.String(length=16), nullable=False),
        sa.Column('systolic_bp', sa.Integer(), nullable=False),
        sa.Column('diastolic_bp', sa.Integer(), nullable=False),
        sa.Column('cholesterol', sa.Float(), nullable=False),
        sa.Column('diabetes', sa.Boolean(), nullable=False),
        sa.Column('risk_score', sa.String(length=8), nullable=False),
        sa.Column('ai_summary', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("risk_score in ('Low','Medium','High')", name='ck_risk_assessments_risk_score'),
        sa.CheckConstraint("gender in ('Male','Female','Other')", name='ck_risk_assessments_gender'),
    )
    op.create_index('idx_risk_assessments_user_created', 'risk_assessments', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('idx_risk_assessments_user_created', table_name='risk_assessments')
    op.drop_table('risk_assessments')
