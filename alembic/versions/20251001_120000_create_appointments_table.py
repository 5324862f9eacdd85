"""create appointments table for booking intake

Revision ID: 20251001_120000
Revises:
Create Date: 2025-10-01 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20251001_120000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the appointments table"""
    op.create_table(
        'appointments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('service_id', sa.Integer, nullable=False),
        sa.Column('start_at', sa.String(20), nullable=False,
                  comment='Canonical UTC minute, e.g. 2025-09-20T18:00:00Z'),
        sa.Column('end_at', sa.String(20), nullable=False),
        sa.Column('client_name', sa.String(120), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('client_phone', sa.String(40), nullable=True),
        sa.Column('status', sa.String(32), nullable=False, server_default='pending'),
        sa.Column('confirm_token', sa.String(36), nullable=False),
        sa.Column('cancel_token', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('confirm_token', name='uq_appointments_confirm_token'),
        sa.UniqueConstraint('cancel_token', name='uq_appointments_cancel_token'),
    )

    op.create_index('ix_appointments_start_at', 'appointments', ['start_at'])
    op.create_index('ix_appointments_service_id', 'appointments', ['service_id'])


def downgrade() -> None:
    """Drop the appointments table"""
    op.drop_index('ix_appointments_service_id', table_name='appointments')
    op.drop_index('ix_appointments_start_at', table_name='appointments')
    op.drop_table('appointments')
