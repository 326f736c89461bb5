"""create kv_record for leaderboard and inventory blobs

Revision ID: 5c2a9e71b0d4
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2a9e71b0d4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'kv_record' in set(insp.get_table_names()):
        return
    op.create_table(
        'kv_record',
        sa.Column('key', sa.String(length=255), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )


def downgrade():
    op.drop_table('kv_record')
