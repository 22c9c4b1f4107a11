"""create leaderboard table

Revision ID: 5c1e0a7f9b21
Revises:
Create Date: 2025-09-02 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c1e0a7f9b21'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Databases created by the app's startup create-if-absent already have it
    if 'leaderboard' in set(insp.get_table_names()):
        return

    op.create_table(
        'leaderboard',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_leaderboard_name'), 'leaderboard', ['name'], unique=True)


def downgrade():
    op.drop_index(op.f('ix_leaderboard_name'), table_name='leaderboard')
    op.drop_table('leaderboard')
