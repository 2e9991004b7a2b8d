"""create team and admin_user tables

Revision ID: 5c2e9a7d1b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2e9a7d1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'admin_user' not in existing_tables:
        op.create_table(
            'admin_user',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=64), nullable=False),
            sa.Column('password_hash', sa.String(length=128), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_admin_user_username', 'admin_user', ['username'], unique=True)

    if 'team' not in existing_tables:
        op.create_table(
            'team',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('team_code', sa.String(length=16), nullable=False),
            sa.Column('team_name', sa.String(length=100), nullable=False),
            sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('current_level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('checkpoint_level', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('checkpoint_score', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('correct_questions', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('incorrect_questions', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('skipped_questions', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('hint_count', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('game_loaded', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('game_start_time', sa.Float(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_team_team_code', 'team', ['team_code'], unique=True)


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'team' in existing_tables:
        op.drop_index('ix_team_team_code', table_name='team')
        op.drop_table('team')
    if 'admin_user' in existing_tables:
        op.drop_index('ix_admin_user_username', table_name='admin_user')
        op.drop_table('admin_user')
