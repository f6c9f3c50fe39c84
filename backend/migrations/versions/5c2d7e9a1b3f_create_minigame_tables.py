"""create room, session, lobby, pick, golden and score tables

Revision ID: 5c2d7e9a1b3f
Revises:
Create Date: 2025-12-06 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d7e9a1b3f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'room' not in existing_tables:
        op.create_table(
            'room',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('code', sa.String(length=8), nullable=False),
            sa.Column('leader_uid', sa.String(length=128), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index('ix_room_code', 'room', ['code'], unique=True)

    if 'room_member' not in existing_tables:
        op.create_table(
            'room_member',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
            sa.Column('uid', sa.String(length=128), nullable=False),
            sa.Column('display_name', sa.String(length=64), nullable=False),
            sa.Column('role', sa.String(length=16), nullable=False),
            sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('room_id', 'uid', name='uq_room_member'),
        )

    if 'game_session' not in existing_tables:
        op.create_table(
            'game_session',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('room_id', sa.Integer(), sa.ForeignKey('room.id'), nullable=False),
            sa.Column('gameweek', sa.Integer(), nullable=False),
            sa.Column('state', sa.String(length=16), nullable=False),
            sa.Column('leader_uid', sa.String(length=128), nullable=True),
            sa.Column('play_order', sa.Text(), nullable=True),
            sa.Column('fixture_ids', sa.Text(), nullable=True),
            sa.Column('current_turn', sa.Integer(), nullable=False),
            sa.Column('total_turns', sa.Integer(), nullable=False),
            sa.Column('order_seed', sa.BigInteger(), nullable=True),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('version_id', sa.Integer(), nullable=False),
            sa.UniqueConstraint('room_id', 'gameweek', name='uq_session_room_gameweek'),
        )

    if 'lobby_entry' not in existing_tables:
        op.create_table(
            'lobby_entry',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
            sa.Column('uid', sa.String(length=128), nullable=False),
            sa.Column('display_name', sa.String(length=64), nullable=False),
            sa.Column('joined_at', sa.DateTime(timezone=True), nullable=False),
            sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('session_id', 'uid', name='uq_lobby_entry'),
        )

    if 'pick' not in existing_tables:
        op.create_table(
            'pick',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
            sa.Column('uid', sa.String(length=128), nullable=False),
            sa.Column('fixture_id', sa.Integer(), nullable=False),
            sa.Column('score', sa.String(length=16), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('session_id', 'uid', 'fixture_id', name='uq_pick_player_fixture'),
            sa.UniqueConstraint('session_id', 'fixture_id', 'score', name='uq_pick_fixture_score'),
        )
        op.create_index('ix_pick_session_id', 'pick', ['session_id'])

    if 'golden_lock' not in existing_tables:
        op.create_table(
            'golden_lock',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
            sa.Column('uid', sa.String(length=128), nullable=False),
            sa.Column('fixture_id', sa.Integer(), nullable=False),
            sa.Column('score', sa.String(length=16), nullable=False),
            sa.Column('locked', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('session_id', 'uid', name='uq_golden_player'),
        )
        op.create_index('ix_golden_lock_session_id', 'golden_lock', ['session_id'])

    if 'score_record' not in existing_tables:
        op.create_table(
            'score_record',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id'), nullable=False),
            sa.Column('uid', sa.String(length=128), nullable=False),
            sa.Column('points', sa.Integer(), nullable=False),
            sa.Column('breakdown', sa.Text(), nullable=False),
            sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
            sa.UniqueConstraint('session_id', 'uid', name='uq_score_player'),
        )
        op.create_index('ix_score_record_session_id', 'score_record', ['session_id'])


def downgrade():
    op.drop_index('ix_score_record_session_id', table_name='score_record')
    op.drop_table('score_record')
    op.drop_index('ix_golden_lock_session_id', table_name='golden_lock')
    op.drop_table('golden_lock')
    op.drop_index('ix_pick_session_id', table_name='pick')
    op.drop_table('pick')
    op.drop_table('lobby_entry')
    op.drop_table('game_session')
    op.drop_table('room_member')
    op.drop_index('ix_room_code', table_name='room')
    op.drop_table('room')
