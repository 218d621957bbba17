"""initial scoreboard schema: streamer, sport, team, game, game_team_stats

Revision ID: 3a7c9e1f2b4d
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3a7c9e1f2b4d'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'streamer',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stream_key', sa.String(length=32), nullable=False),
        sa.Column('stream_token', sa.String(length=32), nullable=False),
        sa.Column('display_name', sa.String(length=100), nullable=False),
        sa.Column('email_address', sa.String(length=256), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('is_blocked', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stream_token'),
    )
    op.create_index('ix_streamer_stream_key', 'streamer', ['stream_key'], unique=True)
    op.create_index('ix_streamer_email_address', 'streamer', ['email_address'], unique=True)

    op.create_table(
        'sport',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sport_code', sa.String(length=8), nullable=False),
        sa.Column('sport_name', sa.String(length=64), nullable=False),
        sa.Column('halves_count', sa.Integer(), nullable=False),
        sa.Column('period_name', sa.String(length=32), nullable=False),
        sa.Column('has_cards', sa.Boolean(), nullable=False),
        sa.Column('has_timer', sa.Boolean(), nullable=False),
        sa.Column('timer_direction', sa.String(length=4), nullable=False),
        sa.Column('default_period_length_seconds', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sport_code'),
    )

    op.create_table(
        'team',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('streamer_id', sa.Integer(), nullable=False),
        sa.Column('sport_id', sa.Integer(), nullable=False),
        sa.Column('team_name', sa.String(length=100), nullable=False),
        sa.Column('team_code', sa.String(length=20), nullable=False),
        sa.Column('jersey_color', sa.String(length=9), nullable=True),
        sa.Column('number_color', sa.String(length=9), nullable=True),
        sa.Column('logo_url', sa.Text(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['streamer_id'], ['streamer.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sport.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('streamer_id', 'team_code', name='uq_team_streamer_code'),
    )
    op.create_index('ix_team_streamer_id', 'team', ['streamer_id'], unique=False)

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('streamer_id', sa.Integer(), nullable=False),
        sa.Column('sport_id', sa.Integer(), nullable=False),
        sa.Column('home_team_id', sa.Integer(), nullable=False),
        sa.Column('away_team_id', sa.Integer(), nullable=False),
        sa.Column('game_date', sa.DateTime(), nullable=False),
        sa.Column('venue', sa.String(length=200), nullable=True),
        sa.Column('timer_started_at', sa.DateTime(), nullable=True),
        sa.Column('elapsed_seconds_at_pause', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('timer_running', sa.Boolean(), nullable=False),
        sa.Column('timer_direction', sa.String(length=4), nullable=False, server_default='UP'),
        sa.Column('timer_set_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('game_status', sa.String(length=20), nullable=False, server_default='PREGAME'),
        sa.Column('current_period', sa.String(length=4), nullable=False, server_default='1H'),
        sa.Column('half_length_minutes', sa.Integer(), nullable=False, server_default='45'),
        sa.Column('ot_length_minutes', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('home_penalty_kicks', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('away_penalty_kicks', sa.Text(), nullable=False, server_default='[]'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('home_team_id <> away_team_id', name='ck_game_different_teams'),
        sa.CheckConstraint("game_status IN ('PREGAME', 'LIVE', 'HALFTIME', 'FULLTIME')", name='ck_game_status'),
        sa.CheckConstraint("timer_direction IN ('UP', 'DOWN')", name='ck_game_timer_direction'),
        sa.CheckConstraint("current_period IN ('1H', '2H', 'OT1', 'OT2', 'PEN')", name='ck_game_current_period'),
        sa.CheckConstraint('elapsed_seconds_at_pause >= 0', name='ck_game_elapsed'),
        sa.ForeignKeyConstraint(['streamer_id'], ['streamer.id']),
        sa.ForeignKeyConstraint(['sport_id'], ['sport.id']),
        sa.ForeignKeyConstraint(['home_team_id'], ['team.id']),
        sa.ForeignKeyConstraint(['away_team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    # One open game per streamer
    op.create_index(
        'ux_game_active_per_streamer', 'game', ['streamer_id'], unique=True,
        sqlite_where=sa.text("is_active = 1 AND game_status <> 'FULLTIME'"),
        postgresql_where=sa.text("is_active AND game_status <> 'FULLTIME'"),
    )

    op.create_table(
        'game_team_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('is_home', sa.Boolean(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('yellow_cards', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('red_cards', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('score >= 0', name='ck_game_team_stats_score'),
        sa.CheckConstraint('yellow_cards >= 0 AND yellow_cards <= 3', name='ck_game_team_stats_yellow'),
        sa.CheckConstraint('red_cards >= 0 AND red_cards <= 3', name='ck_game_team_stats_red'),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['team_id'], ['team.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'team_id', name='uq_game_team_stats_game_team'),
    )


def downgrade():
    op.drop_table('game_team_stats')
    op.drop_index('ux_game_active_per_streamer', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_team_streamer_id', table_name='team')
    op.drop_table('team')
    op.drop_table('sport')
    op.drop_index('ix_streamer_email_address', table_name='streamer')
    op.drop_index('ix_streamer_stream_key', table_name='streamer')
    op.drop_table('streamer')
