from scoreboard import db, bcrypt
from flask_login import UserMixin
from sqlalchemy.orm import deferred
from datetime import datetime, timezone
import json
import uuid

GAME_STATUSES = ('PREGAME', 'LIVE', 'HALFTIME', 'FULLTIME')
PERIODS = ('1H', '2H', 'OT1', 'OT2', 'PEN')
HOME_TEAM_CODE = 'HOME'
AWAY_TEAM_CODE = 'OPP'


def utcnow():
    """Naive UTC timestamp; the columns below store UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_stream_secret():
    return uuid.uuid4().hex


class Streamer(UserMixin, db.Model):
    __tablename__ = 'streamer'
    id = db.Column(db.Integer, primary_key=True)
    # Public key embedded in overlay URLs; token proves owner-adjacent access
    stream_key = db.Column(db.String(32), unique=True, nullable=False, index=True, default=generate_stream_secret)
    stream_token = db.Column(db.String(32), unique=True, nullable=False, default=generate_stream_secret)
    display_name = db.Column(db.String(100), nullable=False)
    email_address = db.Column(db.String(256), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_blocked = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    modified_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    teams = db.relationship('Team', back_populates='streamer', lazy='dynamic')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'display_name': self.display_name,
            'email_address': self.email_address,
            'stream_key': self.stream_key,
        }


class Sport(db.Model):
    __tablename__ = 'sport'
    id = db.Column(db.Integer, primary_key=True)
    sport_code = db.Column(db.String(8), unique=True, nullable=False)
    sport_name = db.Column(db.String(64), nullable=False)
    halves_count = db.Column(db.Integer, default=2, nullable=False)
    period_name = db.Column(db.String(32), default='Half', nullable=False)
    has_cards = db.Column(db.Boolean, default=True, nullable=False)
    has_timer = db.Column(db.Boolean, default=True, nullable=False)
    timer_direction = db.Column(db.String(4), default='UP', nullable=False)
    default_period_length_seconds = db.Column(db.Integer, default=2700, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)


class Team(db.Model):
    __tablename__ = 'team'
    __table_args__ = (
        db.UniqueConstraint('streamer_id', 'team_code', name='uq_team_streamer_code'),
    )
    id = db.Column(db.Integer, primary_key=True)
    streamer_id = db.Column(db.Integer, db.ForeignKey('streamer.id'), nullable=False, index=True)
    sport_id = db.Column(db.Integer, db.ForeignKey('sport.id'), nullable=False)
    team_name = db.Column(db.String(100), nullable=False)
    team_code = db.Column(db.String(20), nullable=False)  # HOME or OPP, stable lookup key
    jersey_color = db.Column(db.String(9), nullable=True)
    number_color = db.Column(db.String(9), nullable=True)
    # Base64 data URI, hundreds of KB; only read by the logo query
    logo_url = deferred(db.Column(db.Text, nullable=True))
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    modified_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    streamer = db.relationship('Streamer', back_populates='teams')
    sport = db.relationship('Sport')


class Game(db.Model):
    __tablename__ = 'game'
    __table_args__ = (
        db.CheckConstraint('home_team_id <> away_team_id', name='ck_game_different_teams'),
        db.CheckConstraint(
            "game_status IN ('PREGAME', 'LIVE', 'HALFTIME', 'FULLTIME')", name='ck_game_status'),
        db.CheckConstraint("timer_direction IN ('UP', 'DOWN')", name='ck_game_timer_direction'),
        db.CheckConstraint(
            "current_period IN ('1H', '2H', 'OT1', 'OT2', 'PEN')", name='ck_game_current_period'),
        db.CheckConstraint('elapsed_seconds_at_pause >= 0', name='ck_game_elapsed'),
        # At most one open game per streamer, enforced by storage itself
        db.Index(
            'ux_game_active_per_streamer', 'streamer_id', unique=True,
            sqlite_where=db.text("is_active = 1 AND game_status <> 'FULLTIME'"),
            postgresql_where=db.text("is_active AND game_status <> 'FULLTIME'"),
        ),
    )
    id = db.Column(db.Integer, primary_key=True)
    streamer_id = db.Column(db.Integer, db.ForeignKey('streamer.id'), nullable=False)
    sport_id = db.Column(db.Integer, db.ForeignKey('sport.id'), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    game_date = db.Column(db.DateTime, default=utcnow, nullable=False)
    venue = db.Column(db.String(200), nullable=True)

    # Timer state, persisted so a restart can rebuild the clock
    timer_started_at = db.Column(db.DateTime, nullable=True)
    elapsed_seconds_at_pause = db.Column(db.Integer, default=0, nullable=False)
    timer_running = db.Column(db.Boolean, default=False, nullable=False)
    timer_direction = db.Column(db.String(4), default='UP', nullable=False)
    timer_set_seconds = db.Column(db.Integer, default=0, nullable=False)

    game_status = db.Column(db.String(20), default='PREGAME', nullable=False)
    current_period = db.Column(db.String(4), default='1H', nullable=False)
    half_length_minutes = db.Column(db.Integer, default=45, nullable=False)
    ot_length_minutes = db.Column(db.Integer, default=5, nullable=False)
    home_penalty_kicks = db.Column(db.Text, default='[]', nullable=False)  # JSON-encoded list of goal/miss
    away_penalty_kicks = db.Column(db.Text, default='[]', nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    modified_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    sport = db.relationship('Sport')
    home_team = db.relationship('Team', foreign_keys=[home_team_id])
    away_team = db.relationship('Team', foreign_keys=[away_team_id])
    team_stats = db.relationship('GameTeamStats', back_populates='game', cascade='all, delete-orphan')

    def __init__(self, **kwargs):
        # Column defaults only apply on INSERT; the state machine reads these before flush
        kwargs.setdefault('elapsed_seconds_at_pause', 0)
        kwargs.setdefault('timer_running', False)
        kwargs.setdefault('timer_direction', 'UP')
        kwargs.setdefault('timer_set_seconds', 0)
        kwargs.setdefault('game_status', 'PREGAME')
        kwargs.setdefault('current_period', '1H')
        kwargs.setdefault('half_length_minutes', 45)
        kwargs.setdefault('ot_length_minutes', 5)
        kwargs.setdefault('home_penalty_kicks', '[]')
        kwargs.setdefault('away_penalty_kicks', '[]')
        kwargs.setdefault('is_active', True)
        super(Game, self).__init__(**kwargs)

    def penalty_kicks(self, is_home):
        raw = self.home_penalty_kicks if is_home else self.away_penalty_kicks
        try:
            kicks = json.loads(raw or '[]')
        except ValueError:
            kicks = []
        return kicks if isinstance(kicks, list) else []

    def set_penalty_kicks(self, is_home, kicks):
        encoded = json.dumps(list(kicks))
        if is_home:
            self.home_penalty_kicks = encoded
        else:
            self.away_penalty_kicks = encoded

    def stats_for(self, is_home):
        for stats in self.team_stats:
            if stats.is_home == is_home:
                return stats
        return None


class GameTeamStats(db.Model):
    __tablename__ = 'game_team_stats'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'team_id', name='uq_game_team_stats_game_team'),
        db.CheckConstraint('score >= 0', name='ck_game_team_stats_score'),
        db.CheckConstraint('yellow_cards >= 0 AND yellow_cards <= 3', name='ck_game_team_stats_yellow'),
        db.CheckConstraint('red_cards >= 0 AND red_cards <= 3', name='ck_game_team_stats_red'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('team.id'), nullable=False)
    is_home = db.Column(db.Boolean, default=False, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    yellow_cards = db.Column(db.Integer, default=0, nullable=False)
    red_cards = db.Column(db.Integer, default=0, nullable=False)
    modified_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    game = db.relationship('Game', back_populates='team_stats')
    team = db.relationship('Team')

    def __init__(self, **kwargs):
        kwargs.setdefault('score', 0)
        kwargs.setdefault('yellow_cards', 0)
        kwargs.setdefault('red_cards', 0)
        super(GameTeamStats, self).__init__(**kwargs)
