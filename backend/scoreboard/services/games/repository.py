"""Storage access for games, team stats and teams.

The state machine and the sync engine only talk to storage through this
class. The session/transaction handling is Flask-SQLAlchemy's; each save
commits. Storage enforces the single-open-game rule with a partial unique
index, which surfaces here as ActiveGameConflict.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from flask import current_app
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from scoreboard import db
from scoreboard.errors import ActiveGameConflict
from scoreboard.models import (
    Game, GameTeamStats, Sport, Team, HOME_TEAM_CODE, AWAY_TEAM_CODE, utcnow,
)

DEFAULT_SPORTS = {
    'SOC': {
        'sport_name': 'Soccer',
        'halves_count': 2,
        'period_name': 'Half',
        'has_cards': True,
        'has_timer': True,
        'timer_direction': 'UP',
        'default_period_length_seconds': 2700,
    },
}

DEFAULT_TEAM_LOOK = {
    HOME_TEAM_CODE: {'team_name': 'Home', 'jersey_color': '#8B0000', 'number_color': '#FFFFFF'},
    AWAY_TEAM_CODE: {'team_name': 'Opponent', 'jersey_color': '#FFFFFF', 'number_color': '#003366'},
}


@dataclass
class GameAggregate:
    game: Game
    home_stats: Optional[GameTeamStats]
    away_stats: Optional[GameTeamStats]
    home_team: Optional[Team]
    away_team: Optional[Team]
    sport: Optional[Sport]


def _active_game_filter(streamer_id):
    return and_(
        Game.streamer_id == streamer_id,
        Game.is_active.is_(True),
        Game.game_status != 'FULLTIME',
    )


class GameRepository:

    def load_active_game(self, streamer_id: int) -> Optional[Game]:
        return (
            Game.query
            .options(selectinload(Game.team_stats))
            .filter(_active_game_filter(streamer_id))
            .first()
        )

    def load_game_aggregate(self, streamer_id: int) -> Optional[GameAggregate]:
        # Team.logo_url is deferred, so this never reads the logo blobs
        game = (
            Game.query
            .options(
                selectinload(Game.team_stats),
                selectinload(Game.home_team),
                selectinload(Game.away_team),
                selectinload(Game.sport),
            )
            .filter(_active_game_filter(streamer_id))
            .first()
        )
        if game is None:
            return None
        return GameAggregate(
            game=game,
            home_stats=game.stats_for(True),
            away_stats=game.stats_for(False),
            home_team=game.home_team,
            away_team=game.away_team,
            sport=game.sport,
        )

    def load_logos(self, streamer_id: int) -> Optional[Tuple[Optional[str], Optional[str]]]:
        row = (
            db.session.query(Game.home_team_id, Game.away_team_id)
            .filter(_active_game_filter(streamer_id))
            .first()
        )
        if row is None:
            return None
        home_id, away_id = row
        logos = dict(
            db.session.query(Team.id, Team.logo_url)
            .filter(Team.id.in_([home_id, away_id]))
            .all()
        )
        return logos.get(home_id), logos.get(away_id)

    def save_game(self, game: Game) -> None:
        game.modified_at = utcnow()
        db.session.add(game)
        db.session.commit()

    def save_team_stats(self, stats: GameTeamStats) -> None:
        stats.modified_at = utcnow()
        db.session.add(stats)
        db.session.commit()

    def save_team(self, team: Team) -> None:
        team.modified_at = utcnow()
        db.session.add(team)
        db.session.commit()

    def close_active_games(self, streamer_id: int) -> int:
        """Move every open game of this streamer to FULLTIME. Safe to repeat."""
        closed = (
            Game.query
            .filter(_active_game_filter(streamer_id))
            .update({'game_status': 'FULLTIME', 'modified_at': utcnow()}, synchronize_session=False)
        )
        db.session.commit()
        return closed

    def create_game(self, game: Game, home_stats: GameTeamStats, away_stats: GameTeamStats) -> Game:
        """Insert the game and both stats rows in one transaction."""
        try:
            db.session.add(game)
            db.session.flush()
            home_stats.game_id = game.id
            away_stats.game_id = game.id
            db.session.add_all([home_stats, away_stats])
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            current_app.logger.warning(f"[game-create-conflict] streamer={game.streamer_id} {exc.orig}")
            raise ActiveGameConflict()
        return game

    def find_team(self, streamer_id: int, team_id) -> Optional[Team]:
        if team_id is None:
            return None
        return Team.query.filter_by(id=team_id, streamer_id=streamer_id, is_active=True).first()

    def ensure_default_sport(self, sport_code: str = 'SOC') -> int:
        """Return the id of the sport row, creating it the first time."""
        sport = Sport.query.filter_by(sport_code=sport_code, is_active=True).first()
        if sport is not None:
            return sport.id
        defaults = DEFAULT_SPORTS.get(sport_code, DEFAULT_SPORTS['SOC'])
        sport = Sport(sport_code=sport_code, is_active=True, **defaults)
        db.session.add(sport)
        try:
            db.session.commit()
        except IntegrityError:
            # Created concurrently by another request
            db.session.rollback()
            sport = Sport.query.filter_by(sport_code=sport_code).first()
        return sport.id

    def ensure_default_teams(self, streamer_id: int, sport_id: int) -> Tuple[Team, Team]:
        """Return the streamer's HOME/OPP teams, creating missing ones."""
        return (
            self._ensure_team(streamer_id, sport_id, HOME_TEAM_CODE),
            self._ensure_team(streamer_id, sport_id, AWAY_TEAM_CODE),
        )

    def _ensure_team(self, streamer_id, sport_id, team_code) -> Team:
        team = Team.query.filter_by(streamer_id=streamer_id, team_code=team_code).first()
        if team is not None:
            if not team.is_active:
                team.is_active = True
                self.save_team(team)
            return team
        team = Team(
            streamer_id=streamer_id,
            sport_id=sport_id,
            team_code=team_code,
            is_default=True,
            is_active=True,
            **DEFAULT_TEAM_LOOK[team_code],
        )
        db.session.add(team)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            team = Team.query.filter_by(streamer_id=streamer_id, team_code=team_code).first()
        return team
