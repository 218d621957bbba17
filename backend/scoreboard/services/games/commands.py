"""Controller commands: load, apply, persist, broadcast.

Every command runs under the streamer's lock and operates on that
streamer's single open game. With no open game a command does nothing and
returns False; absence is a normal state (the controller may not have
created a game yet). Every applied command pushes a fresh snapshot, and
appearance changes also push logos.
"""
from typing import Callable

from flask import current_app

from scoreboard.models import Game, GameTeamStats
from . import state_machine, timer
from .broadcast import Broadcaster
from .locks import TenantLocks
from .repository import GameRepository


class GameCommands:

    def __init__(self, repository: GameRepository, broadcaster: Broadcaster, locks: TenantLocks, config=None):
        self.repository = repository
        self.broadcaster = broadcaster
        self.locks = locks
        self.config = config or {}

    def _apply(self, streamer, mutate: Callable[[Game], object], tag: str, assets: bool = False) -> bool:
        with self.locks.hold(streamer.id):
            game = self.repository.load_active_game(streamer.id)
            if game is None:
                current_app.logger.debug(f"[{tag}-skip] streamer={streamer.id} no active game")
                return False
            mutate(game)
            self.repository.save_game(game)
            self.broadcaster.broadcast_state(streamer.id, streamer.stream_key)
            if assets:
                self.broadcaster.broadcast_assets(streamer.id, streamer.stream_key)
            current_app.logger.info(f"[{tag}] streamer={streamer.id} game={game.id}")
            return True

    # ---- Lifecycle ----

    def create_game(self, streamer, home_team_id=None, away_team_id=None,
                    home_team_name=None, away_team_name=None, venue=None) -> Game:
        """Close any open game, then open a fresh one at PREGAME.

        The close is committed before the insert so the storage-level
        uniqueness rule is never violated mid-transition. A concurrent
        creator that still collides gets ActiveGameConflict.
        """
        with self.locks.hold(streamer.id):
            closed = self.repository.close_active_games(streamer.id)
            sport_id = self.repository.ensure_default_sport(self.config.get('DEFAULT_SPORT_CODE', 'SOC'))
            home_team, away_team = self.repository.ensure_default_teams(streamer.id, sport_id)

            chosen = None
            if home_team_id is not None and away_team_id is not None:
                requested_home = self.repository.find_team(streamer.id, home_team_id)
                requested_away = self.repository.find_team(streamer.id, away_team_id)
                if requested_home and requested_away and requested_home.id != requested_away.id:
                    chosen = (requested_home, requested_away)
            if chosen is None:
                max_len = self.config.get('MAX_TEAM_NAME_LENGTH', state_machine.DEFAULT_MAX_TEAM_NAME_LENGTH)
                if state_machine.update_team_name(home_team, home_team_name, max_len):
                    self.repository.save_team(home_team)
                if state_machine.update_team_name(away_team, away_team_name, max_len):
                    self.repository.save_team(away_team)
                chosen = (home_team, away_team)

            home, away = chosen
            game = Game(
                streamer_id=streamer.id,
                sport_id=sport_id,
                home_team_id=home.id,
                away_team_id=away.id,
                venue=(venue.strip()[:200] if isinstance(venue, str) else '') or None,
            )
            self.repository.create_game(
                game,
                GameTeamStats(team_id=home.id, is_home=True),
                GameTeamStats(team_id=away.id, is_home=False),
            )
            current_app.logger.info(
                f"[game-create] streamer={streamer.id} game={game.id} closed_previous={closed}"
            )
            self.broadcaster.broadcast_state(streamer.id, streamer.stream_key)
            self.broadcaster.broadcast_assets(streamer.id, streamer.stream_key)
            return game

    def reset_game(self, streamer) -> bool:
        return self._apply(streamer, state_machine.reset_game, 'game-reset')

    def set_status(self, streamer, status) -> bool:
        return self._apply(streamer, lambda g: state_machine.set_status(g, status), 'status')

    def set_period(self, streamer, period, half_length_minutes=None, ot_length_minutes=None) -> bool:
        return self._apply(
            streamer,
            lambda g: state_machine.set_period(g, period, half_length_minutes, ot_length_minutes),
            'period',
        )

    # ---- Timer ----

    def start_timer(self, streamer) -> bool:
        return self._apply(streamer, lambda g: state_machine.start_timer(g, timer.utcnow()), 'timer-start')

    def stop_timer(self, streamer) -> bool:
        return self._apply(streamer, lambda g: state_machine.stop_timer(g, timer.utcnow()), 'timer-stop')

    def reset_timer(self, streamer) -> bool:
        return self._apply(streamer, state_machine.reset_timer, 'timer-reset')

    def set_timer(self, streamer, seconds) -> bool:
        return self._apply(streamer, lambda g: state_machine.set_timer(g, seconds), 'timer-set')

    def set_timer_mode(self, streamer, count_down: bool) -> bool:
        return self._apply(streamer, lambda g: state_machine.set_timer_mode(g, count_down), 'timer-mode')

    # ---- Score / cards ----

    def update_score(self, streamer, is_home: bool, value) -> bool:
        def mutate(game):
            stats = game.stats_for(is_home)
            if stats is not None:
                state_machine.update_score(stats, value)
                self.repository.save_team_stats(stats)
        return self._apply(streamer, mutate, 'score')

    def update_cards(self, streamer, is_home: bool, is_yellow: bool, count) -> bool:
        def mutate(game):
            stats = game.stats_for(is_home)
            if stats is not None:
                state_machine.update_cards(stats, is_yellow, count)
                self.repository.save_team_stats(stats)
        return self._apply(streamer, mutate, 'cards')

    # ---- Penalties ----

    def record_penalty_kick(self, streamer, is_home: bool, result) -> bool:
        max_kicks = self.config.get('MAX_PENALTY_KICKS', state_machine.DEFAULT_MAX_PENALTY_KICKS)
        return self._apply(
            streamer, lambda g: state_machine.record_penalty_kick(g, is_home, result, max_kicks), 'penalty-record'
        )

    def undo_penalty_kick(self, streamer, is_home: bool) -> bool:
        return self._apply(streamer, lambda g: state_machine.undo_penalty_kick(g, is_home), 'penalty-undo')

    def reset_penalties(self, streamer) -> bool:
        return self._apply(streamer, state_machine.reset_penalties, 'penalty-reset')

    # ---- Teams ----

    def update_team_name(self, streamer, is_home: bool, name) -> bool:
        max_len = self.config.get('MAX_TEAM_NAME_LENGTH', state_machine.DEFAULT_MAX_TEAM_NAME_LENGTH)

        def mutate(game):
            team = game.home_team if is_home else game.away_team
            if team is not None and state_machine.update_team_name(team, name, max_len):
                self.repository.save_team(team)
        return self._apply(streamer, mutate, 'team-name')

    def update_team_appearance(self, streamer, is_home: bool, jersey_color=None,
                               number_color=None, logo_data=None) -> bool:
        def mutate(game):
            team = game.home_team if is_home else game.away_team
            if team is None:
                return
            state_machine.update_team_appearance(team, jersey_color, number_color, logo_data)
            self.repository.save_team(team)
        return self._apply(streamer, mutate, 'team-appearance', assets=True)


def get_commands() -> GameCommands:
    return GameCommands(
        GameRepository(),
        current_app.extensions['broadcaster'],
        current_app.extensions['tenant_locks'],
        current_app.config,
    )
