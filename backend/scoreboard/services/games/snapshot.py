"""Projection of a game aggregate into the payload overlays render.

The snapshot never carries logo data; logos travel in their own, rarer
message (see assets_payload). Every snapshot stamps the server clock so
clients can extrapolate a running timer locally with the same formula as
compute_live_timer.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .timer import compute_live_timer, game_timer_seconds, utcnow


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=None).isoformat(timespec='milliseconds') + 'Z'


def _team_fields(prefix, team, stats, default_name, default_code, default_jersey, default_number):
    return {
        f'{prefix}TeamId': team.id if team else None,
        f'{prefix}TeamName': team.team_name if team else default_name,
        f'{prefix}TeamCode': team.team_code if team else default_code,
        f'{prefix}JerseyColor': (team.jersey_color if team else None) or default_jersey,
        f'{prefix}NumberColor': (team.number_color if team else None) or default_number,
        f'{prefix}Score': stats.score if stats else 0,
        f'{prefix}YellowCards': stats.yellow_cards if stats else 0,
        f'{prefix}RedCards': stats.red_cards if stats else 0,
    }


def build_snapshot(aggregate, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or utcnow()
    game = aggregate.game
    sport = aggregate.sport
    snapshot = {
        'gameId': game.id,
        'gameStatus': game.game_status,
    }
    snapshot.update(_team_fields('home', aggregate.home_team, aggregate.home_stats,
                                 'Home', 'HOME', '#8B0000', '#FFFFFF'))
    snapshot.update(_team_fields('away', aggregate.away_team, aggregate.away_stats,
                                 'Opponent', 'OPP', '#FFFFFF', '#003366'))
    snapshot.update({
        'isTimerRunning': bool(game.timer_running),
        'timerDirection': game.timer_direction,
        'elapsedSecondsAtPause': int(game.elapsed_seconds_at_pause or 0),
        'timerStartedAtUtc': isoformat_utc(game.timer_started_at),
        'timerSetSeconds': int(game.timer_set_seconds or 0),
        'currentTimerSeconds': game_timer_seconds(game, now),
        'serverTimeUtc': isoformat_utc(now),
        'currentPeriod': game.current_period,
        'halfLengthMinutes': game.half_length_minutes,
        'otLengthMinutes': game.ot_length_minutes,
        'homePenaltyKicks': game.penalty_kicks(True),
        'awayPenaltyKicks': game.penalty_kicks(False),
        'venue': game.venue,
        'gameDateUtc': isoformat_utc(game.game_date),
        'sportName': sport.sport_name if sport else 'Soccer',
        'sportCode': sport.sport_code if sport else 'SOC',
        'hasCards': sport.has_cards if sport else True,
        'hasTimer': sport.has_timer if sport else True,
        'defaultPeriodLengthSeconds': sport.default_period_length_seconds if sport else 2700,
    })
    return snapshot


def parse_utc(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.rstrip('Z'))


def refresh_clock(state: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Copy of a cached snapshot with the clock recomputed for `now`.

    Cached snapshots were built at broadcast time; a late joiner or a
    reconnecting overlay gets the live value from the stored timestamps.
    """
    now = now or utcnow()
    refreshed = dict(state)
    refreshed['currentTimerSeconds'] = compute_live_timer(
        state['isTimerRunning'],
        parse_utc(state['timerStartedAtUtc']),
        state['elapsedSecondsAtPause'],
        state['timerDirection'],
        state['timerSetSeconds'],
        now,
    )
    refreshed['serverTimeUtc'] = isoformat_utc(now)
    return refreshed


def assets_payload(logos: Optional[Tuple[Optional[str], Optional[str]]]) -> Dict[str, Optional[str]]:
    home_logo, away_logo = logos if logos else (None, None)
    return {'homeLogoUrl': home_logo, 'awayLogoUrl': away_logo}
