"""Game and timer transitions for one streamer's active game.

Pure(ish) logic: functions mutate the Game / GameTeamStats / Team objects
handed to them and never touch the session. Out-of-range numbers are
clamped and unknown enum-like tokens fall back to a safe value instead of
failing the mutation; the overlay keeps running whatever the controller
sends.
"""
import re
from datetime import datetime
from typing import Optional

from scoreboard.models import GAME_STATUSES, PERIODS
from .timer import UP, DOWN, seconds_since

MAX_SCORE = 999
MAX_CARDS = 3
MAX_TIMER_SECONDS = 36000
HALF_LENGTH_RANGE = (1, 120)
OT_LENGTH_RANGE = (1, 60)
DEFAULT_MAX_PENALTY_KICKS = 15
DEFAULT_MAX_TEAM_NAME_LENGTH = 50

PENALTY_RESULTS = ('goal', 'miss')
HEX_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{3,8}$')
LOGO_MIME_PREFIXES = ('data:image/png', 'data:image/jpeg', 'data:image/webp')


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _to_int(value, default: int = 0) -> int:
    # JSON allows Infinity/NaN; int() raises OverflowError on the former
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _text(value) -> str:
    """Non-string payload fields are treated as missing."""
    return value if isinstance(value, str) else ''


# ---- Timer ----

def start_timer(game, now: datetime) -> bool:
    if game.timer_running:
        return False
    game.timer_started_at = now
    game.timer_running = True
    if game.game_status == 'PREGAME':
        game.game_status = 'LIVE'
    return True


def stop_timer(game, now: datetime) -> bool:
    if not game.timer_running:
        return False
    game.elapsed_seconds_at_pause = int(game.elapsed_seconds_at_pause or 0) + seconds_since(game.timer_started_at, now)
    game.timer_running = False
    game.timer_started_at = None
    return True


def reset_timer(game) -> None:
    game.timer_running = False
    game.timer_started_at = None
    game.elapsed_seconds_at_pause = 0


def set_timer(game, seconds) -> None:
    """Make the clock read `seconds`.

    Counting up, the elapsed position moves to `seconds`. Counting down,
    `seconds` becomes the target and nothing has elapsed against it yet.
    """
    seconds = clamp(_to_int(seconds), 0, MAX_TIMER_SECONDS)
    game.timer_set_seconds = seconds
    if game.timer_direction == DOWN:
        game.elapsed_seconds_at_pause = 0
    else:
        game.elapsed_seconds_at_pause = seconds


def set_timer_mode(game, count_down: bool) -> None:
    # Elapsed/target are left alone; follow with set_timer for a clean display
    game.timer_direction = DOWN if count_down else UP


# ---- Score / cards ----

def update_score(stats, value) -> None:
    stats.score = clamp(_to_int(value), 0, MAX_SCORE)


def update_cards(stats, is_yellow: bool, count) -> None:
    clamped = clamp(_to_int(count), 0, MAX_CARDS)
    if is_yellow:
        stats.yellow_cards = clamped
    else:
        stats.red_cards = clamped


# ---- Status / period ----

def normalize_status(status) -> Optional[str]:
    normalized = _text(status).strip().upper()
    return normalized if normalized in GAME_STATUSES else None


def set_status(game, status) -> bool:
    """Unknown statuses leave the current one in place."""
    normalized = normalize_status(status)
    if normalized is None:
        return False
    game.game_status = normalized
    return True


def normalize_period(period) -> str:
    normalized = _text(period).strip().upper()
    return normalized if normalized in PERIODS else PERIODS[0]


def set_period(game, period, half_length_minutes=None, ot_length_minutes=None) -> None:
    game.current_period = normalize_period(period)
    if half_length_minutes is not None:
        game.half_length_minutes = clamp(_to_int(half_length_minutes, 45), *HALF_LENGTH_RANGE)
    if ot_length_minutes is not None:
        game.ot_length_minutes = clamp(_to_int(ot_length_minutes, 5), *OT_LENGTH_RANGE)


# ---- Penalty shoot-out ----

def normalize_penalty_result(result) -> str:
    normalized = _text(result).strip().lower() or 'goal'
    return normalized if normalized in PENALTY_RESULTS else 'goal'


def record_penalty_kick(game, is_home: bool, result, max_kicks: int = DEFAULT_MAX_PENALTY_KICKS) -> bool:
    kicks = game.penalty_kicks(is_home)
    if len(kicks) >= max_kicks:
        return False
    kicks.append(normalize_penalty_result(result))
    game.set_penalty_kicks(is_home, kicks)
    return True


def undo_penalty_kick(game, is_home: bool) -> bool:
    kicks = game.penalty_kicks(is_home)
    if not kicks:
        return False
    kicks.pop()
    game.set_penalty_kicks(is_home, kicks)
    return True


def reset_penalties(game) -> None:
    game.set_penalty_kicks(True, [])
    game.set_penalty_kicks(False, [])


# ---- Whole-game reset ----

def reset_game(game) -> None:
    """Rematch on the same row: clock, scores, cards, kicks back to kick-off."""
    reset_timer(game)
    game.timer_set_seconds = 0
    game.game_status = 'PREGAME'
    game.current_period = PERIODS[0]
    reset_penalties(game)
    for stats in game.team_stats:
        stats.score = 0
        stats.yellow_cards = 0
        stats.red_cards = 0


# ---- Team identity / appearance ----

def sanitize_team_name(name, max_length: int = DEFAULT_MAX_TEAM_NAME_LENGTH) -> Optional[str]:
    sanitized = _text(name).strip()[:max_length].strip()
    return sanitized or None


def update_team_name(team, name, max_length: int = DEFAULT_MAX_TEAM_NAME_LENGTH) -> bool:
    sanitized = sanitize_team_name(name, max_length)
    if sanitized is None:
        return False
    team.team_name = sanitized
    return True


def is_valid_color(value) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_RE.match(value))


def is_valid_logo(value) -> bool:
    if not isinstance(value, str):
        return False
    lowered = value[:32].lower()
    return any(lowered.startswith(prefix + ';base64,') for prefix in LOGO_MIME_PREFIXES)


def update_team_appearance(team, jersey_color=None, number_color=None, logo_data=None) -> bool:
    """Apply whichever fields are valid; returns True if the logo changed."""
    if is_valid_color(jersey_color):
        team.jersey_color = jersey_color
    if is_valid_color(number_color):
        team.number_color = number_color
    if is_valid_logo(logo_data):
        team.logo_url = logo_data
        return True
    return False
