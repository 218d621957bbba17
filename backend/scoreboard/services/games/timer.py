"""Clock arithmetic for the match timer.

The persisted fields (running flag, started-at timestamp, seconds folded in
at the last pause) are the only source of truth. The displayed value is
always derived from them plus the current wall clock, so a restarted
process, a reconnecting overlay and the snapshot builder all agree.
"""
from datetime import datetime, timezone
from typing import Optional

UP = 'UP'
DOWN = 'DOWN'


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def seconds_since(started_at: Optional[datetime], now: datetime) -> int:
    """Whole seconds between started_at and now, truncated, never negative."""
    if started_at is None:
        return 0
    delta = (_naive_utc(now) - _naive_utc(started_at)).total_seconds()
    return max(0, int(delta))


def compute_live_timer(running: bool,
                       started_at: Optional[datetime],
                       elapsed_at_pause: int,
                       direction: str,
                       set_seconds: int,
                       now: datetime) -> int:
    """Value the clock shows at `now`.

    Elapsed is the stored pause total, plus the time since the last start
    while running. Counting up shows elapsed; counting down shows what is
    left of `set_seconds`, floored at zero. Reaching zero does not stop the
    clock.
    """
    live_elapsed = elapsed_at_pause
    if running:
        live_elapsed += seconds_since(started_at, now)
    # A stopped countdown also shows what is left, so set_timer reads back
    # the value it was given in both directions
    if direction == DOWN:
        return max(0, set_seconds - live_elapsed)
    return live_elapsed


def game_timer_seconds(game, now: Optional[datetime] = None) -> int:
    return compute_live_timer(
        bool(game.timer_running),
        game.timer_started_at,
        int(game.elapsed_seconds_at_pause or 0),
        game.timer_direction or UP,
        int(game.timer_set_seconds or 0),
        now or utcnow(),
    )
