from datetime import datetime, timedelta, timezone

from scoreboard.services.games.timer import UP, DOWN, compute_live_timer, seconds_since

T0 = datetime(2026, 5, 1, 19, 0, 0)


def test_stopped_up_timer_shows_elapsed():
    assert compute_live_timer(False, None, 125, UP, 0, T0) == 125


def test_running_up_timer_adds_time_since_start():
    now = T0 + timedelta(seconds=30)
    assert compute_live_timer(True, T0, 100, UP, 0, now) == 130


def test_running_down_timer_counts_remaining():
    now = T0 + timedelta(seconds=90)
    assert compute_live_timer(True, T0, 0, DOWN, 300, now) == 210


def test_down_timer_floors_at_zero():
    now = T0 + timedelta(seconds=500)
    assert compute_live_timer(True, T0, 0, DOWN, 300, now) == 0


def test_stopped_down_timer_shows_remaining():
    assert compute_live_timer(False, None, 60, DOWN, 300, T0) == 240


def test_partial_seconds_truncate():
    now = T0 + timedelta(seconds=9, milliseconds=999)
    assert seconds_since(T0, now) == 9


def test_clock_skew_never_goes_negative():
    now = T0 - timedelta(seconds=5)
    assert seconds_since(T0, now) == 0
    assert compute_live_timer(True, T0, 40, UP, 0, now) == 40


def test_aware_and_naive_timestamps_compare():
    aware_now = (T0 + timedelta(seconds=12)).replace(tzinfo=timezone.utc)
    assert seconds_since(T0, aware_now) == 12
