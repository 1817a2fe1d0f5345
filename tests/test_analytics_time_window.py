"""Tests for period selector resolution into inclusive date windows."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from pnl_attribution.analytics import analytics_current_instant, analytics_resolve_time_window
from pnl_attribution.domain import PeriodSelector


def test_analytics_resolve_month_clamps_to_leap_day() -> None:
    """Clamp March 31 minus one month to February 29 in a leap year.

    Returns:
        None: Assertions validate month clamping.

    Raises:
        AssertionError: Raised when clamping is wrong.
    """

    window = analytics_resolve_time_window("month", datetime(2024, 3, 31, 9, 30, tzinfo=timezone.utc))

    assert window is not None
    assert window.start_date == date(2024, 2, 29)
    assert window.end_date == date(2024, 3, 31)


def test_analytics_resolve_month_clamps_to_non_leap_february() -> None:
    """Clamp March 31 minus one month to February 28 outside leap years.

    Returns:
        None: Assertions validate month clamping.

    Raises:
        AssertionError: Raised when clamping is wrong.
    """

    window = analytics_resolve_time_window(PeriodSelector.THIS_MONTH, datetime(2023, 3, 31, tzinfo=timezone.utc))

    assert window is not None
    assert window.start_date == date(2023, 2, 28)


def test_analytics_resolve_today_and_week() -> None:
    """Resolve `today` to one day and `week` to seven days back.

    Returns:
        None: Assertions validate rolling windows.

    Raises:
        AssertionError: Raised when window bounds diverge.
    """

    now = datetime(2024, 3, 5, 23, 59, tzinfo=timezone.utc)

    today_window = analytics_resolve_time_window("today", now)
    week_window = analytics_resolve_time_window("this-week", now)

    assert today_window is not None
    assert today_window.start_date == today_window.end_date == date(2024, 3, 5)
    assert week_window is not None
    assert week_window.start_date == date(2024, 2, 27)
    assert week_window.end_date == date(2024, 3, 5)


def test_analytics_resolve_all_time_returns_no_window() -> None:
    """Resolve `all` to an unbounded window.

    Returns:
        None: Assertions validate unbounded resolution.

    Raises:
        AssertionError: Raised when a window is returned.
    """

    assert analytics_resolve_time_window("all", datetime(2024, 3, 5, tzinfo=timezone.utc)) is None


def test_analytics_resolve_rejects_unknown_period() -> None:
    """Reject unsupported period labels.

    Returns:
        None: Assertions validate rejection.

    Raises:
        AssertionError: Raised when no error is raised.
    """

    with pytest.raises(ValueError, match="unsupported period"):
        analytics_resolve_time_window("quarter", datetime(2024, 3, 5, tzinfo=timezone.utc))


def test_analytics_current_instant_is_timezone_aware() -> None:
    """Return an offset-aware instant for the reporting timezone.

    Returns:
        None: Assertions validate tz awareness.

    Raises:
        AssertionError: Raised when instant is naive.
    """

    instant = analytics_current_instant("UTC")

    assert instant.tzinfo is not None
