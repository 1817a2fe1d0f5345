"""Period selector resolution into inclusive calendar-date windows.

Windows are rolling, not calendar-aligned: "week" starts seven calendar days
before now and "month" starts one calendar month before now.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from pnl_attribution.domain import PeriodSelector, TimeWindow, domain_parse_period_selector


def analytics_resolve_time_window(period: str | PeriodSelector, now: datetime) -> TimeWindow | None:
    """Resolve one period selector against a caller-supplied current instant.

    Args:
        period: `today`, `week`, `month` or `all` (dashed aliases accepted).
        now: Current instant, already expressed in the reporting timezone.

    Returns:
        TimeWindow | None: Inclusive date window ending on the date of `now`, or None for all-time.

    Raises:
        ValueError: Raised when period is unsupported or now is not a datetime.
    """

    selector = domain_parse_period_selector(period)
    if not isinstance(now, datetime):
        raise ValueError("now must be a datetime")

    if selector is PeriodSelector.ALL_TIME:
        return None

    end_date = now.date()
    if selector is PeriodSelector.TODAY:
        start_date = end_date
    elif selector is PeriodSelector.THIS_WEEK:
        start_date = (now - timedelta(days=7)).date()
    else:
        # relativedelta clamps the day to the end of a shorter target month
        start_date = (now - relativedelta(months=1)).date()

    return TimeWindow(start_date=start_date, end_date=end_date)


def analytics_current_instant(report_timezone: str) -> datetime:
    """Return the current instant in the reporting timezone.

    Args:
        report_timezone: IANA timezone name.

    Returns:
        datetime: Offset-aware current instant.

    Raises:
        ZoneInfoNotFoundError: Raised when the timezone is unknown.
    """

    return datetime.now(ZoneInfo(report_timezone))


__all__ = ["analytics_current_instant", "analytics_resolve_time_window"]
