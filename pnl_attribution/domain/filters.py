"""Immutable filter value types passed into every attribution query.

A filter is built once per request at the boundary (HTTP query params or CLI
arguments) and is never mutated afterwards, so concurrent calls with different
filters cannot share partial state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class TradingEnvironment(str, Enum):
    """Exchange environment that a decision or trade belongs to."""

    TESTNET = "testnet"
    MAINNET = "mainnet"


class PeriodSelector(str, Enum):
    """Coarse period choice resolved into a concrete calendar-date window."""

    TODAY = "today"
    THIS_WEEK = "week"
    THIS_MONTH = "month"
    ALL_TIME = "all"


_DOMAIN_PERIOD_ALIASES = {
    "today": PeriodSelector.TODAY,
    "week": PeriodSelector.THIS_WEEK,
    "this-week": PeriodSelector.THIS_WEEK,
    "this_week": PeriodSelector.THIS_WEEK,
    "month": PeriodSelector.THIS_MONTH,
    "this-month": PeriodSelector.THIS_MONTH,
    "this_month": PeriodSelector.THIS_MONTH,
    "all": PeriodSelector.ALL_TIME,
    "all-time": PeriodSelector.ALL_TIME,
    "all_time": PeriodSelector.ALL_TIME,
}

_DOMAIN_ALL_ACCOUNTS_SENTINEL = "all"


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive calendar-date window applied to ledger queries.

    Attributes:
        start_date: First included calendar date.
        end_date: Last included calendar date.
    """

    start_date: date
    end_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date must not be after end_date: {self.start_date.isoformat()} > {self.end_date.isoformat()}"
            )

    def as_query_params(self) -> dict[str, str]:
        """Serialize window bounds as `YYYY-MM-DD` query parameters.

        Returns:
            dict[str, str]: `start_date` and `end_date` keys.
        """

        return {"start_date": self.start_date.isoformat(), "end_date": self.end_date.isoformat()}


@dataclass(frozen=True)
class AttributionFilter:
    """Environment, account and time-window scope for one attribution call.

    Attributes:
        environment: Trading environment scope.
        account_id: Optional positive account identifier, None for all accounts.
        time_window: Optional inclusive date window, None for all-time.
    """

    environment: TradingEnvironment
    account_id: int | None = None
    time_window: TimeWindow | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.environment, TradingEnvironment):
            raise ValueError(f"environment must be a TradingEnvironment, got {self.environment!r}")
        if self.account_id is not None:
            if isinstance(self.account_id, bool) or not isinstance(self.account_id, int):
                raise ValueError("account_id must be an integer")
            if self.account_id <= 0:
                raise ValueError("account_id must be positive")

    @property
    def start_date(self) -> date | None:
        return None if self.time_window is None else self.time_window.start_date

    @property
    def end_date(self) -> date | None:
        return None if self.time_window is None else self.time_window.end_date

    def as_query_params(self) -> dict[str, str]:
        """Serialize the filter using the boundary encoding.

        Returns:
            dict[str, str]: Environment, optional account id and optional date bounds.
        """

        params = {"environment": self.environment.value}
        if self.account_id is not None:
            params["account_id"] = str(self.account_id)
        if self.time_window is not None:
            params.update(self.time_window.as_query_params())
        return params


def domain_parse_trading_environment(value: str | TradingEnvironment) -> TradingEnvironment:
    """Parse one trading environment label.

    Args:
        value: `testnet` or `mainnet`, case-insensitive.

    Returns:
        TradingEnvironment: Parsed environment.

    Raises:
        ValueError: Raised when value is blank or unsupported.
    """

    if isinstance(value, TradingEnvironment):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("environment must not be blank")
    try:
        return TradingEnvironment(value.strip().lower())
    except ValueError as error:
        raise ValueError(f"unsupported environment={value}") from error


def domain_parse_period_selector(value: str | PeriodSelector) -> PeriodSelector:
    """Parse one period selector label, accepting dashed and short aliases.

    Args:
        value: Period label such as `today`, `week`, `this-month` or `all`.

    Returns:
        PeriodSelector: Parsed selector.

    Raises:
        ValueError: Raised when value is blank or unsupported.
    """

    if isinstance(value, PeriodSelector):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("period must not be blank")
    selector = _DOMAIN_PERIOD_ALIASES.get(value.strip().lower())
    if selector is None:
        raise ValueError(f"unsupported period={value}")
    return selector


def domain_build_attribution_filter(
    environment: str | TradingEnvironment,
    account_id: int | str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> AttributionFilter:
    """Build one validated filter from boundary-encoded values.

    Args:
        environment: `testnet` or `mainnet`.
        account_id: Positive account id, `all`, or None for all accounts.
        start_date: Optional inclusive `YYYY-MM-DD` lower bound.
        end_date: Optional inclusive `YYYY-MM-DD` upper bound.

    Returns:
        AttributionFilter: Immutable validated filter.

    Raises:
        ValueError: Raised when any value is invalid or only one date bound is given.
    """

    parsed_environment = domain_parse_trading_environment(environment)
    parsed_account_id = _domain_parse_account_id(account_id)

    normalized_start = (start_date or "").strip()
    normalized_end = (end_date or "").strip()
    if bool(normalized_start) != bool(normalized_end):
        raise ValueError("start_date and end_date must be provided together")

    time_window = None
    if normalized_start:
        time_window = TimeWindow(
            start_date=_domain_parse_iso_date(normalized_start, "start_date"),
            end_date=_domain_parse_iso_date(normalized_end, "end_date"),
        )

    return AttributionFilter(
        environment=parsed_environment,
        account_id=parsed_account_id,
        time_window=time_window,
    )


def _domain_parse_account_id(value: int | str | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("account_id must be an integer")
    if isinstance(value, int):
        return value
    normalized_value = value.strip()
    if not normalized_value or normalized_value.lower() == _DOMAIN_ALL_ACCOUNTS_SENTINEL:
        return None
    try:
        return int(normalized_value)
    except ValueError as error:
        raise ValueError(f"account_id must be a positive integer, got {value}") from error


def _domain_parse_iso_date(value: str, field_name: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as error:
        raise ValueError(f"{field_name} must use YYYY-MM-DD format") from error


__all__ = [
    "AttributionFilter",
    "PeriodSelector",
    "TimeWindow",
    "TradingEnvironment",
    "domain_build_attribution_filter",
    "domain_parse_period_selector",
    "domain_parse_trading_environment",
]
