"""Domain models used across application layer boundaries."""

from .filters import (
    AttributionFilter,
    PeriodSelector,
    TimeWindow,
    TradingEnvironment,
    domain_build_attribution_filter,
    domain_parse_period_selector,
    domain_parse_trading_environment,
)
from .models import HealthStatus
from .timeline import domain_build_stage_event

__all__ = [
    "AttributionFilter",
    "HealthStatus",
    "PeriodSelector",
    "TimeWindow",
    "TradingEnvironment",
    "domain_build_attribution_filter",
    "domain_build_stage_event",
    "domain_parse_period_selector",
    "domain_parse_trading_environment",
]
