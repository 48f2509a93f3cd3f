from __future__ import annotations

from .codec import STATE_KEYS, decode, encode, has_state, with_state, without_state
from .models import (
    ALL_MARGIN,
    AUTO_MARGIN,
    DEFAULT_CONFIGURATION,
    DEFAULT_PERCENTS,
    DEFAULT_YEAR_GROUP,
    PERCENT_OPTIONS,
    Configuration,
    MarginKind,
    MaxPointMargin,
    PlotType,
    YearGroup,
    format_time_for_api,
    merge_state,
)

__all__ = [
    "ALL_MARGIN",
    "AUTO_MARGIN",
    "DEFAULT_CONFIGURATION",
    "DEFAULT_PERCENTS",
    "DEFAULT_YEAR_GROUP",
    "PERCENT_OPTIONS",
    "STATE_KEYS",
    "Configuration",
    "MarginKind",
    "MaxPointMargin",
    "PlotType",
    "YearGroup",
    "decode",
    "encode",
    "format_time_for_api",
    "has_state",
    "merge_state",
    "with_state",
    "without_state",
]
