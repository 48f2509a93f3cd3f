from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import structlog

from ..filters import GameFilter
from ..seasons.models import SEASON_TYPE_ALL, SEASON_TYPE_PLAYOFFS, SEASON_TYPE_REGULAR

logger = structlog.get_logger(__name__)

MIN_YEAR = 1996
MAX_YEAR = 2030

PERCENT_OPTIONS: Tuple[str, ...] = ("33", "25", "20", "15", "10", "5", "1", "Record")
DEFAULT_PERCENTS: Tuple[str, ...] = ("20", "10", "5", "1", "Record")
DEFAULT_START_TIME = 24

# Sub-minute start times, in minutes
SUB_MINUTE_TIMES: Dict[str, float] = {
    "45s": 0.75,
    "30s": 0.5,
    "15s": 0.25,
    "10s": 1 / 6,
    "5s": 1 / 12,
}


class PlotType(Enum):
    PERCENT_VS_TIME = "Percent Chance: Time Vs. Points Down"
    MAX_DEFICIT_OR_MORE = "Max Points Down Or More"
    MAX_DEFICIT = "Max Points Down"
    DEFICIT_AT_TIME = "Points Down At Time"

    @property
    def index(self) -> int:
        return list(PlotType).index(self)

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_index(cls, index: int) -> Optional["PlotType"]:
        members = list(cls)
        if 0 <= index < len(members):
            return members[index]
        return None

    @property
    def time_range(self) -> Tuple[int, int]:
        if self is PlotType.PERCENT_VS_TIME:
            return 6, 24
        return 1, 48


def _sub_minute_token(value: float) -> Optional[str]:
    for token, minutes in SUB_MINUTE_TIMES.items():
        if abs(value - minutes) < 0.001:
            return token
    return None


def is_valid_start_time(plot_type: PlotType, value: Union[int, float]) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if plot_type is not PlotType.PERCENT_VS_TIME and _sub_minute_token(value) is not None:
        return True
    low, high = plot_type.time_range
    return float(value).is_integer() and low <= value <= high


def format_time_token(value: Union[int, float]) -> str:
    """Query-string form of a start time: whole minutes or a sub-minute token such as ``45s``."""
    token = _sub_minute_token(value)
    if token is not None:
        return token
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_time_for_api(value: Union[int, float]) -> Union[str, int, float]:
    token = _sub_minute_token(value)
    if token is not None:
        return token
    return int(value) if float(value).is_integer() else value


class MarginKind(Enum):
    AUTO = "auto"
    ALL = "all"
    FIXED = "fixed"


@dataclass(frozen=True)
class MaxPointMargin:
    kind: MarginKind
    points: Optional[int] = None

    def __post_init__(self) -> None:
        if self.kind is MarginKind.FIXED:
            if isinstance(self.points, bool) or not isinstance(self.points, int) or self.points < 1:
                raise ValueError(f"fixed max point margin must be a positive int, got {self.points!r}")
        elif self.points is not None:
            raise ValueError(f"{self.kind.value} max point margin takes no points")

    @classmethod
    def fixed(cls, points: int) -> "MaxPointMargin":
        return cls(MarginKind.FIXED, points)

    @property
    def token(self) -> str:
        if self.kind is MarginKind.FIXED:
            return str(self.points)
        return self.kind.value

    @property
    def legacy_value(self) -> Optional[int]:
        """Numeric form used by the chart calculators: None for auto, 1000 for all."""
        if self.kind is MarginKind.AUTO:
            return None
        if self.kind is MarginKind.ALL:
            return 1000
        return self.points


AUTO_MARGIN = MaxPointMargin(MarginKind.AUTO)
ALL_MARGIN = MaxPointMargin(MarginKind.ALL)


@dataclass(frozen=True)
class YearGroup:
    min_year: int
    max_year: int
    regular_season: bool = True
    playoffs: bool = True

    def __post_init__(self) -> None:
        if not (MIN_YEAR <= self.min_year <= self.max_year <= MAX_YEAR):
            raise ValueError(
                f"invalid year range {self.min_year}-{self.max_year} "
                f"(must satisfy {MIN_YEAR} <= min <= max <= {MAX_YEAR})"
            )
        if not self.regular_season and not self.playoffs:
            object.__setattr__(self, "regular_season", True)
            object.__setattr__(self, "playoffs", True)

    @property
    def season_type_char(self) -> str:
        if self.regular_season and not self.playoffs:
            return "R"
        if self.playoffs and not self.regular_season:
            return "P"
        return "B"

    @property
    def season_type(self) -> str:
        return {"R": SEASON_TYPE_REGULAR, "P": SEASON_TYPE_PLAYOFFS}.get(self.season_type_char, SEASON_TYPE_ALL)

    @property
    def label(self) -> str:
        prefix = "" if self.season_type_char == "B" else self.season_type_char
        return f"{prefix}{self.min_year}-{self.max_year}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_year": self.min_year,
            "max_year": self.max_year,
            "regular_season": self.regular_season,
            "playoffs": self.playoffs,
            "label": self.label,
        }


DEFAULT_YEAR_GROUP = YearGroup(2017, 2024, True, True)


def _clean_percents(percents: Iterable[str]) -> Tuple[str, ...]:
    cleaned = []
    for pct in percents:
        if pct in PERCENT_OPTIONS and pct not in cleaned:
            cleaned.append(pct)
    return tuple(cleaned) or DEFAULT_PERCENTS


@dataclass(frozen=True)
class Configuration:
    plot_type: PlotType = PlotType.PERCENT_VS_TIME
    start_time: Union[int, float] = DEFAULT_START_TIME
    selected_percents: Tuple[str, ...] = DEFAULT_PERCENTS
    plot_guides: bool = False
    plot_calculated_guides: bool = False
    max_point_margin: MaxPointMargin = AUTO_MARGIN
    year_groups: Tuple[YearGroup, ...] = (DEFAULT_YEAR_GROUP,)
    game_filters: Tuple[GameFilter, ...] = field(default_factory=tuple)

    def normalized(self) -> "Configuration":
        """Reset fields the plot type ignores and apply the non-empty fallbacks."""
        start_time = self.start_time
        if not is_valid_start_time(self.plot_type, start_time):
            start_time = DEFAULT_START_TIME
        if self.plot_type is PlotType.PERCENT_VS_TIME:
            percents = _clean_percents(self.selected_percents)
            guides = (bool(self.plot_guides), bool(self.plot_calculated_guides))
            margin = AUTO_MARGIN
        else:
            percents = DEFAULT_PERCENTS
            guides = (False, False)
            margin = self.max_point_margin
        return Configuration(
            plot_type=self.plot_type,
            start_time=start_time,
            selected_percents=percents,
            plot_guides=guides[0],
            plot_calculated_guides=guides[1],
            max_point_margin=margin,
            year_groups=tuple(self.year_groups) or (DEFAULT_YEAR_GROUP,),
            game_filters=tuple(self.game_filters),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plot_type": self.plot_type.label,
            "plot_type_index": self.plot_type.index,
            "start_time": format_time_for_api(self.start_time),
            "selected_percents": list(self.selected_percents),
            "plot_guides": self.plot_guides,
            "plot_calculated_guides": self.plot_calculated_guides,
            "max_point_margin": self.max_point_margin.token,
            "year_groups": [group.to_dict() for group in self.year_groups],
            "game_filters": [f.to_params() for f in self.game_filters],
        }


DEFAULT_CONFIGURATION = Configuration()

_SEQUENCE_FIELDS = ("selected_percents", "year_groups", "game_filters")
_FIELD_NAMES = tuple(f.name for f in dataclasses.fields(Configuration))


def merge_state(base: Configuration, partial: Mapping[str, Any]) -> Configuration:
    """Apply a partial update onto a full configuration.

    ``None`` values leave the base field untouched and unknown keys are logged
    and ignored. The result is normalized.
    """
    changes: Dict[str, Any] = {}
    for name, value in partial.items():
        if name not in _FIELD_NAMES:
            logger.warning("state_field_unknown", field=name)
            continue
        if value is None:
            continue
        changes[name] = tuple(value) if name in _SEQUENCE_FIELDS else value
    return dataclasses.replace(base, **changes).normalized()
