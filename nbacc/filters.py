"""Game filters: which team plays the "for" role in a game, and against whom.

A filter is either ``MatchAll`` or a ``TeamFilter`` carrying at least one
constraint. Each side ("for" and "vs") is selected by a team abbreviation or a
standings rank bucket, never both.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

if TYPE_CHECKING:
    from .seasons.models import GameRecord


HOME = "home"
AWAY = "away"
SIDES: Tuple[str, str] = (HOME, AWAY)

_TEAM_ABBR_RE = re.compile(r"^[A-Z]{2,4}$")


class RankBucket(str, Enum):
    TOP_5 = "top_5"
    TOP_10 = "top_10"
    MID_10 = "mid_10"
    BOT_10 = "bot_10"
    BOT_5 = "bot_5"

    @property
    def token(self) -> str:
        return self.value.upper()

    def contains(self, rank: int, team_count: int) -> bool:
        if rank <= 0:
            return False
        if self is RankBucket.TOP_5:
            return rank <= 5
        if self is RankBucket.TOP_10:
            return rank <= 10
        if self is RankBucket.MID_10:
            return 11 <= rank <= 20
        if self is RankBucket.BOT_10:
            return rank > team_count - 10
        return rank > team_count - 5

    @classmethod
    def from_token(cls, token: str) -> Optional["RankBucket"]:
        try:
            return cls(token.strip().lower())
        except ValueError:
            return None


def normalize_team_abbr(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"invalid team abbreviation: {value!r}")
    abbr = value.strip().upper()
    if not _TEAM_ABBR_RE.match(abbr):
        raise ValueError(f"invalid team abbreviation: {value!r}")
    return abbr


def _coerce_rank(value: Union[str, RankBucket, None]) -> Optional[RankBucket]:
    if value is None or isinstance(value, RankBucket):
        return value
    rank = RankBucket.from_token(value) if isinstance(value, str) else None
    if rank is None:
        raise ValueError(f"invalid rank bucket: {value!r}")
    return rank


@dataclass(frozen=True)
class MatchAll:
    """Matches every game, from either side."""

    def matching_sides(self, game: "GameRecord") -> Tuple[str, ...]:
        return SIDES

    def to_params(self) -> Dict[str, Any]:
        return {}

    @property
    def label(self) -> str:
        return "All games"


@dataclass(frozen=True)
class TeamFilter:
    for_team_abbr: Optional[str] = None
    for_rank: Optional[RankBucket] = None
    for_at_home: Optional[bool] = None
    vs_team_abbr: Optional[str] = None
    vs_rank: Optional[RankBucket] = None

    def __post_init__(self) -> None:
        for side in ("for", "vs"):
            abbr = getattr(self, f"{side}_team_abbr")
            if abbr is not None:
                object.__setattr__(self, f"{side}_team_abbr", normalize_team_abbr(abbr))
            object.__setattr__(self, f"{side}_rank", _coerce_rank(getattr(self, f"{side}_rank")))
        if self.for_team_abbr is not None and self.for_rank is not None:
            raise ValueError("for side cannot be both a team and a rank")
        if self.vs_team_abbr is not None and self.vs_rank is not None:
            raise ValueError("vs side cannot be both a team and a rank")
        if self.for_at_home is not None and not isinstance(self.for_at_home, bool):
            raise ValueError(f"for_at_home must be a bool, got {self.for_at_home!r}")
        constraints = (self.for_team_abbr, self.for_rank, self.for_at_home, self.vs_team_abbr, self.vs_rank)
        if all(c is None for c in constraints):
            raise ValueError("TeamFilter needs at least one constraint; use MatchAll")

    def _side_matches(self, abbr: Optional[str], rank: Optional[RankBucket], game: "GameRecord", side: str) -> bool:
        if abbr is not None:
            return game.team_abbr(side) == abbr
        if rank is not None:
            return rank.contains(game.team_rank(side), game.team_count)
        return True

    def matching_sides(self, game: "GameRecord") -> Tuple[str, ...]:
        sides = []
        for side in SIDES:
            if self.for_at_home is not None and (side == HOME) != self.for_at_home:
                continue
            opponent = AWAY if side == HOME else HOME
            if not self._side_matches(self.for_team_abbr, self.for_rank, game, side):
                continue
            if not self._side_matches(self.vs_team_abbr, self.vs_rank, game, opponent):
                continue
            sides.append(side)
        return tuple(sides)

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.for_rank is not None:
            params["for_rank"] = self.for_rank.value
        elif self.for_team_abbr is not None:
            params["for_team_abbr"] = self.for_team_abbr
        if self.for_at_home is not None:
            params["for_at_home"] = self.for_at_home
        if self.vs_rank is not None:
            params["vs_rank"] = self.vs_rank.value
        elif self.vs_team_abbr is not None:
            params["vs_team_abbr"] = self.vs_team_abbr
        return params

    @property
    def label(self) -> str:
        for_part = self.for_rank.token if self.for_rank else (self.for_team_abbr or "ANY")
        if self.for_at_home is True:
            for_part += " @home"
        elif self.for_at_home is False:
            for_part += " @away"
        vs_part = self.vs_rank.token if self.vs_rank else (self.vs_team_abbr or "ANY")
        return f"{for_part} vs {vs_part}"


GameFilter = Union[MatchAll, TeamFilter]

MATCH_ALL = MatchAll()


def build_game_filter(
    for_team_abbr: Optional[str] = None,
    for_rank: Union[str, RankBucket, None] = None,
    for_at_home: Optional[bool] = None,
    vs_team_abbr: Optional[str] = None,
    vs_rank: Union[str, RankBucket, None] = None,
) -> GameFilter:
    """Build a filter from loose parameters; no constraint at all gives ``MATCH_ALL``.

    Raises ValueError for malformed abbreviations or ranks, or a side given both.
    """
    params = {
        "for_team_abbr": for_team_abbr or None,
        "for_rank": for_rank or None,
        "for_at_home": for_at_home,
        "vs_team_abbr": vs_team_abbr or None,
        "vs_rank": vs_rank or None,
    }
    if all(v is None for v in params.values()):
        return MATCH_ALL
    return TeamFilter(**params)
