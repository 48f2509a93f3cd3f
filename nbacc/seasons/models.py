from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import structlog

from ..errors import DataIntegrityError
from .schemas import GamePayloadModel, SeasonPayloadModel

logger = structlog.get_logger(__name__)

SEASON_TYPE_ALL = "all"
SEASON_TYPE_REGULAR = "Regular Season"
SEASON_TYPE_PLAYOFFS = "Playoffs"


@dataclass(frozen=True)
class TeamStats:
    win_pct: float
    rank: int


@dataclass(frozen=True)
class PointMargins:
    """Per-minute home-minus-away margins: instantaneous, minimum and maximum."""

    margins: Tuple[int, ...]
    min_margins: Tuple[int, ...]
    max_margins: Tuple[int, ...]


def parse_score(score: str) -> Tuple[int, int]:
    """Split an "AWAY - HOME" score string into (away_points, home_points)."""
    parts = score.split(" - ")
    if len(parts) != 2:
        raise DataIntegrityError(f"malformed score: {score!r}")
    try:
        away, home = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise DataIntegrityError(f"malformed score: {score!r}") from exc
    return away, home


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        return f"{n}th"
    suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


@dataclass(frozen=True)
class GameRecord:
    game_id: str
    game_date: str
    season_type: str
    season_year: int
    home_team_abbr: str
    away_team_abbr: str
    score: str
    final_away_points: int
    final_home_points: int
    score_diff: int
    wl_home: str
    wl_away: str
    point_margins: PointMargins
    home_team_win_pct: float
    away_team_win_pct: float
    home_team_rank: int
    away_team_rank: int
    team_count: int

    @classmethod
    def from_payload(
        cls,
        game_id: str,
        data: GamePayloadModel,
        team_stats: Mapping[str, TeamStats],
        team_count: int,
    ) -> "GameRecord":
        away_points, home_points = parse_score(data.score)
        score_diff = home_points - away_points
        if score_diff > 0:
            wl_home, wl_away = "W", "L"
        elif score_diff < 0:
            wl_home, wl_away = "L", "W"
        else:
            raise DataIntegrityError(f"game {game_id} ends in a tie ({data.score}); NBA games can't tie")

        missing = [abbr for abbr in (data.home_team_abbr, data.away_team_abbr) if abbr not in team_stats]
        if missing:
            raise DataIntegrityError(f"game {game_id} references teams without stats: {', '.join(missing)}")
        home_stats = team_stats[data.home_team_abbr]
        away_stats = team_stats[data.away_team_abbr]

        margins = data.point_margins
        return cls(
            game_id=game_id,
            game_date=data.game_date,
            season_type=data.season_type,
            season_year=data.season_year,
            home_team_abbr=data.home_team_abbr,
            away_team_abbr=data.away_team_abbr,
            score=data.score,
            final_away_points=away_points,
            final_home_points=home_points,
            score_diff=score_diff,
            wl_home=wl_home,
            wl_away=wl_away,
            point_margins=PointMargins(
                margins=tuple(margins.margins),
                min_margins=tuple(margins.min_margins),
                max_margins=tuple(margins.max_margins),
            ),
            home_team_win_pct=home_stats.win_pct,
            away_team_win_pct=away_stats.win_pct,
            home_team_rank=home_stats.rank,
            away_team_rank=away_stats.rank,
            team_count=team_count,
        )

    def team_abbr(self, side: str) -> str:
        return self.home_team_abbr if side == "home" else self.away_team_abbr

    def team_rank(self, side: str) -> int:
        return self.home_team_rank if side == "home" else self.away_team_rank

    def won(self, side: str) -> bool:
        return (self.wl_home if side == "home" else self.wl_away) == "W"

    def summary(self) -> str:
        home_rank = _ordinal(self.home_team_rank) if self.home_team_rank > 0 else "N/A"
        away_rank = _ordinal(self.away_team_rank) if self.away_team_rank > 0 else "N/A"
        return (
            f"{self.away_team_abbr}({away_rank}/{self.away_team_win_pct:.3f}) @ "
            f"{self.home_team_abbr}({home_rank}/{self.home_team_win_pct:.3f}): "
            f"{self.final_away_points}-{self.final_home_points}"
        )


@dataclass(frozen=True)
class SeasonIndex:
    year: int
    season_year: int
    team_count: int
    teams: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    team_stats: Mapping[str, TeamStats] = field(default_factory=lambda: MappingProxyType({}))
    games: Mapping[str, GameRecord] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_payload(cls, year: int, payload: SeasonPayloadModel) -> "SeasonIndex":
        team_stats = {
            abbr: TeamStats(win_pct=stats.win_pct, rank=stats.rank)
            for abbr, stats in payload.team_stats.items()
        }
        games = {
            game_id: GameRecord.from_payload(game_id, game, team_stats, payload.team_count)
            for game_id, game in payload.games.items()
        }
        return cls(
            year=year,
            season_year=payload.season_year,
            team_count=payload.team_count,
            teams=MappingProxyType(dict(payload.teams)),
            team_stats=MappingProxyType(team_stats),
            games=MappingProxyType(games),
        )

    @classmethod
    def empty(cls, year: int) -> "SeasonIndex":
        return cls(year=year, season_year=year, team_count=0)

    @property
    def game_count(self) -> int:
        return len(self.games)

    @property
    def is_empty(self) -> bool:
        return not self.games


class GameCollection:
    """Games of a year range, optionally restricted to one season type."""

    def __init__(self, start_year: int, stop_year: int, season_type: str = SEASON_TYPE_ALL) -> None:
        self.start_year = start_year
        self.stop_year = stop_year
        self.season_type = season_type
        self.games: Dict[str, GameRecord] = {}

    @classmethod
    def from_seasons(
        cls,
        seasons: Mapping[int, SeasonIndex],
        start_year: int,
        stop_year: int,
        season_type: str = SEASON_TYPE_ALL,
    ) -> "GameCollection":
        collection = cls(start_year, stop_year, season_type)
        for year in range(start_year, stop_year + 1):
            season = seasons.get(year)
            if season is None:
                logger.warning("season_missing_from_collection", year=year)
                continue
            for game_id, game in season.games.items():
                if season_type != SEASON_TYPE_ALL and game.season_type != season_type:
                    continue
                collection.games[game_id] = game
        return collection

    def __len__(self) -> int:
        return len(self.games)

    def __iter__(self) -> Iterator[GameRecord]:
        return iter(self.games.values())

    def get(self, game_id: str) -> Optional[GameRecord]:
        return self.games.get(game_id)

    def keys(self) -> List[str]:
        return list(self.games)

    @property
    def years_label(self) -> str:
        def short(year: int) -> str:
            return str(year)[-2:]

        suffix = f" {self.season_type}" if self.season_type != SEASON_TYPE_ALL else ""
        if self.start_year == self.stop_year:
            return f"{self.start_year}-{short(self.start_year + 1)}{suffix}"
        return (
            f"{self.start_year}-{short(self.start_year + 1)} to "
            f"{self.stop_year}-{short(self.stop_year + 1)}{suffix}"
        )
