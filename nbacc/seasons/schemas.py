# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError

from ..errors import DataIntegrityError


class PointMarginsModel(BaseModel):
    margins: List[int]
    min_margins: List[int]
    max_margins: List[int]


class GamePayloadModel(BaseModel):
    game_date: str
    season_type: str
    season_year: int
    home_team_abbr: str = Field(min_length=1)
    away_team_abbr: str = Field(min_length=1)
    score: str
    point_margins: PointMarginsModel


class TeamStatsModel(BaseModel):
    win_pct: float
    rank: int


class SeasonPayloadModel(BaseModel):
    season_year: int
    team_count: int = Field(ge=0)
    teams: Dict[str, Any] = Field(default_factory=dict)
    team_stats: Dict[str, TeamStatsModel] = Field(default_factory=dict)
    games: Dict[str, GamePayloadModel] = Field(default_factory=dict)


def validate_season_payload(year: int, data: Dict[str, Any]) -> SeasonPayloadModel:
    try:
        return SeasonPayloadModel.model_validate(data)
    except ValidationError as exc:
        raise DataIntegrityError(f"season {year} payload failed validation: {exc}") from exc
