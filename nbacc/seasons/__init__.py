from __future__ import annotations

from .cache import SeasonCache, SeasonEntry
from .models import (
    SEASON_TYPE_ALL,
    SEASON_TYPE_PLAYOFFS,
    SEASON_TYPE_REGULAR,
    GameCollection,
    GameRecord,
    PointMargins,
    SeasonIndex,
    TeamStats,
    parse_score,
)
from .sources import DirectorySeasonSource, HttpSeasonSource, SeasonSource, build_source, decode_payload

__all__ = [
    "SEASON_TYPE_ALL",
    "SEASON_TYPE_PLAYOFFS",
    "SEASON_TYPE_REGULAR",
    "DirectorySeasonSource",
    "GameCollection",
    "GameRecord",
    "HttpSeasonSource",
    "PointMargins",
    "SeasonCache",
    "SeasonEntry",
    "SeasonIndex",
    "SeasonSource",
    "TeamStats",
    "build_source",
    "decode_payload",
    "parse_score",
]
