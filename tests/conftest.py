import asyncio
import gzip
from collections import Counter
from typing import Any, Dict, Optional

import orjson
import pytest

TEAM_STATS = {
    "BOS": {"win_pct": 0.700, "rank": 1},
    "LAL": {"win_pct": 0.650, "rank": 3},
    "MIA": {"win_pct": 0.520, "rank": 12},
    "DET": {"win_pct": 0.200, "rank": 30},
}


def _game(
    home: str,
    away: str,
    score: str,
    season_type: str = "Regular Season",
    season_year: int = 2020,
    game_date: str = "2020-12-22",
) -> Dict[str, Any]:
    return {
        "game_date": game_date,
        "season_type": season_type,
        "season_year": season_year,
        "home_team_abbr": home,
        "away_team_abbr": away,
        "score": score,
        "point_margins": {
            "margins": [0, 2, -3, -2],
            "min_margins": [0, -1, -4, -3],
            "max_margins": [0, 3, 1, 0],
        },
    }


def _season(year: int, games: Optional[Dict[str, Dict[str, Any]]] = None, team_stats=None) -> Dict[str, Any]:
    stats = TEAM_STATS if team_stats is None else team_stats
    return {
        "season_year": year,
        "team_count": 30,
        "teams": {abbr: {"abbr": abbr} for abbr in stats},
        "team_stats": stats,
        "games": games if games is not None else {},
    }


@pytest.fixture
def make_game():
    return _game


@pytest.fixture
def make_season():
    return _season


@pytest.fixture
def standard_season():
    """Three 2020 games: LAL win at BOS, BOS home win over DET, MIA playoff win at LAL."""

    def build(year: int = 2020) -> Dict[str, Any]:
        prefix = str(year)
        return _season(
            year,
            {
                f"{prefix}01": _game("BOS", "LAL", "100 - 98", season_year=year),
                f"{prefix}02": _game("BOS", "DET", "90 - 110", season_year=year),
                f"{prefix}03": _game("LAL", "MIA", "101 - 99", season_type="Playoffs", season_year=year),
            },
        )

    return build


class FakeSeasonSource:
    """In-memory source: payload dicts are served gzipped, exceptions are raised."""

    def __init__(self, payloads: Dict[int, Any]) -> None:
        self.payloads = payloads
        self.calls: Counter = Counter()

    def location(self, year: int) -> str:
        return f"memory://nba_season_{year}.json.gz"

    async def fetch(self, year: int) -> bytes:
        self.calls[year] += 1
        await asyncio.sleep(0)
        value = self.payloads.get(year)
        if value is None:
            raise FileNotFoundError(self.location(year))
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return value
        return gzip.compress(orjson.dumps(value))

    async def aclose(self) -> None:
        return None


@pytest.fixture
def fake_source():
    return FakeSeasonSource
