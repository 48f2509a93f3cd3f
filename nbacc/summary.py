from __future__ import annotations

from typing import Any, Dict, List, Mapping

import polars as pl
import structlog

from .filters import MATCH_ALL
from .seasons.models import GameCollection, SeasonIndex
from .state.models import Configuration

logger = structlog.get_logger(__name__)

_MATCH_SCHEMA = {
    "group_pos": pl.Int64,
    "filter_pos": pl.Int64,
    "game_id": pl.Utf8,
    "won": pl.Boolean,
}

SUMMARY_COLUMNS = ["year_group", "seasons", "filter", "games", "appearances", "wins", "win_pct"]


def summarize(config: Configuration, seasons: Mapping[int, SeasonIndex]) -> pl.DataFrame:
    """Per year group and filter: matched games, (game, side) appearances, wins and win rate.

    A game matches a filter once per side that can play the filter's "for" role,
    so a match-all filter counts every game from both sides. This is the default
    overview table; it does not compute the comeback curves, so plot type,
    start time, percents and point margins do not change its output.
    """
    config = config.normalized()
    filters = config.game_filters or (MATCH_ALL,)
    combos: List[Dict[str, Any]] = []
    matches: List[Dict[str, Any]] = []
    for group_pos, group in enumerate(config.year_groups):
        games = GameCollection.from_seasons(seasons, group.min_year, group.max_year, group.season_type)
        for filter_pos, game_filter in enumerate(filters):
            combos.append(
                {
                    "group_pos": group_pos,
                    "filter_pos": filter_pos,
                    "year_group": group.label,
                    "seasons": games.years_label,
                    "filter": game_filter.label,
                }
            )
            for game in games:
                for side in game_filter.matching_sides(game):
                    matches.append(
                        {"group_pos": group_pos, "filter_pos": filter_pos, "game_id": game.game_id, "won": game.won(side)}
                    )

    counts = (
        pl.DataFrame(matches, schema=_MATCH_SCHEMA)
        .group_by(["group_pos", "filter_pos"])
        .agg(
            pl.col("game_id").n_unique().alias("games"),
            pl.len().alias("appearances"),
            pl.col("won").sum().alias("wins"),
        )
    )
    frame = (
        pl.DataFrame(combos)
        .join(counts, on=["group_pos", "filter_pos"], how="left")
        .with_columns(pl.col(["games", "appearances", "wins"]).fill_null(0).cast(pl.Int64))
        .with_columns(
            pl.when(pl.col("appearances") > 0)
            .then(pl.col("wins") / pl.col("appearances"))
            .otherwise(None)
            .alias("win_pct")
        )
        .sort(["group_pos", "filter_pos"])
        .select(SUMMARY_COLUMNS)
    )
    logger.debug("summary_built", rows=frame.height, matches=len(matches))
    return frame
