# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import structlog

from .charts import render_summary_chart
from .errors import NoGamesLoadedError
from .seasons.cache import SeasonCache
from .seasons.models import SeasonIndex
from .state.codec import decode, encode
from .state.models import Configuration
from .summary import summarize

logger = structlog.get_logger(__name__)

Aggregator = Callable[[Configuration, Mapping[int, SeasonIndex]], Any]
Renderer = Callable[[Configuration, Any], Any]


@dataclass
class CalculationResult:
    config: Configuration
    seasons: Dict[int, SeasonIndex]
    series: Any
    rendered: Any
    query: str

    @property
    def total_games(self) -> int:
        return SeasonCache.total_games(self.seasons)


def year_span(config: Configuration) -> Tuple[int, int]:
    if not config.year_groups:
        raise ValueError("configuration has no year groups")
    return (
        min(group.min_year for group in config.year_groups),
        max(group.max_year for group in config.year_groups),
    )


class CalculatorController:
    """Load the seasons a configuration needs, aggregate them, hand the result to a renderer."""

    def __init__(
        self,
        cache: SeasonCache,
        aggregate: Optional[Aggregator] = None,
        render: Optional[Renderer] = None,
    ) -> None:
        self.cache = cache
        self.aggregate = aggregate or summarize
        self.render = render or render_summary_chart

    async def calculate(self, config: Configuration) -> CalculationResult:
        min_year, max_year = year_span(config)
        seasons = await self.cache.load_range(min_year, max_year)
        total = SeasonCache.total_games(seasons)
        empty_years = [year for year, season in seasons.items() if season.is_empty]
        logger.info(
            "seasons_ready",
            min_year=min_year,
            max_year=max_year,
            total_games=total,
            empty_years=empty_years,
        )
        if total == 0:
            raise NoGamesLoadedError(min_year, max_year)

        series = self.aggregate(config, seasons)
        rendered = self.render(config, series)
        return CalculationResult(
            config=config,
            seasons=seasons,
            series=series,
            rendered=rendered,
            query=encode(config),
        )

    async def calculate_from_query(self, query: str) -> CalculationResult:
        config = decode(query)
        if config is None:
            raise ValueError(f"could not decode calculator state from {query!r}")
        return await self.calculate(config)
