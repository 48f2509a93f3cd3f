# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import structlog

from ..errors import DataIntegrityError, SeasonLoadError
from .models import SeasonIndex
from .schemas import validate_season_payload
from .sources import SeasonSource, decode_payload

logger = structlog.get_logger(__name__)


@dataclass
class SeasonEntry:
    """Load state for one year: the built index once loaded, the pending task while in flight."""

    year: int
    index: Optional[SeasonIndex] = None
    pending: Optional["asyncio.Future[SeasonIndex]"] = None

    @property
    def loaded(self) -> bool:
        return self.index is not None


class SeasonCache:
    """Memoizing per-year season loader with at most one fetch in flight per year.

    Successfully loaded seasons are kept for the lifetime of the cache. A failed
    load clears the in-flight marker so a later call can retry.
    """

    def __init__(self, source: SeasonSource) -> None:
        self.source = source
        self._entries: Dict[int, SeasonEntry] = {}

    def get_or_create(self, year: int) -> SeasonEntry:
        entry = self._entries.get(year)
        if entry is None:
            entry = SeasonEntry(year=year)
            self._entries[year] = entry
        return entry

    @property
    def loaded_years(self) -> List[int]:
        return sorted(year for year, entry in self._entries.items() if entry.loaded)

    async def load(self, year: int) -> SeasonIndex:
        entry = self.get_or_create(year)
        if entry.index is not None:
            return entry.index
        if entry.pending is None:
            entry.pending = asyncio.ensure_future(self._load_entry(entry))
        # Shield so one cancelled caller does not cancel the load shared by the others
        return await asyncio.shield(entry.pending)

    async def _load_entry(self, entry: SeasonEntry) -> SeasonIndex:
        year = entry.year
        try:
            raw = await self.source.fetch(year)
            try:
                data = decode_payload(raw)
            except (OSError, ValueError) as exc:
                raise SeasonLoadError(year, f"unreadable payload from {self.source.location(year)}: {exc}") from exc
            index = SeasonIndex.from_payload(year, validate_season_payload(year, data))
        except (SeasonLoadError, DataIntegrityError):
            entry.pending = None
            raise
        except Exception as exc:
            entry.pending = None
            raise SeasonLoadError(year, str(exc)) from exc
        entry.index = index
        logger.info("season_loaded", year=year, games=index.game_count)
        return index

    async def load_range(self, min_year: int, max_year: int) -> Dict[int, SeasonIndex]:
        years = list(range(min_year, max_year + 1))
        results = await asyncio.gather(*(self.load(year) for year in years), return_exceptions=True)
        seasons: Dict[int, SeasonIndex] = {}
        for year, result in zip(years, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.error("season_load_failed", year=year, error=str(result))
                seasons[year] = SeasonIndex.empty(year)
            else:
                seasons[year] = result
        return seasons

    @staticmethod
    def total_games(seasons: Iterable[SeasonIndex] | Dict[int, SeasonIndex]) -> int:
        values = seasons.values() if isinstance(seasons, dict) else seasons
        return sum(season.game_count for season in values)
