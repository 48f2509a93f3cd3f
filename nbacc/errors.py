from __future__ import annotations


class DataIntegrityError(ValueError):
    """Season data that cannot describe a real game (ties, missing teams, bad payloads)."""


class SeasonLoadError(RuntimeError):
    def __init__(self, year: int, reason: str) -> None:
        super().__init__(f"Failed to load data for season {year}: {reason}")
        self.year = year
        self.reason = reason


class NoGamesLoadedError(RuntimeError):
    def __init__(self, min_year: int, max_year: int) -> None:
        super().__init__(
            f"No game data was loaded for seasons {min_year}-{max_year}. "
            "Check the season data location, the network, and the season file format."
        )
        self.min_year = min_year
        self.max_year = max_year
