"""URL query-string codec for calculator state.

Four independent parameters carry the whole configuration::

    p = {plot_index}-{start_time}[-{pct1}_{pct2}..[-{guides}]]
    s = {min_year}-{max_year}-{B|R|P} entries joined by "~"
    g = {for}-{e|h|a}-{vs} entries joined by "~"
    m = auto | all | <points>

Decoding is tolerant: a malformed segment is logged and replaced by its
default, so a partly broken link still opens a usable calculator.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit, urlunsplit

import structlog

from ..filters import MATCH_ALL, GameFilter, MatchAll, RankBucket, build_game_filter
from .models import (
    ALL_MARGIN,
    AUTO_MARGIN,
    DEFAULT_CONFIGURATION,
    PERCENT_OPTIONS,
    SUB_MINUTE_TIMES,
    Configuration,
    MaxPointMargin,
    PlotType,
    YearGroup,
    format_time_token,
    is_valid_start_time,
    merge_state,
)

logger = structlog.get_logger(__name__)

STATE_KEYS = ("p", "s", "g", "m")
ANY_FIELD = "ANY"

_INT_RE = re.compile(r"^\d+$")


def _parse_int(text: str) -> Optional[int]:
    text = text.strip()
    if not _INT_RE.match(text):
        return None
    return int(text)


def _encode_plot(config: Configuration, plot_type: PlotType) -> str:
    param = f"{plot_type.index}-{format_time_token(config.start_time)}"
    if plot_type is PlotType.PERCENT_VS_TIME:
        param += "-" + "_".join(config.selected_percents)
        if config.plot_guides or config.plot_calculated_guides:
            param += f"-{int(bool(config.plot_guides))}{int(bool(config.plot_calculated_guides))}"
    return param


def _encode_year_group(group: YearGroup) -> str:
    return f"{group.min_year}-{group.max_year}-{group.season_type_char}"


def _side_field(abbr: Optional[str], rank: Optional[RankBucket]) -> str:
    if rank is not None:
        return rank.token
    if abbr:
        return abbr.upper()
    return ANY_FIELD


def _encode_filter(game_filter: GameFilter) -> str:
    if isinstance(game_filter, MatchAll):
        return f"{ANY_FIELD}-e-{ANY_FIELD}"
    home_away = "e"
    if game_filter.for_at_home is True:
        home_away = "h"
    elif game_filter.for_at_home is False:
        home_away = "a"
    for_field = _side_field(game_filter.for_team_abbr, game_filter.for_rank)
    vs_field = _side_field(game_filter.vs_team_abbr, game_filter.vs_rank)
    return f"{for_field}-{home_away}-{vs_field}"


def encode(config: Configuration) -> str:
    """Encode a configuration as a query string (no leading ``?``).

    The configuration is normalized first, so fields the plot type ignores
    are written as their defaults. Returns "" when the plot type is not
    recognized.
    """
    plot_type = config.plot_type
    if not isinstance(plot_type, PlotType):
        logger.warning("state_encode_unknown_plot_type", plot_type=str(plot_type))
        return ""
    config = config.normalized()

    params = [
        f"p={_encode_plot(config, plot_type)}",
        "s=" + "~".join(_encode_year_group(g) for g in config.year_groups),
    ]
    if config.game_filters:
        params.append("g=" + "~".join(_encode_filter(f) for f in config.game_filters))
    if plot_type is not PlotType.PERCENT_VS_TIME:
        params.append(f"m={config.max_point_margin.token}")
    return "&".join(params)


def _decode_plot(param: str, partial: Dict[str, Any]) -> None:
    parts = param.split("-")
    if len(parts) > 4:
        logger.warning("plot_param_extra_fields", param=param)

    index = _parse_int(parts[0])
    plot_type = PlotType.from_index(index) if index is not None else None
    if plot_type is None:
        logger.warning("plot_type_invalid", value=parts[0])
        plot_type = DEFAULT_CONFIGURATION.plot_type
    partial["plot_type"] = plot_type

    if len(parts) > 1:
        token = parts[1].strip()
        start_time = SUB_MINUTE_TIMES.get(token, _parse_int(token))
        if start_time is not None and is_valid_start_time(plot_type, start_time):
            partial["start_time"] = start_time
        else:
            logger.warning("start_time_invalid", value=token, plot_type=plot_type.label)

    if plot_type is not PlotType.PERCENT_VS_TIME:
        return
    if len(parts) > 2 and parts[2]:
        tokens = [t for t in parts[2].split("_") if t]
        unknown = [t for t in tokens if t not in PERCENT_OPTIONS]
        if unknown:
            logger.warning("percents_unknown", values=unknown)
        percents = [t for t in tokens if t in PERCENT_OPTIONS]
        if percents:
            partial["selected_percents"] = percents
        else:
            logger.warning("percents_empty", value=parts[2])
    if len(parts) > 3:
        flags = parts[3]
        if len(flags) == 2 and set(flags) <= {"0", "1"}:
            partial["plot_guides"] = flags[0] == "1"
            partial["plot_calculated_guides"] = flags[1] == "1"
        else:
            logger.warning("guide_flags_invalid", value=flags)


def _decode_year_group(entry: str) -> Optional[YearGroup]:
    parts = entry.split("-")
    if len(parts) != 3:
        logger.warning("year_group_invalid_format", entry=entry)
        return None
    min_year, max_year = _parse_int(parts[0]), _parse_int(parts[1])
    if min_year is None or max_year is None:
        logger.warning("year_group_invalid_years", entry=entry)
        return None

    season_type = parts[2].strip().upper()
    regular_season, playoffs = True, True
    if season_type == "R":
        playoffs = False
    elif season_type == "P":
        regular_season = False
    elif season_type != "B":
        logger.warning("season_type_invalid", entry=entry, value=parts[2])

    try:
        return YearGroup(min_year, max_year, regular_season, playoffs)
    except ValueError as exc:
        logger.warning("year_group_invalid_range", entry=entry, error=str(exc))
        return None


def _decode_years(param: str) -> List[YearGroup]:
    groups = []
    for entry in param.split("~"):
        if not entry:
            continue
        group = _decode_year_group(entry)
        if group is not None:
            groups.append(group)
    if not groups:
        logger.warning("year_groups_empty", value=param)
    return groups


def _side_params(field: str, prefix: str) -> Dict[str, Any]:
    field = field.strip().upper()
    if not field or field == ANY_FIELD:
        return {}
    rank = RankBucket.from_token(field)
    if rank is not None:
        return {f"{prefix}_rank": rank}
    return {f"{prefix}_team_abbr": field}


def _decode_filter(entry: str) -> Optional[GameFilter]:
    parts = entry.split("-")
    if len(parts) != 3:
        logger.warning("game_filter_invalid_format", entry=entry)
        return None

    params: Dict[str, Any] = {}
    home_away = parts[1].strip().lower()
    if home_away == "h":
        params["for_at_home"] = True
    elif home_away == "a":
        params["for_at_home"] = False
    elif home_away != "e":
        logger.warning("home_away_invalid", entry=entry, value=parts[1])
    params.update(_side_params(parts[0], "for"))
    params.update(_side_params(parts[2], "vs"))

    try:
        return build_game_filter(**params)
    except ValueError as exc:
        logger.warning("game_filter_fallback_match_all", entry=entry, error=str(exc))
        return MATCH_ALL


def _decode_filters(param: str) -> List[GameFilter]:
    filters = []
    for entry in param.split("~"):
        if not entry:
            continue
        game_filter = _decode_filter(entry)
        if game_filter is not None:
            filters.append(game_filter)
    return filters


def _decode_margin(param: str) -> MaxPointMargin:
    value = param.strip().lower()
    if value == "auto":
        return AUTO_MARGIN
    if value == "all":
        return ALL_MARGIN
    points = _parse_int(value)
    if points is None or points < 1:
        logger.warning("max_point_margin_invalid", value=param)
        return AUTO_MARGIN
    return MaxPointMargin.fixed(points)


def _first(params: Dict[str, List[str]], key: str) -> str:
    values = params.get(key)
    return values[0] if values else ""


def decode(query: Any) -> Optional[Configuration]:
    """Decode a query string into a configuration.

    Malformed segments fall back to their defaults. Returns None only when the
    input is not a string or cannot be parsed at all.
    """
    if not isinstance(query, str):
        logger.error("state_decode_not_a_string", type=type(query).__name__)
        return None
    try:
        params = parse_qs(query[1:] if query.startswith("?") else query, keep_blank_values=True)
        partial: Dict[str, Any] = {}

        plot_param = _first(params, "p")
        if plot_param:
            _decode_plot(plot_param, partial)

        years_param = _first(params, "s")
        if years_param:
            partial["year_groups"] = _decode_years(years_param)

        filters_param = _first(params, "g")
        if filters_param:
            partial["game_filters"] = _decode_filters(filters_param)

        margin_param = _first(params, "m")
        if margin_param:
            partial["max_point_margin"] = _decode_margin(margin_param)

        config = merge_state(DEFAULT_CONFIGURATION, partial)
    except Exception as exc:
        logger.error("state_decode_failed", query=query, error=str(exc))
        return None
    logger.debug(
        "state_decoded",
        plot_type=config.plot_type.label,
        year_groups=len(config.year_groups),
        game_filters=len(config.game_filters),
    )
    return config


def _query_part(url: str) -> str:
    if "?" in url:
        return url.split("?", 1)[1].split("#", 1)[0]
    if "://" in url:
        return ""
    return url.split("#", 1)[0]


def has_state(url: str) -> bool:
    """True when any calculator parameter is present, even with an empty value."""
    params = parse_qs(_query_part(url), keep_blank_values=True)
    return any(key in params for key in STATE_KEYS)


def with_state(url: str, config: Configuration) -> str:
    """Replace the query of ``url`` with the encoded state, keeping the fragment."""
    query = encode(config)
    if not query:
        return url
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def without_state(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", parts.fragment))

