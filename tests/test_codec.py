import pytest

from nbacc.filters import MATCH_ALL, RankBucket, TeamFilter, build_game_filter
from nbacc.state import (
    ALL_MARGIN,
    AUTO_MARGIN,
    DEFAULT_PERCENTS,
    DEFAULT_YEAR_GROUP,
    Configuration,
    MaxPointMargin,
    PlotType,
    YearGroup,
    decode,
    encode,
    has_state,
    merge_state,
    with_state,
    without_state,
)


ROUND_TRIP_CONFIGS = [
    Configuration(
        plot_type=PlotType.PERCENT_VS_TIME,
        start_time=12,
        selected_percents=("33", "Record"),
        plot_guides=True,
        plot_calculated_guides=True,
        year_groups=(YearGroup(2010, 2012, True, False), YearGroup(1996, 2030)),
        game_filters=(MATCH_ALL, build_game_filter(for_rank="top_5", for_at_home=True, vs_team_abbr="LAL")),
    ),
    Configuration(
        plot_type=PlotType.MAX_DEFICIT,
        start_time=1,
        max_point_margin=MaxPointMargin.fixed(15),
        year_groups=(YearGroup(2015, 2015, False, True),),
        game_filters=(build_game_filter(for_team_abbr="bos", vs_rank="bot_10"),),
    ),
    Configuration(
        plot_type=PlotType.DEFICIT_AT_TIME,
        start_time=1 / 6,
        max_point_margin=ALL_MARGIN,
        game_filters=(build_game_filter(for_at_home=False), MATCH_ALL, MATCH_ALL),
    ),
    Configuration(
        plot_type=PlotType.MAX_DEFICIT_OR_MORE,
        start_time=48,
        selected_percents=("33",),
        plot_guides=True,
    ),
    Configuration(
        plot_type=PlotType.PERCENT_VS_TIME,
        start_time=6,
        year_groups=(),
        max_point_margin=ALL_MARGIN,
    ),
    Configuration(selected_percents=(), plot_guides=True),
    Configuration(
        plot_type=PlotType.MAX_DEFICIT,
        game_filters=(TeamFilter(for_team_abbr="bos"), TeamFilter(for_rank="top_5", vs_team_abbr="lal")),
    ),
]


def test_decode_percent_chart_with_guides_and_single_empty_filter():
    config = decode("p=0-24-20_10_5_1-10&s=2017-2024-B&g=ANY-e-ANY")

    assert config.plot_type is PlotType.PERCENT_VS_TIME
    assert config.start_time == 24
    assert config.selected_percents == ("20", "10", "5", "1")
    assert config.plot_guides is True
    assert config.plot_calculated_guides is False
    assert config.year_groups == (YearGroup(2017, 2024, True, True),)
    assert config.game_filters == (MATCH_ALL,)


def test_decode_max_deficit_or_more_with_all_margin_defaults_years_and_filters():
    config = decode("p=1-48&m=all")

    assert config.plot_type is PlotType.MAX_DEFICIT_OR_MORE
    assert config.start_time == 48
    assert config.max_point_margin == ALL_MARGIN
    assert config.max_point_margin.legacy_value == 1000
    assert config.year_groups == (DEFAULT_YEAR_GROUP,)
    assert config.game_filters == ()


def test_decode_season_types_preserve_order():
    config = decode("s=2010-2012-R~2015-2015-P")

    assert config.year_groups == (
        YearGroup(2010, 2012, regular_season=True, playoffs=False),
        YearGroup(2015, 2015, regular_season=False, playoffs=True),
    )
    assert [g.label for g in config.year_groups] == ["R2010-2012", "P2015-2015"]


def test_decode_rank_home_filter_against_team():
    config = decode("g=TOP_5-h-LAL")

    (game_filter,) = config.game_filters
    assert isinstance(game_filter, TeamFilter)
    assert game_filter.for_rank is RankBucket.TOP_5
    assert game_filter.for_at_home is True
    assert game_filter.vs_team_abbr == "LAL"
    assert game_filter.to_params() == {"for_rank": "top_5", "for_at_home": True, "vs_team_abbr": "LAL"}


@pytest.mark.parametrize("config", ROUND_TRIP_CONFIGS)
def test_round_trip_matches_normalized_configuration(config):
    assert decode(encode(config)) == config.normalized()


@pytest.mark.parametrize("config", ROUND_TRIP_CONFIGS)
def test_round_trip_is_idempotent(config):
    once = decode(encode(config))

    assert decode(encode(once)) == once
    assert encode(once) == encode(decode(encode(once)))


def test_encode_full_percent_configuration():
    query = encode(ROUND_TRIP_CONFIGS[0])

    assert query == "p=0-12-33_Record-11&s=2010-2012-R~1996-2030-B&g=ANY-e-ANY~TOP_5-h-LAL"


def test_encode_non_percent_plot_always_writes_margin():
    assert encode(Configuration(plot_type=PlotType.MAX_DEFICIT, start_time=36)) == "p=2-36&s=2017-2024-B&m=auto"
    assert encode(ROUND_TRIP_CONFIGS[1]) == "p=2-1&s=2015-2015-P&g=BOS-e-BOT_10&m=15"


def test_encode_sub_minute_start_time_uses_token():
    assert encode(ROUND_TRIP_CONFIGS[2]).startswith("p=3-10s&")


def test_encode_writes_default_year_group_and_skips_empty_filters():
    config = Configuration(year_groups=(), game_filters=())

    assert encode(config) == "p=0-24-20_10_5_1_Record&s=2017-2024-B"


def test_encode_keeps_guides_when_percent_list_is_empty():
    config = Configuration(selected_percents=(), plot_guides=True)

    assert encode(config) == "p=0-24-20_10_5_1_Record-10&s=2017-2024-B"
    assert decode(encode(config)).plot_guides is True


def test_encode_filters_built_directly_with_loose_values():
    config = Configuration(game_filters=(TeamFilter(for_team_abbr="bos"), TeamFilter(for_rank="top_5", for_at_home=True)))

    assert encode(config) == "p=0-24-20_10_5_1_Record&s=2017-2024-B&g=BOS-e-ANY~TOP_5-h-ANY"
    assert decode(encode(config)).game_filters == config.game_filters


def test_encode_unknown_plot_type_returns_empty_string():
    assert encode(Configuration(plot_type="Occurrence Max Points Down")) == ""


def test_decode_returns_none_for_non_string():
    assert decode(None) is None
    assert decode(42) is None


def test_decode_accepts_leading_question_mark():
    assert decode("?p=2-10&m=12") == decode("p=2-10&m=12")
    assert decode("?p=2-10&m=12").max_point_margin == MaxPointMargin.fixed(12)


def test_decode_empty_string_gives_defaults():
    assert decode("") == Configuration()


def test_decode_invalid_plot_index_falls_back_to_percent_chart():
    config = decode("p=7-12")

    assert config.plot_type is PlotType.PERCENT_VS_TIME
    assert config.start_time == 12


def test_decode_start_time_outside_plot_range_uses_default():
    assert decode("p=0-30").start_time == 24
    assert decode("p=0-4").start_time == 24
    assert decode("p=1-30").start_time == 30
    assert decode("p=1-abc").start_time == 24


def test_decode_sub_minute_start_time_only_for_non_percent_plots():
    assert decode("p=3-45s").start_time == 0.75
    assert decode("p=0-45s").start_time == 24


def test_decode_filters_unknown_percents_and_dedupes():
    assert decode("p=0-24-20_99_20_Record").selected_percents == ("20", "Record")
    assert decode("p=0-24-99_abc").selected_percents == DEFAULT_PERCENTS


def test_decode_ignores_malformed_guide_flags():
    config = decode("p=0-24-20_10-1x")

    assert config.plot_guides is False
    assert config.plot_calculated_guides is False


def test_decode_ignores_percents_and_guides_for_non_percent_plots():
    config = decode("p=2-12-33-11")

    assert config.selected_percents == DEFAULT_PERCENTS
    assert config.plot_guides is False


def test_decode_drops_invalid_year_groups_and_keeps_valid_ones():
    config = decode("s=1990-2000-B~2005-2003-B~abc-2010-R~2012-2014~2018-2019-R")

    assert config.year_groups == (YearGroup(2018, 2019, True, False),)


def test_decode_all_invalid_year_groups_uses_default():
    assert decode("s=1990-1995-B~2031-2032-P").year_groups == (DEFAULT_YEAR_GROUP,)


def test_decode_unknown_season_type_means_both():
    assert decode("s=2010-2011-X").year_groups == (YearGroup(2010, 2011, True, True),)


def test_decode_season_type_is_case_insensitive():
    assert decode("s=2010-2011-r").year_groups == (YearGroup(2010, 2011, True, False),)


def test_decode_filter_with_wrong_field_count_is_dropped():
    config = decode("g=ANY-e~BOS-h-ANY~A-b-c-d")

    assert config.game_filters == (TeamFilter(for_team_abbr="BOS", for_at_home=True),)


def test_decode_filter_with_bad_team_falls_back_to_match_all():
    config = decode("g=L@L-h-ANY~bos-a-bot_5")

    assert config.game_filters == (
        MATCH_ALL,
        TeamFilter(for_team_abbr="BOS", for_at_home=False, vs_rank=RankBucket.BOT_5),
    )


def test_decode_unknown_home_away_char_means_either():
    config = decode("g=MIA-x-ANY")

    assert config.game_filters == (TeamFilter(for_team_abbr="MIA"),)


def test_decode_preserves_filter_count_for_empty_filters():
    config = decode("g=ANY-e-ANY~ANY-e-ANY~ANY-e-ANY")

    assert config.game_filters == (MATCH_ALL, MATCH_ALL, MATCH_ALL)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("auto", AUTO_MARGIN),
        ("ALL", ALL_MARGIN),
        ("25", MaxPointMargin.fixed(25)),
        ("0", AUTO_MARGIN),
        ("-4", AUTO_MARGIN),
        ("lots", AUTO_MARGIN),
    ],
)
def test_decode_max_point_margin(value, expected):
    assert decode(f"p=1-24&m={value}").max_point_margin == expected


def test_decode_margin_is_ignored_for_percent_chart():
    assert decode("p=0-24&m=all").max_point_margin == AUTO_MARGIN


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.org/calc.html?p=0-24", True),
        ("https://example.org/calc.html?s=", True),
        ("https://example.org/calc.html?g&x=1", True),
        ("https://example.org/calc.html?m=all#chart", True),
        ("p=0-24", True),
        ("?x=1&y=2", False),
        ("https://example.org/p.html", False),
        ("https://example.org/calc.html#p=0-24", False),
        ("", False),
    ],
)
def test_has_state(url, expected):
    assert has_state(url) is expected


def test_with_state_replaces_query_and_keeps_fragment():
    config = Configuration(plot_type=PlotType.MAX_DEFICIT, start_time=36)

    url = with_state("https://example.org/calc.html?old=1#chart", config)

    assert url == "https://example.org/calc.html?p=2-36&s=2017-2024-B&m=auto#chart"


def test_with_state_leaves_url_alone_when_encoding_fails():
    url = "https://example.org/calc.html?p=1-2"

    assert with_state(url, Configuration(plot_type="nope")) == url


def test_without_state_removes_query():
    assert without_state("https://example.org/calc.html?p=0-24#chart") == "https://example.org/calc.html#chart"


def test_merge_state_ignores_none_and_unknown_fields():
    base = Configuration(plot_type=PlotType.MAX_DEFICIT, start_time=36)

    merged = merge_state(base, {"start_time": None, "bogus": 1, "year_groups": [YearGroup(2001, 2002)]})

    assert merged.start_time == 36
    assert merged.plot_type is PlotType.MAX_DEFICIT
    assert merged.year_groups == (YearGroup(2001, 2002),)


def test_merge_state_normalizes_result():
    merged = merge_state(Configuration(), {"selected_percents": [], "year_groups": []})

    assert merged.selected_percents == DEFAULT_PERCENTS
    assert merged.year_groups == (DEFAULT_YEAR_GROUP,)


def test_year_group_rejects_out_of_range_years():
    with pytest.raises(ValueError):
        YearGroup(1995, 2000)
    with pytest.raises(ValueError):
        YearGroup(2010, 2009)


def test_year_group_with_no_season_types_means_both():
    group = YearGroup(2010, 2011, regular_season=False, playoffs=False)

    assert group.regular_season is True
    assert group.playoffs is True
    assert group.season_type == "all"
