import pytest

from nbacc.filters import MATCH_ALL, RankBucket, TeamFilter, build_game_filter
from nbacc.seasons import SeasonIndex
from nbacc.seasons.schemas import validate_season_payload


@pytest.fixture
def games(standard_season):
    season = SeasonIndex.from_payload(2020, validate_season_payload(2020, standard_season()))
    # 202001: LAL @ BOS, LAL wins. 202002: DET @ BOS, BOS wins.
    return season.games


@pytest.mark.parametrize(
    "bucket, rank, expected",
    [
        (RankBucket.TOP_5, 5, True),
        (RankBucket.TOP_5, 6, False),
        (RankBucket.TOP_10, 10, True),
        (RankBucket.MID_10, 11, True),
        (RankBucket.MID_10, 20, True),
        (RankBucket.MID_10, 21, False),
        (RankBucket.BOT_10, 20, False),
        (RankBucket.BOT_10, 21, True),
        (RankBucket.BOT_5, 25, False),
        (RankBucket.BOT_5, 26, True),
        (RankBucket.TOP_5, 0, False),
    ],
)
def test_rank_bucket_contains(bucket, rank, expected):
    assert bucket.contains(rank, team_count=30) is expected


def test_rank_bucket_tokens():
    assert RankBucket.BOT_10.token == "BOT_10"
    assert RankBucket.from_token("Mid_10") is RankBucket.MID_10
    assert RankBucket.from_token("top_3") is None


def test_match_all_matches_both_sides(games):
    assert MATCH_ALL.matching_sides(games["202001"]) == ("home", "away")
    assert MATCH_ALL.to_params() == {}
    assert MATCH_ALL.label == "All games"


def test_team_filter_picks_side_of_team(games):
    assert TeamFilter(for_team_abbr="BOS").matching_sides(games["202001"]) == ("home",)
    assert TeamFilter(for_team_abbr="LAL", vs_team_abbr="BOS").matching_sides(games["202001"]) == ("away",)
    assert TeamFilter(for_team_abbr="MIA").matching_sides(games["202001"]) == ()


def test_rank_filter_can_match_both_sides(games):
    assert TeamFilter(for_rank=RankBucket.TOP_5).matching_sides(games["202001"]) == ("home", "away")
    assert TeamFilter(for_rank=RankBucket.TOP_5, for_at_home=False).matching_sides(games["202001"]) == ("away",)


def test_vs_rank_selects_opponent(games):
    bottom = TeamFilter(vs_rank=RankBucket.BOT_5)

    assert bottom.matching_sides(games["202001"]) == ()
    assert bottom.matching_sides(games["202002"]) == ("home",)


def test_build_game_filter_without_constraints_is_match_all():
    assert build_game_filter() is MATCH_ALL


def test_build_game_filter_normalizes_inputs():
    game_filter = build_game_filter(for_team_abbr=" gsw ", vs_rank="TOP_10", for_at_home=True)

    assert game_filter == TeamFilter(for_team_abbr="GSW", for_at_home=True, vs_rank=RankBucket.TOP_10)
    assert game_filter.label == "GSW @home vs TOP_10"


@pytest.mark.parametrize(
    "params",
    [
        {"for_team_abbr": "BOS", "for_rank": "top_5"},
        {"vs_team_abbr": "LAL", "vs_rank": "bot_5"},
        {"for_team_abbr": "B0S"},
        {"for_team_abbr": "LAKERS"},
        {"vs_rank": "top_3"},
        {"for_at_home": "yes"},
    ],
)
def test_build_game_filter_rejects_invalid_params(params):
    with pytest.raises(ValueError):
        build_game_filter(**params)


def test_team_filter_requires_a_constraint():
    with pytest.raises(ValueError):
        TeamFilter()


def test_filter_label_and_params_for_away_rank():
    game_filter = build_game_filter(for_rank="mid_10", for_at_home=False)

    assert game_filter.label == "MID_10 @away vs ANY"
    assert game_filter.to_params() == {"for_rank": "mid_10", "for_at_home": False}


def test_team_filter_normalizes_values_given_directly():
    game_filter = TeamFilter(for_team_abbr=" bos", vs_rank="bot_5")

    assert game_filter.for_team_abbr == "BOS"
    assert game_filter.vs_rank is RankBucket.BOT_5
    assert game_filter == build_game_filter(for_team_abbr="BOS", vs_rank=RankBucket.BOT_5)


def test_team_filter_accepts_rank_as_plain_string():
    game_filter = TeamFilter(for_rank="top_5")

    assert game_filter.for_rank is RankBucket.TOP_5
    assert game_filter.label == "TOP_5 vs ANY"


@pytest.mark.parametrize(
    "params",
    [
        {"for_team_abbr": "L@L"},
        {"vs_team_abbr": 12},
        {"for_rank": "top_3"},
        {"vs_rank": 5},
    ],
)
def test_team_filter_rejects_invalid_values_given_directly(params):
    with pytest.raises(ValueError):
        TeamFilter(**params)
