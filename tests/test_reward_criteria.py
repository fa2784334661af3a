import pytest

from app.db.models.reward import Reward, RewardType, CriteriaScope, CriteriaEventType
from app.services.reward_criteria import (
    CaptainAndPotm,
    CaptainCount,
    CareerThreshold,
    CriteriaContext,
    PlayerEventCounts,
    RewardRule,
    SameMatchComposite,
    SeasonThreshold,
    SeasonTotalEvents,
    SingleMatchThreshold,
    CatalogError,
    Unsatisfiable,
    parse_criteria,
    parse_leadership_criteria,
    parse_progress_criteria,
)


def make_reward(scope, event_type=None, threshold=1, reward_type="match", requires=None, id=1):
    return Reward(
        id=id,
        name=f"Reward {id}",
        description="",
        reward_type=RewardType(reward_type),
        criteria_scope=CriteriaScope(scope),
        criteria_event_type=CriteriaEventType(event_type) if event_type else None,
        criteria_threshold=threshold,
        metadata_={"requires": requires} if requires else None,
    )


def counts_of(player_id, *event_types):
    counts = PlayerEventCounts(player_id)
    for etype in event_types:
        counts.add(etype)
    return counts


def ctx_for(counts, captain_id=None, potm_id=None):
    return CriteriaContext(
        player_id=counts.player_id,
        counts=counts,
        aggregates=None,
        match_id=10,
        captain_id=captain_id,
        potm_id=potm_id,
    )


# -----------------------
# Parser
# -----------------------
@pytest.mark.parametrize("scope, expected", [
    ("single_match", SingleMatchThreshold),
    ("season", SeasonThreshold),
    ("career", CareerThreshold),
])
def test_threshold_scopes(scope, expected):
    criteria = parse_criteria(make_reward(scope, "goal", 3))
    assert isinstance(criteria, expected)
    assert criteria.event_type == "goal"
    assert criteria.threshold == 3


def test_single_match_without_event_type_never_matches():
    criteria = parse_criteria(make_reward("single_match", None, 1))
    assert isinstance(criteria, Unsatisfiable)
    assert not criteria.evaluate(ctx_for(counts_of(1, "goal"))).satisfied


def test_all_rounder_needs_goal_assist_and_tackle():
    criteria = parse_criteria(make_reward("special", requires={"goal": 1, "assist": 1, "tackle": 2}))
    assert criteria == SameMatchComposite((("goal", 1), ("assist", 1), ("tackle", 2)))


def test_all_rounder_can_also_require_saves():
    criteria = parse_criteria(make_reward("special", requires={"goal": 1, "assist": 1, "tackle": 1, "save": 1}))
    assert dict(criteria.minimums) == {"goal": 1, "assist": 1, "tackle": 1, "save": 1}


@pytest.mark.parametrize("requires", [
    {"goal": 2},
    {"goal": 1, "assist": 1},
    {"assist": 1, "tackle": 1, "save": 3},
])
def test_partial_minimums_are_not_satisfied(requires):
    criteria = parse_criteria(make_reward("special", requires=requires))
    assert isinstance(criteria, Unsatisfiable)
    assert not criteria.evaluate(ctx_for(counts_of(1, "goal", "goal", "assist", "tackle", "save"))).satisfied


def test_partial_minimums_fall_back_to_total_events():
    criteria = parse_criteria(make_reward("special", threshold=50, requires={"goal": 1, "total_events": 50}))
    assert criteria == SeasonTotalEvents(50)


def test_special_total_events():
    criteria = parse_criteria(make_reward("special", threshold=200, reward_type="season", requires={"total_events": 200}))
    assert criteria == SeasonTotalEvents(200)


def test_special_without_known_requirements():
    assert isinstance(parse_criteria(make_reward("special", requires={"unknown": 1})), Unsatisfiable)
    assert isinstance(parse_criteria(make_reward("special")), Unsatisfiable)


def test_captain_requirements_never_match_in_player_loop():
    reward = make_reward("special", reward_type="leadership", requires={"captain_count": 1})
    assert isinstance(parse_criteria(reward), Unsatisfiable)


def test_captain_requirements_do_not_hide_total_events():
    # Recompensa de temporada que además lleva captain_count: sigue en el bucle de jugadores
    reward = make_reward("special", threshold=30, reward_type="season",
                         requires={"captain_count": 2, "total_events": 30})
    assert parse_criteria(reward) == SeasonTotalEvents(30)
    assert parse_leadership_criteria(reward) is None


def test_leadership_criteria_only_for_leadership_rewards():
    criteria = parse_leadership_criteria(make_reward("season", "goal", reward_type="leadership",
                                                     requires={"captain_count": 5}))
    assert criteria == CaptainCount(5, "cumulative")
    assert not criteria.per_match_grant


def test_captain_and_potm_defaults_to_per_match():
    criteria = parse_leadership_criteria(make_reward("special", reward_type="leadership",
                                                     requires={"captain_and_potm_same_match": True}))
    assert isinstance(criteria, CaptainAndPotm)
    assert criteria.per_match_grant


def test_grant_scope_can_be_overridden():
    criteria = parse_leadership_criteria(make_reward("special", reward_type="leadership",
                                                     requires={"captain_and_potm_same_match": True,
                                                               "grant_scope": "cumulative"}))
    assert not criteria.per_match_grant


# -----------------------
# Progreso
# -----------------------
def test_progress_of_special_uses_season_total():
    reward = make_reward("special", threshold=50, requires={"goal": 1, "assist": 1, "tackle": 1, "total_events": 50})
    assert parse_progress_criteria(reward) == SeasonTotalEvents(50)


def test_progress_of_captain_rewards():
    reward = make_reward("special", threshold=10, reward_type="leadership", requires={"captain_count": 10})
    assert parse_progress_criteria(reward) == CaptainCount(10)


# -----------------------
# Catálogo corrupto
# -----------------------
@pytest.mark.parametrize("metadata", [
    ["goal"],
    {"requires": "goal"},
    {"requires": {"goal": "one", "assist": 1, "tackle": 1}},
    {"requires": {"total_events": None, "goal": 1, "assist": 1, "tackle": "x"}},
])
def test_malformed_metadata_raises_catalog_error(metadata):
    reward = make_reward("special")
    reward.metadata_ = metadata
    with pytest.raises(CatalogError):
        parse_criteria(reward)


def test_malformed_captain_count_raises_catalog_error():
    reward = make_reward("special", reward_type="leadership", requires={"captain_count": "many"})
    with pytest.raises(CatalogError):
        RewardRule.from_reward(reward)


# -----------------------
# Evaluación en un partido
# -----------------------
def test_single_match_threshold_boundary():
    criteria = SingleMatchThreshold("goal", 3)
    assert not criteria.evaluate(ctx_for(counts_of(1, "goal", "goal"))).satisfied

    outcome = criteria.evaluate(ctx_for(counts_of(1, "goal", "goal", "goal", "assist")))
    assert outcome.satisfied
    assert outcome.actual_count == 3


def test_composite_needs_every_type_and_reports_match_total():
    criteria = SameMatchComposite((("goal", 1), ("assist", 1), ("tackle", 1)))
    assert not criteria.evaluate(ctx_for(counts_of(1, "goal", "assist", "shot"))).satisfied

    outcome = criteria.evaluate(ctx_for(counts_of(1, "goal", "assist", "tackle", "shot")))
    assert outcome.satisfied
    assert outcome.actual_count == 4


def test_captain_and_potm_only_for_the_captain():
    criteria = CaptainAndPotm()
    # El MVP no es el capitán
    assert not criteria.evaluate(ctx_for(counts_of(1), captain_id=1, potm_id=2)).satisfied
    # Sin capitán
    assert not criteria.evaluate(ctx_for(counts_of(1), captain_id=None, potm_id=1)).satisfied


# -----------------------
# Regla
# -----------------------
def test_rule_scope_key():
    single = RewardRule.from_reward(make_reward("single_match", "goal", 1, id=3))
    season = RewardRule.from_reward(make_reward("season", "goal", 10, reward_type="season", id=4))

    assert single.match_scoped
    assert single.scope_key(42) == "42"
    assert not season.match_scoped
    assert season.scope_key(42) == "all"


def test_rule_is_leadership_needs_both_type_and_criteria():
    captain = RewardRule.from_reward(make_reward("special", reward_type="leadership",
                                                 requires={"captain_count": 1}))
    mislabelled = RewardRule.from_reward(make_reward("single_match", "goal", reward_type="leadership"))

    assert captain.is_leadership
    assert not mislabelled.is_leadership
