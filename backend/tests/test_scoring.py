import pytest

from chronos.services.games.scoring import (
    DEFAULT_RATING,
    SCORING_PRESETS,
    LevelStats,
    ScoreBreakdown,
    ScoringTable,
    calculate_level_score,
)


def test_perfect_run_scores_base_bonus_and_time():
    table = ScoringTable(time_bonus_tiers=((2.5, 200),))
    stats = LevelStats(correct=10)
    result = calculate_level_score(stats, 2.0, table)
    assert result.base_score == 15000
    assert result.consecutive_bonus == 600
    assert result.time_bonus == 200
    assert result.penalties == 0
    assert result.total_score == 15800
    assert result.accuracy == 100


def test_total_score_is_clamped_at_zero():
    stats = LevelStats(incorrect=5, skipped=5)
    for minutes in (0.5, 3.0, 60.0):
        result = calculate_level_score(stats, minutes, SCORING_PRESETS['standard'])
        assert result.base_score == 0
        assert result.penalties == 5750
        assert result.total_score == 0
        assert result.accuracy == 0


def test_hints_reduce_points_for_correct_answers():
    table = ScoringTable()
    result = calculate_level_score(LevelStats(correct=3, hints_used=1), 10, table)
    # two unassisted, one assisted
    assert result.base_score == 2 * 1500 + 1000
    # more hints than correct answers only discounts the correct ones
    result = calculate_level_score(LevelStats(correct=1, incorrect=2, hints_used=3), 10, table)
    assert result.base_score == 1000


def test_accuracy_counts_skips_in_denominator():
    result = calculate_level_score(LevelStats(correct=3, incorrect=1, skipped=1), 10, ScoringTable())
    assert result.accuracy == pytest.approx(60.0)


def test_accuracy_stays_within_bounds():
    for stats in (LevelStats(), LevelStats(correct=7), LevelStats(skipped=4), LevelStats(correct=1, incorrect=9)):
        result = calculate_level_score(stats, 1, ScoringTable())
        assert 0 <= result.accuracy <= 100


def test_negative_time_is_treated_as_zero():
    result = calculate_level_score(LevelStats(correct=1), -4, SCORING_PRESETS['standard'])
    assert result.time_taken == 0
    assert result.time_bonus == 250


def test_time_bonus_uses_first_strict_tier():
    table = ScoringTable(time_bonus_tiers=((5, 50), (1, 250), (2, 200)))
    assert table.time_bonus_tiers == ((1.0, 250), (2.0, 200), (5.0, 50))
    assert table.time_bonus(0.99) == 250
    assert table.time_bonus(1.0) == 200
    assert table.time_bonus(4.99) == 50
    assert table.time_bonus(5.0) == 0


def test_consecutive_bonus_block_size_not_positive():
    assert ScoringTable(consecutive_bonus_block_size=0).consecutive_bonus(9) == 0
    assert ScoringTable(consecutive_bonus_block_size=-3).consecutive_bonus(9) == 0
    assert ScoringTable().consecutive_bonus(8) == 400


def test_every_input_gets_a_rating():
    table = SCORING_PRESETS['standard']
    assert table.rate(100, 2.9) == 'Excellent'
    assert table.rate(95, 4) == 'Good'
    assert table.rate(75, 3) == 'Good'
    assert table.rate(55, 4.5) == 'Average'
    assert table.rate(100, 10) == DEFAULT_RATING
    assert ScoringTable().rate(100, 0) == DEFAULT_RATING


def test_breakdown_components_add_up():
    stats = LevelStats(correct=4, incorrect=1, skipped=1, hints_used=2)
    result = calculate_level_score(stats, 3.2, SCORING_PRESETS['logic'])
    expected = result.base_score + result.consecutive_bonus + result.time_bonus - result.penalties
    assert result.total_score == max(0, expected)


def test_breakdown_dict_round_trip():
    result = calculate_level_score(LevelStats(correct=2, incorrect=1), 1.2, SCORING_PRESETS['classic'])
    assert ScoreBreakdown.from_dict(result.to_dict()) == result


def test_presets_keep_observed_constants():
    brain = SCORING_PRESETS['brain']
    assert brain.points_per_correct == brain.points_per_correct_with_hint == 2000
    assert brain.consecutive_bonus_unit == 300
    sprint = SCORING_PRESETS['sprint']
    assert sprint.consecutive_bonus(9) == 0
    assert SCORING_PRESETS['classic'].time_bonus(5.2) == 0
    assert SCORING_PRESETS['standard'].time_bonus(5.2) == 25


def test_from_config_accepts_preset_or_overrides():
    assert ScoringTable.from_config(None) is SCORING_PRESETS['standard']
    assert ScoringTable.from_config('brain') is SCORING_PRESETS['brain']
    custom = ScoringTable.from_config({'preset': 'logic', 'skip_penalty': 900, 'time_bonus_tiers': [[3, 10]]})
    assert custom.skip_penalty == 900
    assert custom.points_per_correct == 1600
    assert custom.time_bonus_tiers == ((3.0, 10),)


def test_from_config_rejects_unknown_names():
    with pytest.raises(ValueError):
        ScoringTable.from_config('turbo')
    with pytest.raises(ValueError):
        ScoringTable.from_config({'bonus_multiplier': 2})


def test_level_stats_arithmetic():
    stats = LevelStats(correct=3, incorrect=1, hints_used=2)
    synced = LevelStats(correct=2, hints_used=2)
    pending = stats - synced
    assert pending == LevelStats(correct=1, incorrect=1)
    assert pending.as_increments() == {'correct_questions': 1, 'incorrect_questions': 1}
    assert synced + pending == stats
    assert LevelStats().is_empty()
