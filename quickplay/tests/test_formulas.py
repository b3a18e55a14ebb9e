import math

import pytest

from quickplay.features.scoring.formulas import (
    pairs_index,
    reaction_time_index,
    round_index,
    score_index_for,
    snap_index,
)


def test_snap_midpoint_is_fifty():
    assert score_index_for("snap", reaction_time_ms=546) == 50.0


def test_reaction_time_boundary_is_fifty():
    assert score_index_for("maths", reaction_time_ms=250, correct=5) == 50.0
    assert score_index_for("stroop", reaction_time_ms=250, correct=5) == 50.0


def test_reaction_time_branches_meet_at_ramp_limit():
    left = reaction_time_index(250, 5)
    right = reaction_time_index(250 + 1e-9, 5)
    assert math.isclose(left, right, rel_tol=1e-9)


def test_pairs_under_one_second_is_capped_regardless_of_turns():
    assert score_index_for("pairs", total_turns=3, total_time_ms=500) == 100.0
    assert score_index_for("pairs", total_turns=40, total_time_ms=999) == 100.0


def test_pairs_decay_halves_every_four_seconds():
    assert pairs_index(0, 1000) == pytest.approx(95)
    assert pairs_index(0, 5000) == pytest.approx(47.5)
    assert pairs_index(5, 9000) == pytest.approx(25)


@pytest.mark.parametrize("t", [0.001, 1, 50, 249, 250, 251, 1000, 5000, 9999.9])
def test_reaction_time_index_is_non_negative(t):
    assert reaction_time_index(t, 7) >= 0


def test_reaction_time_ramp_starts_near_zero():
    assert reaction_time_index(1e-6, 10) < 1e-9


@pytest.mark.parametrize("t", [10000, 12000, 1e9])
def test_reaction_time_index_is_zero_from_ten_seconds(t):
    assert reaction_time_index(t, 10) == 0


@pytest.mark.parametrize("t", [0, -5, float("nan"), float("inf")])
def test_reaction_time_outside_domain_is_zero(t):
    assert reaction_time_index(t, 10) == 0


@pytest.mark.parametrize("t", [100, 250, 400, 5000])
def test_negative_correct_count_is_zero(t):
    assert reaction_time_index(t, -3) == 0
    assert score_index_for("maths", reaction_time_ms=t, correct=-3) == 0


def test_snap_outside_domain_is_zero():
    assert snap_index(0) == 0
    assert snap_index(-100) == 0
    assert snap_index(True) == 0


def test_snap_huge_time_does_not_overflow():
    assert snap_index(1e300) == 0


def test_pairs_invalid_inputs_are_zero():
    assert pairs_index(4, 0) == 0
    assert pairs_index(4, -1000) == 0
    assert pairs_index(-1, 3000) == 0


def test_rounding_is_idempotent():
    value = reaction_time_index(333, 9)
    once = round_index(value)
    assert round_index(once) == once
    assert once == round(value, 3)


def test_score_index_for_unknown_game():
    with pytest.raises(ValueError):
        score_index_for("chess", reaction_time_ms=300)


def test_score_index_for_is_rounded_to_three_decimals():
    index = score_index_for("maths", reaction_time_ms=333.3, correct=7)
    assert index == round(index, 3)
    assert index == round(reaction_time_index(333.3, 7), 3)
