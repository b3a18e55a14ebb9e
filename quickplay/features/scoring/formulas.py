"""
Score index formulas.

Pure functions mapping raw performance metrics to a single normalized score
index per game family. Inputs outside a formula's domain yield 0 instead of
reaching log/exp/pow with an invalid argument.
"""

from __future__ import annotations

import math
from typing import Optional

from quickplay.features.scoring.catalog import get_game

INDEX_DECIMALS = 3

# Reaction-time family
RAMP_LIMIT_MS = 250
DECAY_LIMIT_MS = 10_000
DECAY_RATE = math.log(0.8) / 625

# Snap sigmoid
SNAP_T0_MS = 546
SNAP_EXPONENT = math.pi

# Pairs
PAIRS_BASE = 95
PAIRS_CAP = 100.0
PAIRS_HALF_LIFE_S = 4


def is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_index(value: float) -> float:
    """Round to the stored precision. Idempotent."""
    return round(float(value), INDEX_DECIMALS)


def reaction_time_index(reaction_time_ms: float, correct: float) -> float:
    """
    Maths/Stroop family.

    (0, 250]       C * (5 - 5 cos(pi T / 250))    cosine ramp, 0 -> 10C
    (250, 10000)   10 C exp(ln(0.8)/625 * (T - 250) / 2)
    otherwise      0 (also for a negative correct count)
    """
    if not (is_number(reaction_time_ms) and is_number(correct)):
        return 0.0
    T = float(reaction_time_ms)
    C = float(correct)
    if C < 0:
        return 0.0
    if 0 < T <= RAMP_LIMIT_MS:
        return C * (5 - 5 * math.cos((math.pi / RAMP_LIMIT_MS) * T))
    if RAMP_LIMIT_MS < T < DECAY_LIMIT_MS:
        return 10 * C * math.exp(DECAY_RATE * ((T - RAMP_LIMIT_MS) / 2))
    return 0.0


def snap_index(reaction_time_ms: float) -> float:
    """100 / (1 + (t / T0)^n). Every valid snap is correct, so correctness is ignored."""
    if not is_number(reaction_time_ms) or reaction_time_ms <= 0:
        return 0.0
    try:
        return 100 / (1 + math.pow(reaction_time_ms / SNAP_T0_MS, SNAP_EXPONENT))
    except OverflowError:
        return 0.0


def pairs_index(total_turns: float, total_time_ms: float) -> float:
    """(95 + b) * exp(-(ln 2 / 4) * (x - 1)), x in seconds; capped at 100 below one second."""
    if not (is_number(total_turns) and is_number(total_time_ms)):
        return 0.0
    if total_time_ms <= 0 or total_turns < 0:
        return 0.0
    x = total_time_ms / 1000
    if x < 1:
        return PAIRS_CAP
    return (PAIRS_BASE + total_turns) * math.exp(-(math.log(2) / PAIRS_HALF_LIFE_S) * (x - 1))


def score_index_for(
    game_id: str,
    *,
    reaction_time_ms: Optional[float] = None,
    correct: Optional[float] = None,
    total_turns: Optional[float] = None,
    total_time_ms: Optional[float] = None,
) -> float:
    """Dispatch on the game's family and return the rounded index."""
    game = get_game(game_id)
    if game is None:
        raise ValueError(f"Unknown game: {game_id}")

    if game.family == "snap":
        raw = snap_index(reaction_time_ms if reaction_time_ms is not None else 0)
    elif game.family == "pairs":
        raw = pairs_index(
            total_turns if total_turns is not None else 0,
            total_time_ms if total_time_ms is not None else 0,
        )
    else:
        raw = reaction_time_index(
            reaction_time_ms if reaction_time_ms is not None else 0,
            correct if correct is not None else 0,
        )
    return round_index(raw)
