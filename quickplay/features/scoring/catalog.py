from __future__ import annotations

from datetime import date
from typing import Dict, Tuple

from quickplay.models.scores import GameInfo

# Order matters: the daily pair rotates through this tuple.
SCORED_GAMES: Tuple[GameInfo, ...] = (
    GameInfo(game_id="snap", title="Snap", family="snap"),
    GameInfo(game_id="maths", title="Maths Challenge", family="reaction_time"),
    GameInfo(game_id="pairs", title="Quick Pair Match", family="pairs"),
    GameInfo(game_id="stroop", title="Stroop Test", family="reaction_time"),
)

GAMES_BY_ID: Dict[str, GameInfo] = {game.game_id: game for game in SCORED_GAMES}


def get_game(game_id: str) -> GameInfo | None:
    return GAMES_BY_ID.get(game_id)


def game_title(game_id: str) -> str:
    game = GAMES_BY_ID.get(game_id)
    return game.title if game else game_id


def daily_games(today: date) -> Tuple[str, str]:
    """The two designated daily games: consecutive catalog entries keyed on days since epoch."""
    days_since_epoch = (today - date(1970, 1, 1)).days
    primary = days_since_epoch % len(SCORED_GAMES)
    secondary = (primary + 1) % len(SCORED_GAMES)
    return SCORED_GAMES[primary].game_id, SCORED_GAMES[secondary].game_id
