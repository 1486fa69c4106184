"""
User statistics and the rating updater.

The rating moves by a fixed amount per finished game (+20 win, +5 draw,
-15 loss) and is clamped to [RATING_FLOOR, RATING_CEILING] by every update.
The outcome is read from the session's stored result and the player's
recorded side; the board is never consulted.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from engine.errors import InvalidSessionError
from game.shared_types import Color, GameResult, Outcome

if TYPE_CHECKING:
    from game.session import GameSession

RATING_FLOOR: int = 800
RATING_CEILING: int = 2400
DEFAULT_RATING: int = 1200

RATING_DELTAS: dict[Outcome, int] = {
    Outcome.WIN: 20,
    Outcome.DRAW: 5,
    Outcome.LOSS: -15,
}

DEFAULT_FAVORITE_OPENINGS: tuple[str, ...] = (
    "Italian Game",
    "Sicilian Defense",
    "Queen's Gambit",
)


@dataclass(frozen=True)
class UserStats:
    total_analyses: int = 0
    total_games: int = 0
    games_won: int = 0
    games_lost: int = 0
    games_drawn: int = 0
    current_rating: int = DEFAULT_RATING
    favorite_openings: tuple[str, ...] = DEFAULT_FAVORITE_OPENINGS

    def __post_init__(self) -> None:
        if not RATING_FLOOR <= self.current_rating <= RATING_CEILING:
            raise ValueError(
                f"rating {self.current_rating} outside [{RATING_FLOOR}, {RATING_CEILING}]"
            )


def clamp_rating(rating: int) -> int:
    return max(RATING_FLOOR, min(RATING_CEILING, rating))


def outcome_for_player(session: "GameSession") -> Outcome:
    """Win, draw, or loss for the player, from the stored result."""
    if session.result is None:
        raise InvalidSessionError("Game has no result yet")
    if session.result == GameResult.DRAW:
        return Outcome.DRAW
    winner = Color.WHITE if session.result == GameResult.WHITE_WINS else Color.BLACK
    return Outcome.WIN if winner == session.player_color else Outcome.LOSS


def rating_change(session: "GameSession") -> int:
    """Rating delta a finished session earned; 0 while it is still active."""
    if session.is_active:
        return 0
    return RATING_DELTAS[outcome_for_player(session)]


def update(stats: UserStats, session: "GameSession") -> UserStats:
    """
    Fold one finished game into the statistics.

    Raises:
        InvalidSessionError: The session is still active.
    """
    if session.is_active:
        raise InvalidSessionError("Game is still active")

    outcome = outcome_for_player(session)
    return replace(
        stats,
        total_games=stats.total_games + 1,
        games_won=stats.games_won + (outcome is Outcome.WIN),
        games_lost=stats.games_lost + (outcome is Outcome.LOSS),
        games_drawn=stats.games_drawn + (outcome is Outcome.DRAW),
        current_rating=clamp_rating(stats.current_rating + RATING_DELTAS[outcome]),
    )


def record_analysis(stats: UserStats) -> UserStats:
    return replace(stats, total_analyses=stats.total_analyses + 1)


def forget_analysis(stats: UserStats) -> UserStats:
    return replace(stats, total_analyses=max(0, stats.total_analyses - 1))


def forget_game(stats: UserStats) -> UserStats:
    # Rating is left as is: replaying every remaining game is not worth it.
    return replace(stats, total_games=max(0, stats.total_games - 1))
