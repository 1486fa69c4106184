"""
Type definitions shared by the game layer and the web layer.
"""

from enum import StrEnum


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class Status(StrEnum):
    ACTIVE = "active"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    RESIGNATION = "resignation"


class GameResult(StrEnum):
    WHITE_WINS = "1-0"
    BLACK_WINS = "0-1"
    DRAW = "1/2-1/2"


class Outcome(StrEnum):
    """A finished game seen from the player's side."""

    WIN = "win"
    DRAW = "draw"
    LOSS = "loss"


# Color choices accepted when creating a game; "random" is resolved once.
COLOR_CHOICES: tuple[str, ...] = ("white", "black", "random")
