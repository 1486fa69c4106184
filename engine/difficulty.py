"""
Difficulty tiers: how the bot turns a search into the move it actually plays.

Each tier is pure data (a TierConfig) in the TIERS table; choose_move reads
the configuration instead of branching on the tier name:

    beginner      depth 1, plays a uniformly random legal move 70% of the time
    intermediate  depth 2, picks among the top 3 candidates 30% of the time
    advanced      depth 3, always the best move found
    maximum       depth 4, always the best move found

The wire label of the maximum tier is "stockfish" for compatibility with
existing clients; no external engine is involved.

All randomness comes from the ``random.Random`` passed in, and the policy
keeps no state between calls, so a fixed seed replays the same moves.
"""

import logging
import random
from dataclasses import dataclass
from enum import StrEnum

import chess

from engine.errors import InvalidInputError, NoLegalMovesError
from engine.search import search
from interface.rules import is_legal, legal_moves

_log = logging.getLogger(__name__)


class Difficulty(StrEnum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    MAXIMUM = "stockfish"


@dataclass(frozen=True)
class TierConfig:
    """
    Behaviour of one difficulty tier.

    Attributes:
        depth:                   Search depth in plies.
        random_move_probability: Chance of ignoring the search and playing a
                                 uniformly random legal move.
        top_k:                   Size of the candidate pool for top-K picks.
        top_k_probability:       Chance of picking uniformly among the top_k
                                 ranked moves instead of the single best.
        randomize_ties:          Break ties between equally scored best
                                 moves randomly rather than by move order.
    """

    depth: int
    random_move_probability: float = 0.0
    top_k: int = 1
    top_k_probability: float = 0.0
    randomize_ties: bool = False


TIERS: dict[Difficulty, TierConfig] = {
    Difficulty.BEGINNER: TierConfig(depth=1, random_move_probability=0.7, randomize_ties=True),
    Difficulty.INTERMEDIATE: TierConfig(depth=2, top_k=3, top_k_probability=0.3, randomize_ties=True),
    Difficulty.ADVANCED: TierConfig(depth=3),
    Difficulty.MAXIMUM: TierConfig(depth=4),
}


def parse_difficulty(label: str) -> Difficulty:
    """Map a wire label to its tier, raising InvalidInputError for unknown labels."""
    try:
        return Difficulty(label)
    except ValueError as exc:
        raise InvalidInputError("Invalid difficulty level") from exc


def choose_move(
    board: chess.Board,
    tier: Difficulty,
    rng: random.Random,
    *,
    time_limit_ms: float | None = None,
) -> chess.Move:
    """
    Pick the bot's move for ``board`` according to ``tier``.

    Args:
        board:         The position, with the bot to move. Not modified.
        tier:          Difficulty tier.
        rng:           Random source for every random decision.
        time_limit_ms: Search budget; a timed-out search still yields a move.

    Returns:
        A move confirmed legal on ``board`` by the rules oracle.

    Raises:
        NoLegalMovesError: ``board`` is terminal.
    """
    config = TIERS[tier]
    moves = legal_moves(board)
    if not moves:
        raise NoLegalMovesError(f"no legal moves in {board.fen()}")

    if config.random_move_probability and rng.random() < config.random_move_probability:
        move = rng.choice(moves)
        _log.debug("%s: random move %s", tier.value, move.uci())
        return _confirmed(board, [move])

    result = search(
        board,
        config.depth,
        rng=rng,
        randomize_ties=config.randomize_ties,
        time_limit_ms=time_limit_ms,
    )

    if config.top_k > 1 and rng.random() < config.top_k_probability:
        pool = [scored.move for scored in result.ranked_moves[: config.top_k]]
        move = rng.choice(pool)
        _log.debug("%s: top-%d pick %s", tier.value, config.top_k, move.uci())
        return _confirmed(board, [move, result.move])

    _log.debug("%s: best move %s (score %d)", tier.value, result.move.uci(), result.score)
    return _confirmed(board, [result.move])


def _confirmed(board: chess.Board, candidates: list[chess.Move]) -> chess.Move:
    """
    Return the first candidate the rules oracle accepts.

    The search only ever produces legal moves, so falling through to the
    first enumerated legal move is a last resort that keeps the bot moving.
    """
    for move in candidates:
        if is_legal(board, move):
            return move
    _log.error("no candidate confirmed legal in %s; playing first legal move", board.fen())
    return legal_moves(board)[0]
