"""
Static position evaluation: material, center control, development, king
safety, mobility.

A chess engine needs to assign a numeric score to any board position so the
search can compare moves. This module scores a position as the sum of five
independent sub-scores, each computed from White's point of view:

- Material:      piece values summed with sign by color.
- Center:        a fixed bonus per occupied central square (d4, e4, d5, e5).
- Development:   a bonus per knight or bishop on a development square.
- King safety:   a penalty per enemy piece attacking each king's square.
- Mobility:      the difference between both sides' legal-move counts.

Terminal positions are decided by the rules oracle before any of that: a
checkmated side receives a mate evaluation against it, stalemates and draws
score exactly zero.

An optional random perturbation makes shallow evaluations noisier than deep
ones. It is driven only by the ``random.Random`` instance the caller passes
in, so evaluation stays reproducible under a fixed seed.

Unlike the search, which works in the side-to-move (negamax) convention,
everything returned here is White-positive. The search negates scores for
Black itself.
"""

import random

import chess

from engine.constants import (
    BLACK_DEVELOPMENT_SQUARES,
    CENTER_BONUS,
    CENTER_SQUARES,
    DEVELOPING_PIECES,
    DEVELOPMENT_BONUS,
    KING_ATTACKER_PENALTY,
    MOBILITY_WEIGHT,
    NOISE_AMPLITUDE,
    NOISE_DEPTH_HORIZON,
    PIECE_VALUES,
    WHITE_DEVELOPMENT_SQUARES,
)
from engine.models import Evaluation
from interface.rules import Termination, termination


def material_score(board: chess.Board) -> int:
    """Sum of piece values, White minus Black."""
    score = 0
    for piece_type, value in PIECE_VALUES.items():
        score += value * len(board.pieces(piece_type, chess.WHITE))
        score -= value * len(board.pieces(piece_type, chess.BLACK))
    return score


def center_score(board: chess.Board) -> int:
    """CENTER_BONUS per occupied central square, signed by the occupant's color."""
    score = 0
    for sq in CENTER_SQUARES:
        piece = board.piece_at(sq)
        if piece is None:
            continue
        score += CENTER_BONUS if piece.color == chess.WHITE else -CENTER_BONUS
    return score


def development_squares(color: chess.Color) -> tuple[int, ...]:
    return WHITE_DEVELOPMENT_SQUARES if color == chess.WHITE else BLACK_DEVELOPMENT_SQUARES


def development_score(board: chess.Board) -> int:
    """DEVELOPMENT_BONUS per knight or bishop on its side's development squares."""
    score = 0
    for color, sign in ((chess.WHITE, 1), (chess.BLACK, -1)):
        for sq in development_squares(color):
            piece = board.piece_at(sq)
            if piece is not None and piece.color == color and piece.piece_type in DEVELOPING_PIECES:
                score += sign * DEVELOPMENT_BONUS
    return score


def king_safety_score(board: chess.Board) -> int:
    """
    Penalize each king by the number of enemy pieces attacking its square.

    White's attackers lower the score, Black's raise it. A missing king
    (only possible in hand-built test boards) contributes nothing.
    """
    score = 0
    white_king = board.king(chess.WHITE)
    if white_king is not None:
        score -= KING_ATTACKER_PENALTY * len(board.attackers(chess.BLACK, white_king))
    black_king = board.king(chess.BLACK)
    if black_king is not None:
        score += KING_ATTACKER_PENALTY * len(board.attackers(chess.WHITE, black_king))
    return score


def mobility_score(board: chess.Board) -> int:
    """
    Difference in legal-move counts, White minus Black, times MOBILITY_WEIGHT.

    The side not to move is counted on a copy with the turn flipped and the
    en passant square cleared (an en passant right only ever belongs to the
    side to move).
    """
    to_move = board.legal_moves.count()

    flipped = board.copy(stack=False)
    flipped.turn = not board.turn
    flipped.ep_square = None
    waiting = flipped.legal_moves.count()

    if board.turn == chess.WHITE:
        return (to_move - waiting) * MOBILITY_WEIGHT
    return (waiting - to_move) * MOBILITY_WEIGHT


def centipawn_score(board: chess.Board) -> int:
    """Sum of the five sub-scores for a non-terminal position (White-positive)."""
    return (
        material_score(board)
        + center_score(board)
        + development_score(board)
        + king_safety_score(board)
        + mobility_score(board)
    )


def noise(rng: random.Random, depth: int | None) -> float:
    """
    Random perturbation in centipawns, shrinking as the depth grows.

    At depth 0 the noise spans +/- NOISE_AMPLITUDE / 2; at NOISE_DEPTH_HORIZON
    plies and beyond it vanishes.
    """
    accuracy = min(max(depth or 0, 0) / NOISE_DEPTH_HORIZON, 1.0)
    return (rng.random() - 0.5) * NOISE_AMPLITUDE * (1.0 - accuracy)


def evaluate(
    board: chess.Board,
    *,
    depth: int | None = None,
    rng: random.Random | None = None,
) -> Evaluation:
    """
    Evaluate a position from White's point of view.

    Args:
        board: The position to score. Not modified.
        depth: Search depth the evaluation is requested for. Only used to
               scale the noise; deeper requests are less noisy.
        rng:   Random source for the noise. Without one the evaluation is
               deterministic.

    Returns:
        A mate evaluation if the side to move is checkmated (``M-1`` when
        White is mated, ``M1`` when Black is), ``0.00`` for stalemates and
        draws, and the summed centipawn score otherwise.

    Example:
        >>> import chess
        >>> evaluate(chess.Board()).formatted
        '0.00'
    """
    reason = termination(board)
    if reason is Termination.CHECKMATE:
        return Evaluation.mate(-1 if board.turn == chess.WHITE else 1)
    if reason is not None:
        return Evaluation.centipawns(0)

    score: float = centipawn_score(board)
    if rng is not None:
        score += noise(rng, depth)
    return Evaluation.centipawns(round(score))
