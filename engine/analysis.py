"""
Full position analysis built on the single evaluate/search pair.

Bot moves and user-requested analyses share the same evaluation function
and search; this module only packages a search into an AnalysisResult with
an evaluation, a best move, a principal variation, and a confidence figure.
"""

import logging
import random
import time

import chess

from engine.constants import (
    CHECKMATE_SCORE,
    CONFIDENCE_BASE,
    CONFIDENCE_MAX,
    CONFIDENCE_MIN,
    CONFIDENCE_PENALTY_PER_PLY,
    MAX_SEARCH_PLY,
)
from engine.evaluate import evaluate
from engine.models import AnalysisResult, Evaluation, MoveInfo, Position
from engine.search import SearchResult, search
from interface.rules import termination

_log = logging.getLogger(__name__)


def mate_evaluation(board: chess.Board, score: int) -> Evaluation:
    """
    Convert a mate search score into a White-positive mate evaluation.

    The search only produces such a score when the mated side's every reply
    was searched, so the mate is forced within the search horizon.

    ``score`` is from the perspective of the side to move on ``board``;
    CHECKMATE_SCORE - ply means that side mates after ``ply`` plies.
    """
    plies = CHECKMATE_SCORE - abs(score)
    moves = max(1, (plies + 1) // 2)
    mover_mates = score > 0
    white_mates = mover_mates == (board.turn == chess.WHITE)
    return Evaluation.mate(moves if white_mates else -moves)


def confidence_for(depth: int, result: SearchResult) -> float:
    """
    Confidence percentage for an analysis at the requested ``depth``.

    Grows with the requested depth up to CONFIDENCE_MAX and drops by
    CONFIDENCE_PENALTY_PER_PLY for every ply the search could not finish
    within its time budget. A mate found early is not penalized.
    """
    confidence = min(CONFIDENCE_MAX, CONFIDENCE_BASE + depth)
    if result.timed_out:
        missing = min(depth, MAX_SEARCH_PLY) - result.depth
        confidence -= CONFIDENCE_PENALTY_PER_PLY * max(missing, 0)
    return float(max(CONFIDENCE_MIN, confidence))


def analyze(
    board: chess.Board,
    depth: int,
    *,
    time_limit_ms: float | None = None,
    rng: random.Random | None = None,
) -> AnalysisResult:
    """
    Analyze ``board`` and return an immutable AnalysisResult.

    Args:
        board:         Position to analyze. Not modified.
        depth:         Requested depth (at least 1). The search itself is
                       capped at MAX_SEARCH_PLY; ``depth`` also bounds the
                       principal variation and scales the evaluation noise.
        time_limit_ms: Search budget in milliseconds.
        rng:           Random source for evaluation noise.

    Terminal positions are reported without a best move, with an empty
    principal variation and full confidence.
    """
    started = time.monotonic()
    depth = max(1, depth)
    position = Position.from_board(board)

    if termination(board) is not None:
        return AnalysisResult(
            position=position,
            evaluation=evaluate(board),
            best_move=None,
            principal_variation=(),
            depth=depth,
            confidence=100.0,
            analysis_time_ms=_elapsed_ms(started),
        )

    result = search(board, depth, time_limit_ms=time_limit_ms)
    if result.is_mate:
        evaluation = mate_evaluation(board, result.score)
    else:
        evaluation = evaluate(board, depth=depth, rng=rng)

    analysis = AnalysisResult(
        position=position,
        evaluation=evaluation,
        best_move=MoveInfo.from_move(board, result.move),
        principal_variation=result.principal_variation,
        depth=depth,
        confidence=confidence_for(depth, result),
        analysis_time_ms=_elapsed_ms(started),
    )
    _log.info(
        "analysis fen=%s best=%s eval=%s depth=%d/%d nodes=%d",
        position.fen,
        analysis.best_move.san,
        evaluation.formatted,
        result.depth,
        depth,
        result.nodes,
    )
    return analysis


def _elapsed_ms(started: float) -> int:
    return round((time.monotonic() - started) * 1000)
