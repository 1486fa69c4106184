"""
Move search: depth-bounded negamax over a truncated move list, with
iterative deepening and time management.

The search is deliberately shallow and heuristic. Playing strength is a
difficulty knob, not an optimization target, so there is no transposition
table, no quiescence search, and no opening book.

How a search proceeds:

1. The root enumerates every legal move from the rules oracle. If there is
   none, the caller has broken its contract (it must check terminal status
   first) and NoLegalMovesError is raised.

2. Iterative deepening runs depth 1, 2, ... up to min(depth, MAX_SEARCH_PLY).
   Depth 1 scores every candidate by evaluating its resulting position
   directly. Deeper iterations recurse into the opponent's replies with
   negamax and alpha-beta pruning.

3. Branching truncation: below the root, moves are ordered captures-first
   (MVV-LVA), then quiet moves by the center and development bonus of
   their destination square, and only the first SEARCH_BRANCH_CAP are
   searched. This keeps cost bounded and predictable at the price of move
   quality: a reply outside the cap is never considered, however strong.
   The root itself is always searched full-width, so every legal move gets
   a score.

   One exception: when every capped move at a node gets mated, the node
   keeps searching its remaining moves until one escapes. A mate score
   therefore only reaches the root when the losing side had no way out
   within the horizon, and a reported mate is a real one.

4. Root moves are searched with a full window, so their scores are exact
   (for the truncated tree) and can be ranked. Ties keep enumeration order
   unless the caller asks for randomized tie-breaking.

5. Time management: the clock is checked every TIME_CHECK_NODES nodes. When
   the budget runs out, EngineTimeoutError unwinds the current iteration and
   the result of the last completed iteration is used. Depth 1 is never
   interrupted, so a legal move always comes back.

Scores inside the search follow the negamax convention: positive means the
side to move at that node is ahead. Mates score CHECKMATE_SCORE - ply so
shorter mates are preferred.
"""

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Iterable

import chess

from engine.constants import (
    CENTER_BONUS,
    CENTER_SQUARES,
    CHECKMATE_SCORE,
    DEVELOPING_PIECES,
    DEVELOPMENT_BONUS,
    DRAW_SCORE,
    MATE_THRESHOLD,
    MAX_SEARCH_PLY,
    PIECE_VALUES,
    PV_MAX_LENGTH,
    SEARCH_BRANCH_CAP,
    TIME_CHECK_NODES,
    TIME_USAGE_FRACTION,
)
from engine.errors import EngineTimeoutError, NoLegalMovesError
from engine.evaluate import centipawn_score, development_squares
from interface.rules import Termination, legal_moves, termination

_log = logging.getLogger(__name__)

_INFINITY: int = CHECKMATE_SCORE + 1


@dataclass
class SearchState:
    """
    Mutable bookkeeping for one search call.

    Attributes:
        time_limit_ms: Budget in milliseconds; infinite when the caller
                       sets no timeout.
        start_time:    Monotonic timestamp when the search began.
        node_count:    Nodes visited so far, across all iterations.
        interruptible: Whether the clock may abort the running iteration.
                       False for depth 1, which must always complete.
    """

    time_limit_ms: float = float("inf")
    start_time: float = field(default_factory=time.monotonic)
    node_count: int = 0
    interruptible: bool = False

    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000

    def out_of_time(self) -> bool:
        return self.elapsed_ms() >= self.time_limit_ms * TIME_USAGE_FRACTION


@dataclass(frozen=True)
class ScoredMove:
    move: chess.Move
    score: int


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of a search.

    Attributes:
        move:                The chosen move (legal in the searched position).
        score:               Its score from the mover's perspective.
        principal_variation: SAN strings starting with ``move``.
        ranked_moves:        Every root move of the last completed iteration,
                             best first; equal scores keep enumeration order.
        depth:               Deepest iteration that completed.
        nodes:               Nodes visited.
        timed_out:           True if the time budget cut the search short.
    """

    move: chess.Move
    score: int
    principal_variation: tuple[str, ...]
    ranked_moves: tuple[ScoredMove, ...]
    depth: int
    nodes: int
    timed_out: bool

    @property
    def is_mate(self) -> bool:
        return abs(self.score) >= MATE_THRESHOLD


def _quiet_move_score(board: chess.Board, move: chess.Move) -> int:
    """
    Cheap static ranking of a quiet move: the center and development
    bonuses its piece would earn on the destination square.
    """
    piece = board.piece_at(move.from_square)
    score = 0
    if move.to_square in CENTER_SQUARES:
        score += CENTER_BONUS
    if (
        piece is not None
        and piece.piece_type in DEVELOPING_PIECES
        and move.to_square in development_squares(piece.color)
    ):
        score += DEVELOPMENT_BONUS
    return score


def _order_moves(board: chess.Board, moves: Iterable[chess.Move]) -> list[chess.Move]:
    """
    Order moves captures-first using MVV-LVA, then quiet moves by
    _quiet_move_score.

    Captures score 10_000 + victim value - attacker value, so every capture
    sorts above every quiet move. The sort is stable: equal keys keep their
    enumeration order.
    """
    def _key(move: chess.Move) -> int:
        if not board.is_capture(move):
            return _quiet_move_score(board, move)
        attacker = board.piece_at(move.from_square)
        victim = board.piece_at(move.to_square)
        attacker_val = PIECE_VALUES.get(attacker.piece_type, 0) if attacker else 0
        # En passant: the captured pawn is not on move.to_square.
        victim_val = PIECE_VALUES.get(victim.piece_type, 0) if victim else PIECE_VALUES[chess.PAWN]
        return 10_000 + victim_val - attacker_val

    return sorted(moves, key=_key, reverse=True)


def _tick(state: SearchState) -> None:
    """Count a node and abort the iteration if the time budget is spent."""
    state.node_count += 1
    if (
        state.interruptible
        and state.node_count % TIME_CHECK_NODES == 0
        and state.out_of_time()
    ):
        raise EngineTimeoutError(
            f"search budget of {state.time_limit_ms:.0f} ms exhausted"
        )


def _static_score(board: chess.Board) -> int:
    """Centipawn score of a non-terminal position, side-to-move perspective."""
    score = centipawn_score(board)
    return score if board.turn == chess.WHITE else -score


def negamax(
    board: chess.Board,
    depth: int,
    alpha: int,
    beta: int,
    ply: int,
    state: SearchState,
) -> int:
    """
    Negamax with alpha-beta pruning over the truncated move list, widened to
    every legal move while all moves searched so far get mated.

    Args:
        board: Position to search. Modified in place via push/pop and
               restored on normal return.
        depth: Remaining plies. At 0 the static evaluation is returned.
        alpha: Lower bound of the search window.
        beta:  Upper bound of the search window.
        ply:   Distance from the root, used to prefer shorter mates.
        state: Node counter and clock.

    Returns:
        Score from the perspective of the side to move at this node.
    """
    _tick(state)

    reason = termination(board)
    if reason is Termination.CHECKMATE:
        return -(CHECKMATE_SCORE - ply)
    if reason is not None:
        return DRAW_SCORE

    if depth == 0:
        return _static_score(board)

    ordered = _order_moves(board, board.legal_moves)
    best_score = -_INFINITY
    for index, move in enumerate(ordered):
        # Past the cap, continue only while every move so far gets mated.
        if index >= SEARCH_BRANCH_CAP and best_score > -MATE_THRESHOLD:
            break

        board.push(move)
        score = -negamax(board, depth - 1, -beta, -alpha, ply + 1, state)
        board.pop()

        if score > best_score:
            best_score = score
        if best_score > alpha:
            alpha = best_score
        if alpha >= beta:
            break

    return best_score


def _search_root(board: chess.Board, depth: int, state: SearchState) -> tuple[ScoredMove, ...]:
    """Score every legal root move at ``depth`` and rank them, best first."""
    scored: list[ScoredMove] = []
    for move in board.legal_moves:
        board.push(move)
        score = -negamax(board, depth - 1, -_INFINITY, _INFINITY, 1, state)
        board.pop()
        scored.append(ScoredMove(move, score))
    # sorted() is stable: equal scores keep enumeration order.
    return tuple(sorted(scored, key=lambda s: s.score, reverse=True))


def _pick(
    ranked: tuple[ScoredMove, ...],
    rng: random.Random | None,
    randomize_ties: bool,
) -> ScoredMove:
    best = ranked[0]
    if randomize_ties and rng is not None:
        tied = [s for s in ranked if s.score == best.score]
        return rng.choice(tied)
    return best


def shallow_best_move(board: chess.Board) -> chess.Move:
    """
    The depth-1 choice: the move whose resulting position evaluates best.

    Raises:
        NoLegalMovesError: ``board`` is terminal.
    """
    if not any(board.legal_moves):
        raise NoLegalMovesError(f"no legal moves in {board.fen()}")
    ranked = _search_root(board.copy(), 1, SearchState())
    return ranked[0].move


def principal_variation(board: chess.Board, first_move: chess.Move, length: int) -> tuple[str, ...]:
    """
    ``first_move`` followed by repeated depth-1 choices, as SAN strings.

    Stops after ``length`` moves or at a terminal position. ``board`` is
    not modified.
    """
    line = board.copy()
    pv = [line.san(first_move)]
    line.push(first_move)
    while len(pv) < length and termination(line) is None:
        reply = shallow_best_move(line)
        pv.append(line.san(reply))
        line.push(reply)
    return tuple(pv)


def search(
    board: chess.Board,
    depth: int,
    *,
    rng: random.Random | None = None,
    randomize_ties: bool = False,
    time_limit_ms: float | None = None,
) -> SearchResult:
    """
    Find the best move for the side to move.

    Args:
        board:          The position. Not modified.
        depth:          Requested depth in plies; values above
                        MAX_SEARCH_PLY are searched at MAX_SEARCH_PLY.
        rng:            Random source for tie-breaking.
        randomize_ties: Choose uniformly among equally scored best moves
                        instead of taking the first one enumerated.
        time_limit_ms:  Budget for the whole call. None means unlimited.

    Returns:
        SearchResult for the deepest completed iteration.

    Raises:
        NoLegalMovesError: The position is already terminal.
    """
    if not legal_moves(board):
        raise NoLegalMovesError(f"no legal moves in {board.fen()}")

    target = max(1, min(depth, MAX_SEARCH_PLY))
    state = SearchState(
        time_limit_ms=float(time_limit_ms) if time_limit_ms is not None else float("inf"),
    )

    ranked: tuple[ScoredMove, ...] = ()
    completed_depth = 0
    timed_out = False

    for current in range(1, target + 1):
        if current > 1 and state.out_of_time():
            timed_out = True
            break

        state.interruptible = current > 1
        try:
            ranked = _search_root(board.copy(), current, state)
        except EngineTimeoutError as exc:
            # Keep the last completed iteration.
            _log.debug("depth %d abandoned: %s", current, exc)
            timed_out = True
            break

        completed_depth = current
        _log.debug(
            "depth %d best=%s score=%d nodes=%d",
            current,
            ranked[0].move.uci(),
            ranked[0].score,
            state.node_count,
        )

        # A proven mate cannot be improved by searching deeper.
        if ranked[0].score >= MATE_THRESHOLD:
            break

    chosen = _pick(ranked, rng, randomize_ties)
    pv = principal_variation(board, chosen.move, min(max(depth, 1), PV_MAX_LENGTH))

    return SearchResult(
        move=chosen.move,
        score=chosen.score,
        principal_variation=pv,
        ranked_moves=ranked,
        depth=completed_depth,
        nodes=state.node_count,
        timed_out=timed_out,
    )
