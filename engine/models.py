"""
Immutable value types produced by the engine.

Positions, moves, evaluations, and analysis results are created once per
request and never modified afterwards; every move yields a new Position.
"""

from dataclasses import dataclass
from enum import StrEnum

import chess


@dataclass(frozen=True)
class Position:
    """A chess position in FEN encoding."""

    fen: str

    @property
    def turn(self) -> str:
        """Side to move, ``"w"`` or ``"b"``."""
        return self.fen.split()[1]

    def board(self) -> chess.Board:
        """A fresh python-chess board for this position (safe to mutate)."""
        return chess.Board(self.fen)

    @classmethod
    def from_board(cls, board: chess.Board) -> "Position":
        return cls(board.fen())


class EvaluationKind(StrEnum):
    CENTIPAWNS = "cp"
    MATE = "mate"


def format_centipawns(value: int) -> str:
    """Render centipawns as pawns with two decimals: ``+0.35``, ``-1.20``, ``0.00``."""
    pawns = value / 100
    return f"+{pawns:.2f}" if value > 0 else f"{pawns:.2f}"


def format_mate(moves: int) -> str:
    """Render a mate distance: ``M3`` when White mates, ``M-3`` when Black does."""
    return f"M{moves}"


@dataclass(frozen=True)
class Evaluation:
    """
    Either a centipawn score or a mate distance, never both.

    Values are from White's point of view: positive centipawns favour White,
    a positive mate value means White delivers (or has delivered) mate.
    Build instances with :meth:`centipawns` or :meth:`mate`.
    """

    kind: EvaluationKind
    value: int
    formatted: str

    @classmethod
    def centipawns(cls, value: int) -> "Evaluation":
        value = int(value)
        return cls(EvaluationKind.CENTIPAWNS, value, format_centipawns(value))

    @classmethod
    def mate(cls, moves: int) -> "Evaluation":
        if moves == 0:
            raise ValueError("mate distance must be non-zero")
        return cls(EvaluationKind.MATE, moves, format_mate(moves))

    @property
    def is_mate(self) -> bool:
        return self.kind is EvaluationKind.MATE


@dataclass(frozen=True)
class MoveInfo:
    """A legal move together with its notation and the position it leads to."""

    from_square: str
    to_square: str
    san: str
    uci: str
    promotion: str | None
    fen_after: str

    @classmethod
    def from_move(cls, board: chess.Board, move: chess.Move) -> "MoveInfo":
        """
        Describe ``move`` played from ``board``.

        ``move`` must come from the rules oracle (legal on ``board``).
        ``board`` is not modified.
        """
        san = board.san(move)
        after = board.copy(stack=False)
        after.push(move)
        return cls(
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            san=san,
            uci=move.uci(),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
            fen_after=after.fen(),
        )

    @property
    def position_after(self) -> Position:
        return Position(self.fen_after)


@dataclass(frozen=True)
class AnalysisResult:
    """
    Snapshot of one position analysis.

    Attributes:
        position:            The analysed position.
        evaluation:          Static evaluation, or the mate the search proved.
        best_move:           Chosen move, None when the position is terminal.
        principal_variation: SAN moves starting with ``best_move``; never
                             longer than ``depth``.
        depth:               Requested search depth.
        confidence:          Percentage in [0, 100].
        analysis_time_ms:    Wall-clock time spent, in milliseconds.
    """

    position: Position
    evaluation: Evaluation
    best_move: MoveInfo | None
    principal_variation: tuple[str, ...]
    depth: int
    confidence: float
    analysis_time_ms: int
