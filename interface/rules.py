"""
Rules oracle adapter around python-chess.

python-chess owns move legality, check detection, and game termination.
This module is the single place where wire-level inputs (FEN strings,
square names, promotion letters) become python-chess objects, so the
engine and the game layer consume the rules without re-implementing them.
"""

from enum import StrEnum

import chess

from engine.errors import IllegalMoveError, InvalidInputError

STARTING_FEN: str = chess.STARTING_FEN

# Promotion letters accepted on the wire, lower-case as in UCI notation.
PROMOTION_PIECES: dict[str, int] = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


class Termination(StrEnum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"


def load_board(fen: str) -> chess.Board:
    """
    Parse a full six-field FEN string into a fresh board.

    Raises:
        InvalidInputError: The string is not a complete FEN, cannot be
            parsed, or describes an impossible position (missing kings,
            pawns on the back rank, side not to move in check, ...).
    """
    if not isinstance(fen, str) or len(fen.split()) != 6:
        raise InvalidInputError("Invalid FEN string")
    try:
        board = chess.Board(fen)
    except ValueError as exc:
        raise InvalidInputError(f"Invalid FEN string: {exc}") from exc
    if not board.is_valid():
        raise InvalidInputError("Invalid FEN string: position is not legal")
    return board


def parse_square(name: str) -> int:
    """Return the python-chess square index for an algebraic name like ``e4``."""
    try:
        return chess.parse_square(name.strip().lower())
    except (ValueError, AttributeError) as exc:
        raise InvalidInputError(f"Cannot interpret {name!r} as a square name") from exc


def parse_move(
    board: chess.Board,
    from_square: str,
    to_square: str,
    promotion: str | None = None,
) -> chess.Move:
    """
    Build a move from wire coordinates and confirm it is legal on ``board``.

    A pawn reaching the last rank without an explicit promotion piece is
    promoted to a queen.

    Raises:
        InvalidInputError: A square name or promotion letter is malformed.
        IllegalMoveError: The rules reject the move (empty origin square,
            wrong side, moving into check, ...).
    """
    origin = parse_square(from_square)
    destination = parse_square(to_square)

    piece_type = None
    if promotion:
        piece_type = PROMOTION_PIECES.get(promotion.strip().lower())
        if piece_type is None:
            raise InvalidInputError(f"Invalid promotion piece: {promotion!r}")
    else:
        piece = board.piece_at(origin)
        if (
            piece is not None
            and piece.piece_type == chess.PAWN
            and chess.square_rank(destination) in (0, 7)
        ):
            piece_type = chess.QUEEN

    move = chess.Move(origin, destination, promotion=piece_type)
    if not board.is_legal(move):
        raise IllegalMoveError(f"Illegal move: {from_square}-{to_square}")
    return move


def legal_moves(board: chess.Board) -> list[chess.Move]:
    """All legal moves in python-chess enumeration order."""
    return list(board.legal_moves)


def is_legal(board: chess.Board, move: chess.Move) -> bool:
    return board.is_legal(move)


def termination(board: chess.Board) -> Termination | None:
    """
    Report why the game is over on ``board``, or None while it continues.

    Draws cover insufficient material, the fifty-move rule and threefold
    repetition. Repetition is only visible when the board carries its move
    stack.
    """
    if board.is_checkmate():
        return Termination.CHECKMATE
    if board.is_stalemate():
        return Termination.STALEMATE
    if (
        board.is_insufficient_material()
        or board.is_fifty_moves()
        or board.is_repetition(3)
    ):
        return Termination.DRAW
    return None


def result_for(board: chess.Board, reason: Termination) -> str:
    """PGN result string for a finished game."""
    if reason is Termination.CHECKMATE:
        # The side to move is the side that got mated.
        return "0-1" if board.turn == chess.WHITE else "1-0"
    return "1/2-1/2"
