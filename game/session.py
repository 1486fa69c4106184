"""
Game session state machine.

A session starts ``active`` and leaves it exactly once, for ``checkmate``,
``stalemate``, ``draw`` or ``resignation``; terminal states have no way out.
Only three actions change a session: the player's move (followed by the
bot's reply while the game goes on), the bot's move, and resignation.

Sessions are immutable. Every action returns a new GameSession inside a
Transition, so an action that raises leaves the caller holding exactly the
session it passed in. The rules oracle decides legality and termination;
the difficulty policy picks the bot's moves.

The caller owns the rating: when ``Transition.finished`` is set, the session
has just left ``active`` and the caller folds it into the user statistics
with ``game.rating.update`` exactly once.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

import chess

from engine.difficulty import Difficulty, choose_move, parse_difficulty
from engine.errors import IllegalMoveError, InvalidInputError, InvalidSessionError
from engine.models import MoveInfo, Position
from game.shared_types import COLOR_CHOICES, Color, GameResult, Status
from interface import rules

_log = logging.getLogger(__name__)

# Accepted time-control ranges, in seconds.
INITIAL_TIME_RANGE: tuple[int, int] = (60, 3600)
INCREMENT_RANGE: tuple[int, int] = (0, 60)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_game_id() -> str:
    return f"game_{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class TimeControl:
    initial: int
    increment: int

    def __post_init__(self) -> None:
        low, high = INITIAL_TIME_RANGE
        if not isinstance(self.initial, int) or not low <= self.initial <= high:
            raise InvalidInputError("Initial time must be between 1 and 60 minutes")
        low, high = INCREMENT_RANGE
        if not isinstance(self.increment, int) or not low <= self.increment <= high:
            raise InvalidInputError("Increment must be between 0 and 60 seconds")


@dataclass(frozen=True)
class GameSettings:
    """Settings chosen at game creation; ``color`` may still be ``random``."""

    time_control: TimeControl
    difficulty: Difficulty
    color: str

    def __post_init__(self) -> None:
        if self.color not in COLOR_CHOICES:
            raise InvalidInputError("Invalid color choice")

    @classmethod
    def parse(cls, *, initial: int, increment: int, difficulty: str, color: str) -> "GameSettings":
        """Validate wire values, raising InvalidInputError on the first bad one."""
        return cls(
            time_control=TimeControl(initial=initial, increment=increment),
            difficulty=parse_difficulty(difficulty),
            color=color,
        )


@dataclass(frozen=True)
class MoveRecord:
    """One entry of the append-only move log."""

    from_square: str
    to_square: str
    san: str
    uci: str
    promotion: str | None
    fen: str
    timestamp: datetime
    is_player_move: bool

    @classmethod
    def from_move_info(cls, info: MoveInfo, *, is_player_move: bool) -> "MoveRecord":
        return cls(
            from_square=info.from_square,
            to_square=info.to_square,
            san=info.san,
            uci=info.uci,
            promotion=info.promotion,
            fen=info.fen_after,
            timestamp=_now(),
            is_player_move=is_player_move,
        )


@dataclass(frozen=True)
class GameSession:
    id: str
    player_color: Color
    settings: GameSettings
    position: Position
    start_time: datetime
    moves: tuple[MoveRecord, ...] = ()
    status: Status = Status.ACTIVE
    end_time: datetime | None = None
    result: GameResult | None = None
    starting_fen: str = field(default=rules.STARTING_FEN)

    @property
    def is_active(self) -> bool:
        return self.status is Status.ACTIVE

    @property
    def player_chess_color(self) -> chess.Color:
        return chess.WHITE if self.player_color is Color.WHITE else chess.BLACK

    @property
    def bot_to_move(self) -> bool:
        return self.board().turn != self.player_chess_color

    def board(self) -> chess.Board:
        """
        The current position with its full move stack.

        Replaying the log (rather than loading the last FEN) lets the rules
        oracle see repetitions.
        """
        board = chess.Board(self.starting_fen)
        for record in self.moves:
            board.push(chess.Move.from_uci(record.uci))
        return board


@dataclass(frozen=True)
class Transition:
    """
    Result of one action.

    Attributes:
        session:     The session after the action.
        player_move: The player's move, if the action was a move.
        bot_move:    The bot's reply, if one was played.
        finished:    True if this action took the session out of ``active``.
    """

    session: GameSession
    player_move: MoveRecord | None = None
    bot_move: MoveRecord | None = None
    finished: bool = False


def resolve_color(choice: str, rng: random.Random) -> Color:
    if choice == "random":
        return rng.choice([Color.WHITE, Color.BLACK])
    return Color(choice)


def _require_active(session: GameSession) -> None:
    if not session.is_active:
        raise InvalidSessionError("Game is not active")


def _append(
    session: GameSession,
    board: chess.Board,
    move: chess.Move,
    *,
    is_player_move: bool,
) -> tuple[GameSession, MoveRecord]:
    """Log ``move`` and play it on ``board`` (mutated in place)."""
    record = MoveRecord.from_move_info(
        MoveInfo.from_move(board, move), is_player_move=is_player_move
    )
    board.push(move)
    updated = replace(
        session,
        position=Position.from_board(board),
        moves=session.moves + (record,),
    )
    return updated, record


def _settle(session: GameSession, board: chess.Board) -> GameSession:
    """Move the session to its terminal state if ``board`` ends the game."""
    reason = rules.termination(board)
    if reason is None:
        return session
    finished = replace(
        session,
        status=Status(reason.value),
        result=GameResult(rules.result_for(board, reason)),
        end_time=_now(),
    )
    _log.info(
        "game %s over: %s %s after %d moves",
        session.id,
        finished.status.value,
        finished.result.value,
        len(finished.moves),
    )
    return finished


def _bot_move(
    session: GameSession,
    board: chess.Board,
    rng: random.Random,
    time_limit_ms: float | None,
) -> tuple[GameSession, MoveRecord]:
    move = choose_move(board, session.settings.difficulty, rng, time_limit_ms=time_limit_ms)
    session, record = _append(session, board, move, is_player_move=False)
    return _settle(session, board), record


def create_game(
    settings: GameSettings,
    *,
    rng: random.Random,
    time_limit_ms: float | None = None,
    game_id: str | None = None,
) -> GameSession:
    """
    Start a session from the standard starting position.

    A ``random`` color is resolved with ``rng``. When the player takes
    Black, the bot's opening move is already in the log of the returned
    session.
    """
    session = GameSession(
        id=game_id or new_game_id(),
        player_color=resolve_color(settings.color, rng),
        settings=settings,
        position=Position(rules.STARTING_FEN),
        start_time=_now(),
    )
    if session.bot_to_move:
        session, _ = _bot_move(session, session.board(), rng, time_limit_ms)

    _log.info(
        "game %s created: player=%s difficulty=%s",
        session.id,
        session.player_color.value,
        settings.difficulty.value,
    )
    return session


def apply_player_move(
    session: GameSession,
    from_square: str,
    to_square: str,
    promotion: str | None = None,
    *,
    rng: random.Random,
    time_limit_ms: float | None = None,
) -> Transition:
    """
    Play the player's move and, if the game goes on, the bot's reply.

    Raises:
        InvalidSessionError: The session is not active.
        InvalidInputError:   A square name or promotion piece is malformed.
        IllegalMoveError:    The rules oracle rejects the move.
    """
    _require_active(session)
    board = session.board()
    if board.turn != session.player_chess_color:
        raise IllegalMoveError("It is not the player's turn")

    move = rules.parse_move(board, from_square, to_square, promotion)
    session, player_record = _append(session, board, move, is_player_move=True)
    session = _settle(session, board)
    if not session.is_active:
        return Transition(session, player_move=player_record, finished=True)

    session, bot_record = _bot_move(session, board, rng, time_limit_ms)
    return Transition(
        session,
        player_move=player_record,
        bot_move=bot_record,
        finished=not session.is_active,
    )


def resign(session: GameSession) -> Transition:
    """
    The player resigns: the game is recorded as a loss for the player.

    Raises:
        InvalidSessionError: The session is not active.
    """
    _require_active(session)
    result = GameResult.BLACK_WINS if session.player_color is Color.WHITE else GameResult.WHITE_WINS
    finished = replace(
        session,
        status=Status.RESIGNATION,
        result=result,
        end_time=_now(),
    )
    _log.info("game %s resigned by %s", session.id, session.player_color.value)
    return Transition(finished, finished=True)
