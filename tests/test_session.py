"""Unit tests for game/session.py"""

import random

import pytest

from engine.difficulty import Difficulty
from engine.errors import IllegalMoveError, InvalidInputError, InvalidSessionError
from game.session import (
    GameSettings,
    TimeControl,
    apply_player_move,
    create_game,
    resign,
)
from game.shared_types import Color, GameResult, Status
from interface.rules import STARTING_FEN

BOT_TIME_LIMIT_MS = 300
BACK_RANK_WHITE_FEN = "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
# After 1.b3 Black mates with Ra1#.
BLUNDER_FEN = "r5k1/5ppp/8/8/8/8/1P3PPP/6K1 w - - 0 1"
# Qe7-f7 stalemates the black king.
STALEMATE_TRAP_FEN = "7k/4Q3/6K1/8/8/8/8/8 w - - 0 1"


def _settings(color: str = "white", difficulty: str = "beginner") -> GameSettings:
    return GameSettings.parse(initial=600, increment=5, difficulty=difficulty, color=color)


# --- SETTINGS ---
@pytest.mark.parametrize(
    ("initial", "increment", "message"),
    [
        (30, 0, "Initial time must be between 1 and 60 minutes"),
        (3601, 0, "Initial time must be between 1 and 60 minutes"),
        (600, -1, "Increment must be between 0 and 60 seconds"),
        (600, 61, "Increment must be between 0 and 60 seconds"),
    ],
)
def test_time_control_bounds(initial: int, increment: int, message: str) -> None:
    with pytest.raises(InvalidInputError, match=message):
        TimeControl(initial=initial, increment=increment)


def test_time_control_accepts_bounds() -> None:
    TimeControl(initial=60, increment=0)
    TimeControl(initial=3600, increment=60)


def test_invalid_color_choice() -> None:
    with pytest.raises(InvalidInputError, match="Invalid color choice"):
        _settings(color="green")


def test_invalid_difficulty() -> None:
    with pytest.raises(InvalidInputError, match="Invalid difficulty level"):
        _settings(difficulty="impossible")


# --- CREATION ---
def test_create_game_as_white_waits_for_player() -> None:
    game = create_game(_settings("white"), rng=random.Random(1))
    assert game.id.startswith("game_")
    assert game.player_color is Color.WHITE
    assert game.status is Status.ACTIVE
    assert game.moves == ()
    assert game.position.fen == STARTING_FEN


def test_create_game_as_black_includes_bot_opening_move() -> None:
    game = create_game(_settings("black"), rng=random.Random(1), time_limit_ms=BOT_TIME_LIMIT_MS)
    assert game.player_color is Color.BLACK
    assert len(game.moves) == 1
    assert not game.moves[0].is_player_move
    assert game.position.turn == "b"
    assert game.moves[0].fen == game.position.fen


def test_random_color_is_resolved_with_injected_rng() -> None:
    colors = {
        create_game(_settings("random"), rng=random.Random(seed), time_limit_ms=BOT_TIME_LIMIT_MS).player_color
        for seed in range(12)
    }
    assert colors <= {Color.WHITE, Color.BLACK}
    first = create_game(_settings("random"), rng=random.Random(8), time_limit_ms=BOT_TIME_LIMIT_MS)
    second = create_game(_settings("random"), rng=random.Random(8), time_limit_ms=BOT_TIME_LIMIT_MS)
    assert first.player_color is second.player_color
    assert [m.uci for m in first.moves] == [m.uci for m in second.moves]


# --- PLAYER MOVES ---
def test_player_move_is_followed_by_bot_reply() -> None:
    game = create_game(_settings("white"), rng=random.Random(2))
    transition = apply_player_move(game, "e2", "e4", rng=random.Random(2), time_limit_ms=BOT_TIME_LIMIT_MS)

    assert transition.player_move is not None
    assert transition.player_move.san == "e4"
    assert transition.player_move.is_player_move
    assert transition.bot_move is not None
    assert not transition.bot_move.is_player_move
    assert not transition.finished
    assert len(transition.session.moves) == 2
    assert transition.session.position.turn == "w"
    # The input session is untouched.
    assert game.moves == ()


def test_illegal_move_leaves_session_unchanged() -> None:
    game = create_game(_settings("white"), rng=random.Random(3))
    with pytest.raises(IllegalMoveError):
        apply_player_move(game, "e2", "e5", rng=random.Random(3))
    assert game.moves == ()
    assert game.position.fen == STARTING_FEN


def test_moving_opponent_piece_is_illegal() -> None:
    game = create_game(_settings("white"), rng=random.Random(3))
    with pytest.raises(IllegalMoveError):
        apply_player_move(game, "e7", "e5", rng=random.Random(3))


def test_malformed_square_is_invalid_input() -> None:
    game = create_game(_settings("white"), rng=random.Random(3))
    with pytest.raises(InvalidInputError):
        apply_player_move(game, "e2", "x4", rng=random.Random(3))


def test_player_delivers_checkmate(make_session) -> None:
    game = make_session(starting_fen=BACK_RANK_WHITE_FEN)
    transition = apply_player_move(game, "a1", "a8", rng=random.Random(4))

    assert transition.finished
    assert transition.bot_move is None
    assert transition.session.status is Status.CHECKMATE
    assert transition.session.result is GameResult.WHITE_WINS
    assert transition.session.end_time is not None


def test_bot_delivers_checkmate(make_session) -> None:
    game = make_session(starting_fen=BLUNDER_FEN, difficulty=Difficulty.ADVANCED)
    transition = apply_player_move(game, "b2", "b3", rng=random.Random(4), time_limit_ms=BOT_TIME_LIMIT_MS)

    assert transition.finished
    assert transition.bot_move is not None
    assert transition.bot_move.san == "Ra1#"
    assert transition.session.status is Status.CHECKMATE
    assert transition.session.result is GameResult.BLACK_WINS


def test_player_stalemates_opponent(make_session) -> None:
    game = make_session(starting_fen=STALEMATE_TRAP_FEN)
    transition = apply_player_move(game, "e7", "f7", rng=random.Random(4))

    assert transition.finished
    assert transition.session.status is Status.STALEMATE
    assert transition.session.result is GameResult.DRAW


def test_finished_session_rejects_moves(make_session) -> None:
    game = make_session(starting_fen=BACK_RANK_WHITE_FEN)
    finished = apply_player_move(game, "a1", "a8", rng=random.Random(4)).session
    with pytest.raises(InvalidSessionError, match="Game is not active"):
        apply_player_move(finished, "g1", "f1", rng=random.Random(4))


def test_board_replays_move_log() -> None:
    game = create_game(_settings("white"), rng=random.Random(5))
    transition = apply_player_move(game, "g1", "f3", rng=random.Random(5), time_limit_ms=BOT_TIME_LIMIT_MS)
    board = transition.session.board()
    assert len(board.move_stack) == 2
    assert board.fen() == transition.session.position.fen


# --- RESIGNATION ---
@pytest.mark.parametrize(
    ("color", "result"),
    [(Color.WHITE, GameResult.BLACK_WINS), (Color.BLACK, GameResult.WHITE_WINS)],
)
def test_resignation_is_a_loss_for_player(make_session, color: Color, result: GameResult) -> None:
    transition = resign(make_session(player_color=color))
    assert transition.finished
    assert transition.session.status is Status.RESIGNATION
    assert transition.session.result is result
    assert transition.session.end_time is not None


def test_resigning_terminal_session_fails(make_session) -> None:
    finished = resign(make_session()).session
    with pytest.raises(InvalidSessionError):
        resign(finished)
    assert finished.status is Status.RESIGNATION
