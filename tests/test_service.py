"""Unit tests for game/service.py"""

import base64
import threading

import pytest

from engine.errors import IllegalMoveError, InvalidInputError, InvalidSessionError, SessionNotFoundError
from game import rating
from game.service import ChessService
from game.session import GameSettings
from game.shared_types import Status
from game.store import InMemoryStore
from interface.recognizer import CATALOG
from interface.rules import STARTING_FEN

BACK_RANK_WHITE_FEN = "6k1/5ppp/8/8/8/8/5PPP/R5K1 w - - 0 1"
PNG_BASE64 = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 32).decode()


def _settings(color: str = "white") -> GameSettings:
    return GameSettings.parse(initial=600, increment=0, difficulty="beginner", color=color)


@pytest.fixture
def update_calls(monkeypatch) -> list[str]:
    """Record every call to rating.update (the real update still runs)."""
    calls: list[str] = []
    original = rating.update

    def spy(stats, session):
        calls.append(session.id)
        return original(stats, session)

    monkeypatch.setattr(rating, "update", spy)
    return calls


# --- ANALYSIS ---
def test_analyze_position_records_history(service: ChessService, store: InMemoryStore) -> None:
    record = service.analyze_position(STARTING_FEN, depth=2, timeout_ms=1000)

    assert record.source == "manual"
    assert record.position.fen == STARTING_FEN
    assert record.analysis.depth == 2
    assert store.list_analyses() == [record]
    assert store.get_stats().total_analyses == 1


@pytest.mark.parametrize(("requested", "used"), [(0, 1), (-3, 1), (50, 20), (None, 15)])
def test_depth_is_clamped(service: ChessService, requested, used: int) -> None:
    record = service.analyze_position(STARTING_FEN, depth=requested, timeout_ms=200)
    assert record.analysis.depth == used


@pytest.mark.parametrize("fen", ["", "garbage", "8/8/8/8/8/8/8/8 w - - 0 1"])
def test_invalid_fen_is_rejected_without_recording(service: ChessService, store: InMemoryStore, fen: str) -> None:
    with pytest.raises(InvalidInputError):
        service.analyze_position(fen)
    assert store.list_analyses() == []
    assert store.get_stats().total_analyses == 0


def test_unknown_source_is_rejected(service: ChessService) -> None:
    with pytest.raises(InvalidInputError):
        service.analyze_position(STARTING_FEN, source="telepathy")


def test_analyze_image(service: ChessService, store: InMemoryStore) -> None:
    result = service.analyze_image(f"data:image/png;base64,{PNG_BASE64}", timeout_ms=200)

    assert result.recognition.name in {known.name for known in CATALOG}
    assert 70 <= result.recognition.confidence <= 95
    assert result.record.source == "camera"
    assert result.record.position == result.recognition.position
    assert store.get_stats().total_analyses == 1


def test_analyze_image_rejects_unsupported_format(service: ChessService) -> None:
    gif = base64.b64encode(b"GIF89a" + b"\x00" * 16).decode()
    with pytest.raises(InvalidInputError, match="Unsupported image format"):
        service.analyze_image(gif)


def test_delete_analysis(service: ChessService, store: InMemoryStore) -> None:
    record = service.analyze_position(STARTING_FEN, depth=1, timeout_ms=200)
    service.delete_analysis(record.id)
    assert store.list_analyses() == []
    assert store.get_stats().total_analyses == 0
    with pytest.raises(SessionNotFoundError, match="Analysis not found"):
        service.delete_analysis(record.id)


def test_analysis_history_limit(service: ChessService) -> None:
    for _ in range(3):
        service.analyze_position(STARTING_FEN, depth=1, timeout_ms=200)
    assert len(service.analysis_history(2)) == 2
    assert len(service.analysis_history(0)) == 1


# --- GAMES ---
def test_create_and_get_game(service: ChessService) -> None:
    game = service.create_game(_settings())
    assert service.get_game(game.id) == game


def test_unknown_game(service: ChessService) -> None:
    with pytest.raises(SessionNotFoundError, match="Game not found"):
        service.get_game("game_missing")
    with pytest.raises(SessionNotFoundError):
        service.make_move("game_missing", "e2", "e4")
    with pytest.raises(SessionNotFoundError):
        service.resign("game_missing")


def test_make_move_saves_new_session(service: ChessService, store: InMemoryStore) -> None:
    game = service.create_game(_settings())
    transition = service.make_move(game.id, "d2", "d4")
    assert store.get_game(game.id) == transition.session
    assert len(transition.session.moves) == 2


def test_illegal_move_does_not_touch_store(service: ChessService, store: InMemoryStore) -> None:
    game = service.create_game(_settings())
    with pytest.raises(IllegalMoveError):
        service.make_move(game.id, "d2", "d5")
    assert store.get_game(game.id) == game


def test_resign_updates_rating_once(service: ChessService, store: InMemoryStore, update_calls) -> None:
    game = service.create_game(_settings())
    resigned = service.resign(game.id)

    assert resigned.status is Status.RESIGNATION
    assert update_calls == [game.id]
    stats = store.get_stats()
    assert stats.total_games == 1
    assert stats.games_lost == 1
    assert stats.current_rating == 1185

    with pytest.raises(InvalidSessionError):
        service.resign(game.id)
    assert update_calls == [game.id]
    assert store.get_stats() == stats


def test_unknown_game_ids_do_not_accumulate_locks(service: ChessService, store: InMemoryStore) -> None:
    for i in range(1000):
        with pytest.raises(SessionNotFoundError):
            service.resign(f"bogus_{i}")
    with pytest.raises(SessionNotFoundError):
        service.make_move("bogus_move", "e2", "e4")
    assert store._session_locks == {}


def test_concurrent_resigns_update_rating_once(
    service: ChessService, store: InMemoryStore, update_calls
) -> None:
    game = service.create_game(_settings())
    start = threading.Barrier(2)
    resigned: list[Status] = []
    rejected: list[Exception] = []

    def worker() -> None:
        start.wait()
        try:
            resigned.append(service.resign(game.id).status)
        except InvalidSessionError as exc:
            rejected.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert resigned == [Status.RESIGNATION]
    assert len(rejected) == 1
    assert update_calls == [game.id]
    assert store.get_stats().total_games == 1
    assert store.get_stats().current_rating == 1185


def test_checkmate_by_player_updates_rating_once(
    service: ChessService, store: InMemoryStore, make_session, update_calls
) -> None:
    store.save_game(make_session("game_mate", starting_fen=BACK_RANK_WHITE_FEN))
    transition = service.make_move("game_mate", "a1", "a8")

    assert transition.finished
    assert update_calls == ["game_mate"]
    assert store.get_stats().games_won == 1
    assert store.get_stats().current_rating == 1220

    with pytest.raises(InvalidSessionError):
        service.make_move("game_mate", "g8", "h8")
    assert update_calls == ["game_mate"]


def test_ongoing_moves_do_not_touch_rating(service: ChessService, update_calls) -> None:
    game = service.create_game(_settings())
    service.make_move(game.id, "e2", "e4")
    assert update_calls == []


def test_game_history_lists_finished_games_with_rating_change(service: ChessService) -> None:
    active = service.create_game(_settings())
    resigned = service.create_game(_settings())
    service.resign(resigned.id)

    history = service.game_history()
    assert [entry.game.id for entry in history] == [resigned.id]
    assert history[0].rating_change == -15
    assert history[0].player_rating == 1185
    assert active.id not in {entry.game.id for entry in history}


# --- USER ---
def test_user_history(service: ChessService) -> None:
    service.analyze_position(STARTING_FEN, depth=1, timeout_ms=200)
    service.resign(service.create_game(_settings()).id)

    history = service.user_history()
    assert len(history.analyses) == 1
    assert len(history.games) == 1
    assert history.stats.total_games == 1


def test_clear_user_data(service: ChessService, store: InMemoryStore) -> None:
    service.analyze_position(STARTING_FEN, depth=1, timeout_ms=200)
    service.resign(service.create_game(_settings()).id)
    service.create_game(_settings())

    service.clear_user_data()

    assert store.list_analyses() == []
    assert store.list_games(finished_only=False) == []
    stats = store.get_stats()
    assert stats.total_analyses == 0
    assert stats.total_games == 0


def test_export_user_data(service: ChessService) -> None:
    service.analyze_position(STARTING_FEN, depth=1, timeout_ms=200)
    finished = service.create_game(_settings())
    service.resign(finished.id)
    service.create_game(_settings())

    export = service.export_user_data()
    assert export.export_date.tzinfo is not None
    assert len(export.analyses) == 1
    assert [entry.game.id for entry in export.games] == [finished.id]
    assert export.stats.total_games == 1
