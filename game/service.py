"""Orchestration between the web layer, the engine, the game state machine, and the store."""

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from engine.analysis import analyze
from engine.constants import DEFAULT_ANALYSIS_DEPTH, MAX_ANALYSIS_DEPTH
from engine.errors import InvalidInputError, SessionNotFoundError
from engine.models import AnalysisResult
from game import rating, session as game_session
from game.rating import UserStats
from game.session import GameSession, GameSettings, Transition
from game.store import ANALYSIS_SOURCES, AnalysisRecord, SessionStore
from interface import rules
from interface.recognizer import CatalogRecognizer, PositionRecognizer, Recognition, decode_image

_log = logging.getLogger(__name__)

MIN_TIMEOUT_MS: int = 100
DEFAULT_TIMEOUT_MS: int = 5_000
MAX_TIMEOUT_MS: int = 10_000
BOT_TIME_LIMIT_MS: int = 2_000
IMAGE_ANALYSIS_DEPTH: int = 15
MAX_HISTORY_LIMIT: int = 50


@dataclass(frozen=True)
class ImageAnalysis:
    record: AnalysisRecord
    recognition: Recognition


@dataclass(frozen=True)
class GameHistoryEntry:
    game: GameSession
    player_rating: int
    rating_change: int


@dataclass(frozen=True)
class UserHistory:
    analyses: list[AnalysisRecord]
    games: list[GameHistoryEntry]
    stats: UserStats


@dataclass(frozen=True)
class UserExport:
    export_date: datetime
    analyses: list[AnalysisRecord]
    games: list[GameHistoryEntry]
    stats: UserStats


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


class ChessService:
    """
    Entry point for every top-level operation.

    The store, the random source, and the recognizer are injected so that
    their lifecycle belongs to whoever builds the service (the web app at
    start-up, or a test).
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        rng: random.Random | None = None,
        recognizer: PositionRecognizer | None = None,
        default_depth: int = DEFAULT_ANALYSIS_DEPTH,
        max_depth: int = MAX_ANALYSIS_DEPTH,
        default_timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_timeout_ms: int = MAX_TIMEOUT_MS,
        bot_time_limit_ms: int = BOT_TIME_LIMIT_MS,
    ) -> None:
        self.store = store
        self.rng = rng if rng is not None else random.Random()
        self.recognizer = recognizer if recognizer is not None else CatalogRecognizer(self.rng)
        self.default_depth = default_depth
        self.max_depth = max_depth
        self.default_timeout_ms = default_timeout_ms
        self.max_timeout_ms = max_timeout_ms
        self.bot_time_limit_ms = bot_time_limit_ms

    # -- Analysis --
    def analyze_position(
        self,
        fen: str,
        depth: int | None = None,
        timeout_ms: int | None = None,
        source: str = "manual",
    ) -> AnalysisRecord:
        """Analyze a FEN position and record it in the history."""
        if source not in ANALYSIS_SOURCES:
            raise InvalidInputError(f"Unknown analysis source: {source!r}")
        if not fen:
            raise InvalidInputError("No FEN string provided")

        board = rules.load_board(fen)
        depth = _clamp(depth if depth is not None else self.default_depth, 1, self.max_depth)
        timeout_ms = _clamp(
            timeout_ms if timeout_ms is not None else self.default_timeout_ms,
            MIN_TIMEOUT_MS,
            self.max_timeout_ms,
        )

        result = analyze(board, depth, time_limit_ms=timeout_ms, rng=self.rng)
        return self._record_analysis(result, source)

    def analyze_image(self, image_data: str, timeout_ms: int | None = None, source: str = "camera") -> ImageAnalysis:
        """Recognize a position from base64 image data, then analyze it."""
        if not image_data:
            raise InvalidInputError("No image data provided")
        recognition = self.recognizer.recognize(decode_image(image_data))
        _log.info("recognized %s (confidence %d%%)", recognition.name, recognition.confidence)
        record = self.analyze_position(
            recognition.position.fen,
            depth=IMAGE_ANALYSIS_DEPTH,
            timeout_ms=timeout_ms,
            source=source,
        )
        return ImageAnalysis(record=record, recognition=recognition)

    def analysis_history(self, limit: int = 10) -> list[AnalysisRecord]:
        return self.store.list_analyses(_clamp(limit, 1, MAX_HISTORY_LIMIT))

    def delete_analysis(self, analysis_id: str) -> None:
        with self.store.stats_lock():
            if self.store.delete_analysis(analysis_id) is None:
                raise SessionNotFoundError("Analysis not found")
            self.store.save_stats(rating.forget_analysis(self.store.get_stats()))

    # -- Games --
    def create_game(self, settings: GameSettings) -> GameSession:
        game = game_session.create_game(
            settings, rng=self.rng, time_limit_ms=self.bot_time_limit_ms
        )
        self.store.save_game(game)
        return game

    def get_game(self, game_id: str) -> GameSession:
        return self._fetch_game(game_id)

    def make_move(
        self,
        game_id: str,
        from_square: str,
        to_square: str,
        promotion: str | None = None,
    ) -> Transition:
        """
        Play the player's move (and the bot's reply) in a stored game.

        The whole fetch-transition-save sequence runs under the session's
        lock; on error nothing is saved.
        """
        with self.store.session_lock(game_id):
            game = self._fetch_game(game_id)
            transition = game_session.apply_player_move(
                game,
                from_square,
                to_square,
                promotion,
                rng=self.rng,
                time_limit_ms=self.bot_time_limit_ms,
            )
            self._commit(transition)
        return transition

    def resign(self, game_id: str) -> GameSession:
        with self.store.session_lock(game_id):
            transition = game_session.resign(self._fetch_game(game_id))
            self._commit(transition)
        return transition.session

    def game_history(self, limit: int = 10) -> list[GameHistoryEntry]:
        """Finished games, most recent first."""
        return self._history_entries(
            self.store.list_games(_clamp(limit, 1, MAX_HISTORY_LIMIT), finished_only=True)
        )

    # -- User --
    def user_stats(self) -> UserStats:
        return self.store.get_stats()

    def user_history(self, analysis_limit: int = 5, game_limit: int = 5) -> UserHistory:
        return UserHistory(
            analyses=self.store.list_analyses(_clamp(analysis_limit, 1, 20)),
            games=self.game_history(_clamp(game_limit, 1, 20)),
            stats=self.store.get_stats(),
        )

    def clear_user_data(self) -> None:
        """Delete every stored analysis and game, adjusting the counters."""
        for record in self.store.list_analyses():
            with self.store.stats_lock():
                if self.store.delete_analysis(record.id) is not None:
                    self.store.save_stats(rating.forget_analysis(self.store.get_stats()))
        for game in self.store.list_games(finished_only=False):
            # Same lock order as make_move: session first, then stats.
            with self.store.session_lock(game.id), self.store.stats_lock():
                removed = self.store.delete_game(game.id)
                if removed is not None and not removed.is_active:
                    self.store.save_stats(rating.forget_game(self.store.get_stats()))
        _log.info("user data cleared")

    def export_user_data(self) -> UserExport:
        return UserExport(
            export_date=datetime.now(timezone.utc),
            analyses=self.store.list_analyses(),
            games=self._history_entries(self.store.list_games(finished_only=True)),
            stats=self.store.get_stats(),
        )

    # -- Internal helpers --
    def _history_entries(self, games: list[GameSession]) -> list[GameHistoryEntry]:
        current = self.store.get_stats().current_rating
        return [
            GameHistoryEntry(game=g, player_rating=current, rating_change=rating.rating_change(g))
            for g in games
        ]

    def _record_analysis(self, result: AnalysisResult, source: str) -> AnalysisRecord:
        record = AnalysisRecord(
            id=uuid.uuid4().hex,
            position=result.position,
            analysis=result,
            timestamp=datetime.now(timezone.utc),
            source=source,
        )
        with self.store.stats_lock():
            self.store.save_analysis(record)
            self.store.save_stats(rating.record_analysis(self.store.get_stats()))
        return record

    def _commit(self, transition: Transition) -> None:
        """
        Save a transition; on the way out of ``active`` fold the game into
        the statistics, exactly once.
        """
        if transition.finished:
            with self.store.stats_lock():
                stats = rating.update(self.store.get_stats(), transition.session)
                self.store.save_game(transition.session)
                self.store.save_stats(stats)
            _log.info(
                "rating for game %s: %+d -> %d",
                transition.session.id,
                rating.rating_change(transition.session),
                stats.current_rating,
            )
        else:
            self.store.save_game(transition.session)

    def _fetch_game(self, game_id: str) -> GameSession:
        """Attempt to find the game in the store and raise error if it fails."""
        game = self.store.get_game(game_id)
        if game is None:
            raise SessionNotFoundError("Game not found")
        return game
