"""
Storage for game sessions, analysis history, and user statistics.

SessionStore is the protocol the service depends on (so a database-backed
store can replace it later); InMemoryStore is the implementation used by
the web application. The store is created once at process start and
injected into the service; nothing here is a module-level singleton.

Sessions are not safe for concurrent mutation. ``session_lock(game_id)``
hands out one lock per session id so that a fetch-transition-save sequence
for one game never interleaves with another for the same game, while
different games proceed in parallel. ``stats_lock()`` guards the single
UserStats aggregate.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import ContextManager, Iterator, Protocol

from engine.models import AnalysisResult, Position
from game.rating import UserStats
from game.session import GameSession

ANALYSIS_SOURCES: tuple[str, ...] = ("camera", "upload", "manual")


@dataclass(frozen=True)
class AnalysisRecord:
    """A stored analysis together with where its position came from."""

    id: str
    position: Position
    analysis: AnalysisResult
    timestamp: datetime
    source: str


class SessionStore(Protocol):
    """Persistence layer orchestration"""

    def get_game(self, game_id: str) -> GameSession | None:
        """Get game by ID, if record exists."""
        ...

    def save_game(self, game: GameSession) -> None:
        """Insert or replace the record for ``game.id``."""
        ...

    def delete_game(self, game_id: str) -> GameSession | None:
        """Remove a game's record, returning it if it existed."""
        ...

    def list_games(self, limit: int | None = None, finished_only: bool = True) -> list[GameSession]:
        """Most recently started games first; all of them when ``limit`` is None."""
        ...

    def save_analysis(self, record: AnalysisRecord) -> None:
        ...

    def list_analyses(self, limit: int | None = None) -> list[AnalysisRecord]:
        """Most recent analyses first; all of them when ``limit`` is None."""
        ...

    def delete_analysis(self, analysis_id: str) -> AnalysisRecord | None:
        ...

    def get_stats(self) -> UserStats:
        ...

    def save_stats(self, stats: UserStats) -> None:
        ...

    def session_lock(self, game_id: str) -> ContextManager[None]:
        """Exclusive access to one session for the duration of the block."""
        ...

    def stats_lock(self) -> ContextManager[None]:
        """Exclusive access to the user statistics for the duration of the block."""
        ...


class InMemoryStore:
    """Dictionary-backed SessionStore. Contents live as long as the process."""

    def __init__(self, stats: UserStats | None = None) -> None:
        self._games: dict[str, GameSession] = {}
        self._analyses: dict[str, AnalysisRecord] = {}
        self._stats = stats if stats is not None else UserStats()
        self._data_lock = threading.RLock()
        self._registry_lock = threading.Lock()
        self._session_locks: dict[str, threading.Lock] = {}
        self._stats_lock = threading.RLock()

    # -- games --
    def get_game(self, game_id: str) -> GameSession | None:
        with self._data_lock:
            return self._games.get(game_id)

    def save_game(self, game: GameSession) -> None:
        with self._data_lock:
            self._games[game.id] = game

    def delete_game(self, game_id: str) -> GameSession | None:
        with self._data_lock:
            removed = self._games.pop(game_id, None)
        with self._registry_lock:
            self._session_locks.pop(game_id, None)
        return removed

    def list_games(self, limit: int | None = None, finished_only: bool = True) -> list[GameSession]:
        with self._data_lock:
            games = [g for g in self._games.values() if not (finished_only and g.is_active)]
        games.sort(key=lambda g: g.start_time, reverse=True)
        return games if limit is None else games[:limit]

    # -- analyses --
    def save_analysis(self, record: AnalysisRecord) -> None:
        with self._data_lock:
            self._analyses[record.id] = record

    def list_analyses(self, limit: int | None = None) -> list[AnalysisRecord]:
        with self._data_lock:
            records = list(self._analyses.values())
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records if limit is None else records[:limit]

    def delete_analysis(self, analysis_id: str) -> AnalysisRecord | None:
        with self._data_lock:
            return self._analyses.pop(analysis_id, None)

    # -- stats --
    def get_stats(self) -> UserStats:
        with self._data_lock:
            return self._stats

    def save_stats(self, stats: UserStats) -> None:
        with self._data_lock:
            self._stats = stats

    # -- locking --
    @contextmanager
    def session_lock(self, game_id: str) -> Iterator[None]:
        with self._registry_lock:
            lock = self._session_locks.get(game_id)
            if lock is None:
                lock = threading.Lock()
                # Unknown ids get a private lock so the registry only grows with stored games.
                if self.get_game(game_id) is not None:
                    self._session_locks[game_id] = lock
        with lock:
            yield

    @contextmanager
    def stats_lock(self) -> Iterator[None]:
        with self._stats_lock:
            yield
