"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures shared by the engine, game, and API tests.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from engine.difficulty import Difficulty
from engine.models import Position
from game.service import ChessService
from game.session import GameSession, GameSettings, TimeControl
from game.shared_types import Color, GameResult, Status
from game.store import InMemoryStore
from interface.rules import STARTING_FEN
from web.app import create_app
from web.config import Settings

# Search budget for bot moves in tests: enough for a legal move, short enough to stay fast.
BOT_TIME_LIMIT_MS = 300


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source, so every random decision replays."""
    return random.Random(1234)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store: InMemoryStore, rng: random.Random) -> ChessService:
    return ChessService(store, rng=rng, bot_time_limit_ms=BOT_TIME_LIMIT_MS)


@pytest.fixture
def client() -> Iterator[TestClient]:
    """API client over a fresh application (own store, seeded random source)."""
    settings = Settings(bot_time_limit_ms=BOT_TIME_LIMIT_MS, default_timeout_ms=1000)
    app = create_app(settings, rng=random.Random(42))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_session() -> Callable[..., GameSession]:
    """Factory for hand-built sessions (custom start position, status, or result)."""

    def _make(
        game_id: str = "game_test",
        *,
        player_color: Color = Color.WHITE,
        difficulty: Difficulty = Difficulty.ADVANCED,
        starting_fen: str = STARTING_FEN,
        status: Status = Status.ACTIVE,
        result: GameResult | None = None,
        minutes_ago: int = 0,
    ) -> GameSession:
        start = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        return GameSession(
            id=game_id,
            player_color=player_color,
            settings=GameSettings(
                time_control=TimeControl(initial=600, increment=0),
                difficulty=difficulty,
                color=player_color.value,
            ),
            position=Position(starting_fen),
            start_time=start,
            status=status,
            end_time=None if status is Status.ACTIVE else start,
            result=result,
            starting_fen=starting_fen,
        )

    return _make
