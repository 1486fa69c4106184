"""
FastAPI web application for ChessVision.

Exposes the analysis, game, and user endpoints under ``/api``. Every route
is a thin translation between the wire models in ``web.schemas`` and one
ChessService call.

Architecture notes:
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for CPU-bound blocking calls like engine search.
- One service per application: ``create_app`` builds the store, the random
  source, and the service, and keeps the service on ``app.state``.
- Route order matters: ``/game/history`` is registered before
  ``/game/{game_id}`` so the literal path wins.
- Errors: ChessVisionError subclasses map to ``{success, error, code}`` with
  the status the error carries; request validation failures are reported
  as InvalidInput; anything else is logged and answered with a generic 500.
"""

import logging
import random

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from engine.errors import ChessVisionError, InvalidInputError
from game.service import ChessService
from game.store import InMemoryStore, SessionStore
from web.config import Settings
from web.schemas import (
    AnalysisHistoryModel,
    AnalysisHistoryResponse,
    AnalysisModel,
    CreateGameRequest,
    ErrorResponse,
    GameHistoryModel,
    GameHistoryResponse,
    GameModel,
    GameResponse,
    ImageAnalysisRequest,
    ImageAnalysisResponse,
    MakeMoveRequest,
    MakeMoveResponse,
    MoveModel,
    PingResponse,
    PositionAnalysisRequest,
    PositionAnalysisResponse,
    PositionModel,
    SuccessResponse,
    UserExportResponse,
    UserHistoryResponse,
    UserStatsModel,
    UserStatsResponse,
)

_log = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _service(request: Request) -> ChessService:
    return request.app.state.service


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    body = ErrorResponse(error=message, code=code)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/ping",
    response_model=PingResponse,
    response_model_exclude_none=True,
)
def ping() -> PingResponse:
    return PingResponse(message="ping")


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


@router.post(
    "/analysis/position",
    response_model=PositionAnalysisResponse,
    response_model_exclude_none=True,
)
def analyze_position(body: PositionAnalysisRequest, request: Request) -> PositionAnalysisResponse:
    """
    Analyze a FEN position.

    Depth is clamped to [1, max depth] and the timeout to the configured
    range; the analysis is added to the history.
    """
    record = _service(request).analyze_position(body.fen, depth=body.depth, timeout_ms=body.timeout)
    return PositionAnalysisResponse(analysis=AnalysisModel.from_result(record.analysis))


@router.post(
    "/analysis/image",
    response_model=ImageAnalysisResponse,
    response_model_exclude_none=True,
)
def analyze_image(body: ImageAnalysisRequest, request: Request) -> ImageAnalysisResponse:
    """Recognize a position from a base64 board image and analyze it."""
    timeout = body.options.timeout if body.options is not None else None
    result = _service(request).analyze_image(body.image_data, timeout_ms=timeout)
    return ImageAnalysisResponse(
        analysis=AnalysisModel.from_result(result.record.analysis),
        recognized_position=PositionModel.from_position(result.recognition.position),
        confidence=result.recognition.confidence,
    )


@router.get(
    "/analysis/history",
    response_model=AnalysisHistoryResponse,
    response_model_exclude_none=True,
)
def analysis_history(request: Request, limit: int = 10) -> AnalysisHistoryResponse:
    records = _service(request).analysis_history(limit)
    return AnalysisHistoryResponse(analyses=[AnalysisHistoryModel.from_record(r) for r in records])


@router.delete(
    "/analysis/{analysis_id}",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
)
def delete_analysis(analysis_id: str, request: Request) -> SuccessResponse:
    _service(request).delete_analysis(analysis_id)
    return SuccessResponse()


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------


@router.post(
    "/game/create",
    response_model=GameResponse,
    response_model_exclude_none=True,
)
def create_game(body: CreateGameRequest, request: Request) -> GameResponse:
    """Start a game; when the player takes Black the bot's first move is included."""
    game = _service(request).create_game(body.settings.to_settings())
    return GameResponse(game=GameModel.from_session(game))


@router.post(
    "/game/move",
    response_model=MakeMoveResponse,
    response_model_exclude_none=True,
)
def make_move(body: MakeMoveRequest, request: Request) -> MakeMoveResponse:
    """
    Play the player's move, followed by the bot's reply while the game goes on.

    Raises (reported as error bodies):
        InvalidSession: Unknown game id (404) or the game is over (400).
        IllegalMove:    The move is not legal in the current position.
        InvalidInput:   A square name or promotion piece is malformed.
    """
    transition = _service(request).make_move(
        body.game_id, body.move.from_, body.move.to, body.move.promotion
    )
    bot_move = MoveModel.from_record(transition.bot_move) if transition.bot_move else None
    return MakeMoveResponse(game=GameModel.from_session(transition.session), bot_move=bot_move)


@router.get(
    "/game/history",
    response_model=GameHistoryResponse,
    response_model_exclude_none=True,
)
def game_history(request: Request, limit: int = 10) -> GameHistoryResponse:
    entries = _service(request).game_history(limit)
    return GameHistoryResponse(games=[GameHistoryModel.from_entry(e) for e in entries])


@router.get(
    "/game/{game_id}",
    response_model=GameResponse,
    response_model_exclude_none=True,
)
def get_game(game_id: str, request: Request) -> GameResponse:
    return GameResponse(game=GameModel.from_session(_service(request).get_game(game_id)))


@router.post(
    "/game/{game_id}/resign",
    response_model=GameResponse,
    response_model_exclude_none=True,
)
def resign_game(game_id: str, request: Request) -> GameResponse:
    return GameResponse(game=GameModel.from_session(_service(request).resign(game_id)))


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


@router.get(
    "/user/stats",
    response_model=UserStatsResponse,
    response_model_exclude_none=True,
)
def user_stats(request: Request) -> UserStatsResponse:
    return UserStatsResponse(stats=UserStatsModel.from_stats(_service(request).user_stats()))


@router.get(
    "/user/history",
    response_model=UserHistoryResponse,
    response_model_exclude_none=True,
)
def user_history(
    request: Request,
    analysis_limit: int = Query(5, alias="analysisLimit"),
    game_limit: int = Query(5, alias="gameLimit"),
) -> UserHistoryResponse:
    history = _service(request).user_history(analysis_limit, game_limit)
    return UserHistoryResponse(
        analyses=[AnalysisHistoryModel.from_record(r) for r in history.analyses],
        games=[GameHistoryModel.from_entry(e) for e in history.games],
        stats=UserStatsModel.from_stats(history.stats),
    )


@router.post(
    "/user/clear",
    response_model=SuccessResponse,
    response_model_exclude_none=True,
)
def clear_user_data(request: Request) -> SuccessResponse:
    _service(request).clear_user_data()
    return SuccessResponse(message="User data cleared successfully")


@router.get(
    "/user/export",
    response_model=UserExportResponse,
    response_model_exclude_none=True,
)
def export_user_data(request: Request) -> JSONResponse:
    """Download every analysis, finished game, and the statistics as one JSON file."""
    export = UserExportResponse.from_export(_service(request).export_user_data())
    return JSONResponse(
        content=export.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers={"Content-Disposition": 'attachment; filename="chessvision-data.json"'},
    )


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def _handle_chessvision_error(request: Request, exc: ChessVisionError) -> JSONResponse:
    if exc.status_code >= 500:
        _log.error("%s %s failed: %s", request.method, request.url.path, exc)
    return _error(exc.status_code, str(exc), exc.code)


def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return _error(400, f"Invalid request: {details}", InvalidInputError.code)


def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    _log.exception("Unhandled error for %s %s", request.method, request.url.path)
    return _error(500, "Internal server error", ChessVisionError.code)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    store: SessionStore | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    """
    Build the application with its own store, random source, and service.

    Args:
        settings: Runtime settings; read from the environment when omitted.
        store:    Storage backend; a fresh InMemoryStore when omitted.
        rng:      Random source shared by every random decision; seeded
                  from ``settings.random_seed`` when omitted.
    """
    settings = settings if settings is not None else Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="ChessVision", version="1.0.0")
    app.state.settings = settings
    app.state.service = ChessService(
        store if store is not None else InMemoryStore(),
        rng=rng if rng is not None else random.Random(settings.random_seed),
        default_depth=settings.default_depth,
        max_depth=settings.max_depth,
        default_timeout_ms=settings.default_timeout_ms,
        max_timeout_ms=settings.max_timeout_ms,
        bot_time_limit_ms=settings.bot_time_limit_ms,
    )

    app.include_router(router)
    app.add_exception_handler(ChessVisionError, _handle_chessvision_error)
    app.add_exception_handler(RequestValidationError, _handle_validation_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)

    _log.info(
        "ChessVision ready: depth<=%d timeout<=%dms bot=%dms",
        settings.max_depth,
        settings.max_timeout_ms,
        settings.bot_time_limit_ms,
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
