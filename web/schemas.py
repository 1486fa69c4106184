"""
Request and response models for the REST API.

Field names are snake_case in Python and camelCase on the wire. Request
models only check shapes and types; value ranges (time control, difficulty,
color, FEN legality) are validated by the game and engine layers so the
same rules and messages apply to every caller.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from engine.models import AnalysisResult, Evaluation, MoveInfo, Position
from game.rating import UserStats
from game.service import GameHistoryEntry, UserExport
from game.session import GameSession, GameSettings, MoveRecord
from game.store import AnalysisRecord


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- REQUEST MODELS ---
class PositionAnalysisRequest(ApiModel):
    fen: str
    depth: int | None = None
    timeout: int | None = None


class ImageAnalysisOptions(ApiModel):
    timeout: int | None = None
    confidence: int | None = None


class ImageAnalysisRequest(ApiModel):
    image_data: str
    options: ImageAnalysisOptions | None = None


class TimeControlModel(ApiModel):
    initial: int
    increment: int


class GameSettingsModel(ApiModel):
    time_control: TimeControlModel
    difficulty: str
    color: str

    @classmethod
    def from_settings(cls, settings: GameSettings) -> "GameSettingsModel":
        return cls(
            time_control=TimeControlModel(
                initial=settings.time_control.initial,
                increment=settings.time_control.increment,
            ),
            difficulty=settings.difficulty.value,
            color=settings.color,
        )

    def to_settings(self) -> GameSettings:
        return GameSettings.parse(
            initial=self.time_control.initial,
            increment=self.time_control.increment,
            difficulty=self.difficulty,
            color=self.color,
        )


class CreateGameRequest(ApiModel):
    settings: GameSettingsModel


class MoveInput(ApiModel):
    from_: str = Field(alias="from")
    to: str
    promotion: str | None = None


class MakeMoveRequest(ApiModel):
    game_id: str
    move: MoveInput


# --- DOMAIN VIEWS ---
class PositionModel(ApiModel):
    fen: str
    turn: Literal["w", "b"]

    @classmethod
    def from_position(cls, position: Position) -> "PositionModel":
        return cls(fen=position.fen, turn=position.turn)


class EvaluationModel(ApiModel):
    type: Literal["cp", "mate"]
    value: int
    formatted: str

    @classmethod
    def from_evaluation(cls, evaluation: Evaluation) -> "EvaluationModel":
        return cls(type=evaluation.kind.value, value=evaluation.value, formatted=evaluation.formatted)


class BestMoveModel(ApiModel):
    from_: str = Field(alias="from")
    to: str
    san: str
    promotion: str | None = None

    @classmethod
    def from_move_info(cls, move: MoveInfo | None) -> "BestMoveModel":
        if move is None:
            return cls(from_="", to="", san="Game Over")
        return cls(from_=move.from_square, to=move.to_square, san=move.san, promotion=move.promotion)


class AnalysisModel(ApiModel):
    position: PositionModel
    evaluation: EvaluationModel
    best_move: BestMoveModel
    principal_variation: list[str]
    depth: int
    confidence: float
    analysis_time: int

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisModel":
        return cls(
            position=PositionModel.from_position(result.position),
            evaluation=EvaluationModel.from_evaluation(result.evaluation),
            best_move=BestMoveModel.from_move_info(result.best_move),
            principal_variation=list(result.principal_variation),
            depth=result.depth,
            confidence=result.confidence,
            analysis_time=result.analysis_time_ms,
        )


class AnalysisHistoryModel(ApiModel):
    id: str
    position: PositionModel
    analysis: AnalysisModel
    timestamp: datetime
    source: str

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "AnalysisHistoryModel":
        return cls(
            id=record.id,
            position=PositionModel.from_position(record.position),
            analysis=AnalysisModel.from_result(record.analysis),
            timestamp=record.timestamp,
            source=record.source,
        )


class MoveModel(ApiModel):
    from_: str = Field(alias="from")
    to: str
    san: str
    promotion: str | None = None
    fen: str
    timestamp: datetime
    is_player_move: bool

    @classmethod
    def from_record(cls, record: MoveRecord) -> "MoveModel":
        return cls(
            from_=record.from_square,
            to=record.to_square,
            san=record.san,
            promotion=record.promotion,
            fen=record.fen,
            timestamp=record.timestamp,
            is_player_move=record.is_player_move,
        )


class GameModel(ApiModel):
    id: str
    player_color: Literal["white", "black"]
    current_position: PositionModel
    moves: list[MoveModel]
    status: str
    settings: GameSettingsModel
    start_time: datetime
    end_time: datetime | None = None
    result: str | None = None

    @classmethod
    def from_session(cls, game: GameSession) -> "GameModel":
        return cls(
            id=game.id,
            player_color=game.player_color.value,
            current_position=PositionModel.from_position(game.position),
            moves=[MoveModel.from_record(m) for m in game.moves],
            status=game.status.value,
            settings=GameSettingsModel.from_settings(game.settings),
            start_time=game.start_time,
            end_time=game.end_time,
            result=game.result.value if game.result is not None else None,
        )


class GameHistoryModel(ApiModel):
    id: str
    game: GameModel
    player_rating: int | None = None
    rating_change: int | None = None

    @classmethod
    def from_entry(cls, entry: GameHistoryEntry) -> "GameHistoryModel":
        return cls(
            id=entry.game.id,
            game=GameModel.from_session(entry.game),
            player_rating=entry.player_rating,
            rating_change=entry.rating_change,
        )


class UserStatsModel(ApiModel):
    total_analyses: int
    total_games: int
    games_won: int
    games_lost: int
    games_drawn: int
    current_rating: int
    favorite_openings: list[str]

    @classmethod
    def from_stats(cls, stats: UserStats) -> "UserStatsModel":
        return cls(
            total_analyses=stats.total_analyses,
            total_games=stats.total_games,
            games_won=stats.games_won,
            games_lost=stats.games_lost,
            games_drawn=stats.games_drawn,
            current_rating=stats.current_rating,
            favorite_openings=list(stats.favorite_openings),
        )


# --- RESPONSE MODELS ---
class PingResponse(ApiModel):
    message: str


class SuccessResponse(ApiModel):
    success: bool = True
    message: str | None = None


class ErrorResponse(ApiModel):
    success: bool = False
    error: str
    code: str


class PositionAnalysisResponse(ApiModel):
    success: bool = True
    analysis: AnalysisModel


class ImageAnalysisResponse(ApiModel):
    success: bool = True
    analysis: AnalysisModel
    recognized_position: PositionModel
    confidence: int


class AnalysisHistoryResponse(ApiModel):
    success: bool = True
    analyses: list[AnalysisHistoryModel]


class GameResponse(ApiModel):
    success: bool = True
    game: GameModel


class MakeMoveResponse(ApiModel):
    success: bool = True
    game: GameModel
    bot_move: MoveModel | None = None


class GameHistoryResponse(ApiModel):
    success: bool = True
    games: list[GameHistoryModel]


class UserStatsResponse(ApiModel):
    success: bool = True
    stats: UserStatsModel


class UserHistoryResponse(ApiModel):
    success: bool = True
    analyses: list[AnalysisHistoryModel]
    games: list[GameHistoryModel]
    stats: UserStatsModel


class UserExportResponse(ApiModel):
    export_date: datetime
    analyses: list[AnalysisHistoryModel]
    games: list[GameHistoryModel]
    stats: UserStatsModel

    @classmethod
    def from_export(cls, export: UserExport) -> "UserExportResponse":
        return cls(
            export_date=export.export_date,
            analyses=[AnalysisHistoryModel.from_record(r) for r in export.analyses],
            games=[GameHistoryModel.from_entry(e) for e in export.games],
            stats=UserStatsModel.from_stats(export.stats),
        )
