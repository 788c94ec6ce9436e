from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameSession, InMemorySessionStore
from ...config import Settings
from ...engine.game import Game, GameOutcome
from ...engine.move import parse_uci, square_to_str, str_to_square
from ...engine.perft import perft as perft_nodes


logger = logging.getLogger(__name__)


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="Move in long algebraic form, e.g., e2e4")


class PerftRequest(BaseModel):
    fen: str = Field(..., description="FEN string")
    depth: int = Field(default=1, ge=0)


class DestinationsResponse(BaseModel):
    square: str
    destinations: List[str]


class GameView(BaseModel):
    game_id: str
    fen: str
    turn: str
    board: List[List[Optional[str]]]
    legal_moves: List[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    outcome: str
    winner: Optional[str]
    status: str
    last_move: Optional[str]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Chess Rules API", version="0.1.0")

    logging.basicConfig(level=settings.log_level)

    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game() -> CreateGameResponse:
        game_id = store.create(Game.new())
        session = _require_session(store, game_id)
        with session.lock:
            return CreateGameResponse(game_id=game_id, fen=session.game.to_fen())

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, str]:
        if not store.delete(game_id):
            raise HTTPException(status_code=404, detail="game not found")
        return {"status": "deleted"}

    @app.get("/api/games/{game_id}/state", response_model=GameView)
    def get_state(game_id: str) -> GameView:
        session = _require_session(store, game_id)
        with session.lock:
            return _view(game_id, session.game)

    @app.get("/api/games/{game_id}/moves/{square}", response_model=DestinationsResponse)
    def get_destinations(game_id: str, square: str) -> DestinationsResponse:
        session = _require_session(store, game_id)
        try:
            source = str_to_square(square)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with session.lock:
            dests = session.game.legal_destinations(source)
        return DestinationsResponse(square=square, destinations=[square_to_str(d) for d in dests])

    @app.post("/api/games/{game_id}/move", response_model=GameView)
    def make_move(game_id: str, req: MoveRequest) -> GameView:
        session = _require_session(store, game_id)
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with session.lock:
            game = session.game
            if game.is_over:
                raise HTTPException(status_code=409, detail="game is over")
            if not game.apply_move(move.source, move.destination):
                logger.info("illegal move", extra={"game_id": game_id, "move": req.move})
                raise HTTPException(status_code=400, detail="illegal move")
            return _view(game_id, game)

    @app.post("/api/games/{game_id}/position", response_model=GameView)
    def set_position(game_id: str, req: SetPositionRequest) -> GameView:
        session = _require_session(store, game_id)
        try:
            game = Game.from_fen(req.fen)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"invalid FEN: {e}")
        with session.lock:
            session.game = game
            return _view(game_id, game)

    @app.post("/api/games/{game_id}/reset", response_model=GameView)
    def reset(game_id: str) -> GameView:
        session = _require_session(store, game_id)
        with session.lock:
            session.game.reset()
            return _view(game_id, session.game)

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, int]:
        if req.depth > settings.max_perft_depth:
            raise HTTPException(
                status_code=400,
                detail=f"depth must be <= {settings.max_perft_depth}",
            )
        try:
            game = Game.from_fen(req.fen)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        nodes = perft_nodes(game.board, game.turn, req.depth)
        return {"nodes": nodes, "depth": req.depth}

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


def _view(game_id: str, game: Game) -> GameView:
    return GameView(
        game_id=game_id,
        fen=game.to_fen(),
        turn=game.turn.value,
        board=game.board.rows(),
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=game.is_in_check(),
        checkmate=game.outcome is GameOutcome.CHECKMATE,
        stalemate=game.outcome is GameOutcome.STALEMATE,
        outcome=game.outcome.value,
        winner=game.winner.value if game.winner is not None else None,
        status=game.status_text(),
        last_move=game.last_move.to_uci() if game.last_move is not None else None,
    )
