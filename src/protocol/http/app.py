from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    exception_handler,
    game_error_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameMode, GameSession, InMemorySessionStore, SessionConflictError
from ...config import Difficulty, Settings
from ...engine.board import Board
from ...engine.clock import ChessClock
from ...engine.game import Game, IllegalMoveError
from ...engine.move import PROMOTION_PIECES, Color, parse_uci, square_to_str
from ...engine.perft import perft as perft_nodes
from ...search.service import SearchService


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    mode: GameMode = GameMode.VS_AI
    difficulty: Optional[Difficulty] = None
    ai_color: Optional[Color] = None
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead of startpos")
    clock_seconds: Optional[int] = Field(default=None, ge=1, le=86400, description="Per-side clock")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str
    mode: GameMode
    difficulty: Difficulty
    ai_color: Color


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4 or e7e8q")


class PromoteRequest(BaseModel):
    piece: str = Field(..., pattern="^[qrbnQRBN]$", description="q, r, b or n")


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=4)


class PerftRequest(BaseModel):
    fen: str
    depth: int = Field(default=1, ge=0, le=4)


class GameState(BaseModel):
    game_id: str
    fen: str
    mode: GameMode
    difficulty: Difficulty
    ai_color: Color
    turn: Color
    status: str
    status_color: Color
    legal_moves: List[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    ai_thinking: bool
    pending_promotion: Optional[str]
    last_move: Optional[str]
    move_history: List[str]
    captures: Dict[str, List[str]]
    clocks: Dict[str, int]
    out_of_time: Optional[Color]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Chess Game API", version="0.1.0")

    # Basic logging setup
    logging.basicConfig(level=getattr(logging, settings.log_level))

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(IllegalMoveError, game_error_handler)
    app.add_exception_handler(SessionConflictError, game_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore()
    app.state.store = store
    app.state.settings = settings

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        req = req or CreateGameRequest()
        game = Game.new()
        if req.fen is not None:
            try:
                game = Game.from_fen(req.fen)
            except ValueError:
                raise HTTPException(status_code=400, detail="invalid FEN")
        session = GameSession(
            game,
            mode=req.mode,
            difficulty=req.difficulty or settings.default_difficulty,
            ai_color=req.ai_color or settings.ai_color,
            clock=ChessClock((req.clock_seconds or settings.clock_seconds) * 1000),
        )
        game_id = store.create(session)
        fen = session.game.to_fen()
        session.start()
        return CreateGameResponse(
            game_id=game_id,
            fen=fen,
            mode=session.mode,
            difficulty=session.difficulty,
            ai_color=session.ai_color,
        )

    @app.get("/api/games/{game_id}/state", response_model=GameState)
    def get_state(game_id: str) -> GameState:
        return _state(game_id, _require_session(store, game_id))

    @app.post("/api/games/{game_id}/move", response_model=GameState)
    def make_move(game_id: str, req: MoveRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            origin, destination, promotion = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        session.human_move(origin, destination, promotion)
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/promote", response_model=GameState)
    def promote(game_id: str, req: PromoteRequest) -> GameState:
        session = _require_session(store, game_id)
        try:
            session.promote(PROMOTION_PIECES[req.piece.lower()])
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/undo", response_model=GameState)
    def undo(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        try:
            session.undo()
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _state(game_id, session)

    @app.post("/api/games/{game_id}/reset", response_model=GameState)
    def reset(game_id: str) -> GameState:
        session = _require_session(store, game_id)
        session.reset()
        return _state(game_id, session)

    @app.delete("/api/games/{game_id}")
    def delete_game(game_id: str) -> Dict[str, str]:
        _require_session(store, game_id)
        store.delete(game_id)
        return {"status": "deleted"}

    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: SearchRequest) -> Dict[str, Any]:
        session = _require_session(store, game_id)
        with session.lock:
            board = session.game.board.clone()
            color = session.game.turn
            depth = req.depth or session.difficulty.depth
        res = SearchService().search(board, color, depth)
        best: Optional[str] = None
        if res.best_move is not None:
            piece, dest = res.best_move
            best = square_to_str(piece.square) + square_to_str(dest)
        return {
            "best_move": best,
            "score": res.score,
            "nodes": res.nodes,
            "cache_probes": res.cache_probes,
            "cache_hits": res.cache_hits,
            "cache_size": res.cache_size,
            "depth": res.depth,
            "time_ms": res.time_ms,
        }

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, Any]:
        try:
            board = Board.from_fen(req.fen)
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid FEN")
        color = Color.WHITE if req.fen.split()[1] == "w" else Color.BLACK
        return {"nodes": perft_nodes(board, color, req.depth)}

    return app


def _state(game_id: str, session: GameSession) -> GameState:
    with session.lock:
        game = session.game
        pending = None
        if game.pending_promotion is not None:
            pawn = game.board.get(game.pending_promotion)
            pending = square_to_str(pawn.square) if pawn is not None else None
        last = game.last_move
        return GameState(
            game_id=game_id,
            fen=game.to_fen(),
            mode=session.mode,
            difficulty=session.difficulty,
            ai_color=session.ai_color,
            turn=game.turn,
            status=game.status().value,
            status_color=game.status_color,
            legal_moves=game.legal_moves_uci(),
            in_check=game.in_check(),
            checkmate=game.checkmate(),
            stalemate=game.stalemate(),
            ai_thinking=session.ai_thinking,
            pending_promotion=pending,
            last_move=last.to_uci() if last is not None else None,
            move_history=game.move_history_uci(),
            captures={c.value: [p.symbol() for p in pieces] for c, pieces in game.captures.items()},
            clocks=session.clock.snapshot(),
            out_of_time=session.clock.flagged(),
        )


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


# Default app for non-factory servers
app = create_app()
