from __future__ import annotations

import logging
import threading
import uuid
from enum import Enum
from typing import Dict, Optional

from ...config import Difficulty
from ...engine.clock import ChessClock
from ...engine.game import Game
from ...engine.move import Color, Move, PieceKind, Square
from ...search.service import SearchResult
from ...search.worker import BackgroundSearch


logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    VS_AI = "vs_ai"
    LOCAL = "local"


class SessionConflictError(Exception):
    """The request is valid in general but not in the session's current state."""


class GameSession:
    """One live game plus the computer opponent that plays in it.

    All mutation of ``game`` happens under ``lock``. Human moves are refused
    while the computer is thinking, and a search result is applied only if
    its generation is still current when the lock is taken.
    """

    def __init__(
        self,
        game: Optional[Game] = None,
        mode: GameMode = GameMode.VS_AI,
        difficulty: Difficulty = Difficulty.MEDIUM,
        ai_color: Color = Color.BLACK,
        search: Optional[BackgroundSearch] = None,
        clock: Optional[ChessClock] = None,
    ) -> None:
        self.game = game if game is not None else Game.new()
        self.mode = mode
        self.difficulty = difficulty
        self.ai_color = ai_color
        self.lock = threading.RLock()
        self.ai_thinking = False
        self.last_search: Optional[SearchResult] = None
        self._search = search or BackgroundSearch()
        self.clock = clock or ChessClock()

    def start(self) -> None:
        """Start the clock for the side to move; let the computer move first if that is it."""
        with self.lock:
            self._sync_clock()
            self._maybe_start_ai()

    def human_move(
        self, origin: Square, destination: Square, promotion: Optional[PieceKind] = None
    ) -> Move:
        with self.lock:
            self._require_human_turn()
            move = self.game.apply_move(origin, destination, promotion)
            self._sync_clock()
            self._maybe_start_ai()
            return move

    def promote(self, kind: PieceKind) -> Move:
        with self.lock:
            self._require_human_turn()
            move = self.game.promote(kind)
            self._sync_clock()
            self._maybe_start_ai()
            return move

    def undo(self) -> None:
        """Take back the last move; against the computer, back to the human's turn."""
        with self.lock:
            if not self.game.history:
                raise ValueError("no moves to undo")
            self._cancel_ai()
            self.game.undo_move()
            if self.mode is GameMode.VS_AI:
                while self.game.history and self.game.turn is self.ai_color:
                    self.game.undo_move()
            self._sync_clock()
            self._maybe_start_ai()

    def reset(self) -> None:
        with self.lock:
            self._cancel_ai()
            self.game.reset()
            self.clock.reset()
            self._sync_clock()
            self._maybe_start_ai()

    def close(self) -> None:
        with self.lock:
            self._cancel_ai()
            self.clock.stop()

    def wait_for_ai(self, timeout: Optional[float] = None) -> None:
        self._search.join(timeout)

    def _require_human_turn(self) -> None:
        flagged = self.clock.flagged()
        if flagged is not None:
            raise SessionConflictError(f"{flagged.value} is out of time")
        if self.ai_thinking:
            raise SessionConflictError("computer is thinking")
        if self.mode is GameMode.VS_AI and self.game.turn is self.ai_color:
            raise SessionConflictError("it is the computer's turn")

    def _sync_clock(self) -> None:
        if self.game.is_over() or self.clock.flagged() is not None:
            self.clock.stop()
        elif self.clock.running is not self.game.turn:
            self.clock.start(self.game.turn)

    def _maybe_start_ai(self) -> None:
        if self.clock.flagged() is not None:
            return
        if self.mode is not GameMode.VS_AI or self.game.turn is not self.ai_color:
            return
        if self.game.pending_promotion is not None or self.game.is_over():
            return
        self.ai_thinking = True
        gen = self._search.start(
            self.game.board, self.ai_color, self.difficulty.depth, self._on_search_result
        )
        logger.info(
            "computer thinking",
            extra={"generation": gen, "color": self.ai_color.value, "depth": self.difficulty.depth},
        )

    def _cancel_ai(self) -> None:
        self._search.cancel()
        self.ai_thinking = False

    def _on_search_result(self, gen: int, result: SearchResult) -> None:
        with self.lock:
            if not self._search.is_current(gen):
                logger.info("discarding stale computer move", extra={"generation": gen})
                return
            self.ai_thinking = False
            self.last_search = result
            flagged = self.clock.flagged()
            if flagged is not None:
                logger.info("computer move after flag fall ignored", extra={"flagged": flagged.value})
                self.clock.stop()
                return
            if result.best_move is None:
                logger.info("computer has no legal move", extra={"status": self.game.status().value})
                return
            piece, destination = result.best_move
            move = self.game.apply_move(piece.square, destination, await_promotion=False)
            self._sync_clock()
            logger.info(
                "computer moved",
                extra={"move": move.to_uci(), "score": result.score, "nodes": result.nodes},
            )


class InMemorySessionStore:
    """Thread-safe in-memory game session store.

    Responsibilities:
    - Create new sessions with unique `game_id`s
    - Retrieve existing sessions by `game_id`
    - Delete sessions, cancelling any computer search in flight
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sessions: Dict[str, GameSession] = {}

    def create(self, session: Optional[GameSession] = None) -> str:
        """Register a session (a fresh vs-computer game by default) and return its `game_id`."""
        gid = str(uuid.uuid4())
        if session is None:
            session = GameSession()
        with self._lock:
            self._sessions[gid] = session
        return gid

    def get(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def delete(self, game_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is not None:
            session.close()
