from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from src.engine.board import Board, Piece
from src.engine.move import Color, PieceKind, Square
from src.engine.movegen import all_legal_moves
from src.engine.zobrist import position_hash
from src.search.transposition import TranspositionCache


logger = logging.getLogger(__name__)


# Material values; the king's weight stands in for a mate score
PIECE_VALUES: Dict[PieceKind, int] = {
    PieceKind.PAWN: 100,
    PieceKind.KNIGHT: 300,
    PieceKind.BISHOP: 300,
    PieceKind.ROOK: 500,
    PieceKind.QUEEN: 900,
    PieceKind.KING: 10000,
}

# Root ordering weights; capturing a king is never a real move
CAPTURE_VALUES: Dict[PieceKind, int] = {
    PieceKind.PAWN: 100,
    PieceKind.KNIGHT: 300,
    PieceKind.BISHOP: 300,
    PieceKind.ROOK: 500,
    PieceKind.QUEEN: 900,
}

MIN_SCORE = -(2**63)
MAX_SCORE = 2**63 - 1

Candidate = Tuple[Piece, Square]


@dataclass
class SearchResult:
    best_move: Optional[Candidate]
    score: Optional[int]
    nodes: int
    cache_probes: int
    cache_hits: int
    cache_stores: int
    cache_size: int
    depth: int
    time_ms: int


def evaluate(board: Board, color: Color) -> int:
    """Material balance from ``color``'s point of view."""
    score = 0
    for piece in board.pieces():
        value = PIECE_VALUES[piece.kind]
        score += value if piece.color is color else -value
    return score


def capture_value(board: Board, piece: Piece, destination: Square) -> int:
    target = board.piece_at(destination)
    if target is None or target.color is piece.color:
        return 0
    return CAPTURE_VALUES.get(target.kind, 0)


def order_moves(board: Board, moves: List[Candidate]) -> List[Candidate]:
    """Sort by captured value, highest first; ties keep generation order."""
    return sorted(moves, key=lambda m: capture_value(board, m[0], m[1]), reverse=True)


class SearchService:
    """Depth-bounded minimax with alpha-beta pruning.

    Each call builds its own TranspositionCache; nothing is shared between
    calls, so concurrent searches on separate boards are independent.
    """

    def search(
        self,
        board: Board,
        color: Color,
        depth: int,
        *,
        enable_pruning: bool = True,
        use_cache: bool = True,
        on_evaluate: Optional[Callable[[Piece, Square], None]] = None,
    ) -> SearchResult:
        """Pick the move for ``color`` that maximizes the minimax score.

        Args:
            board (Board): Position to search; never mutated.
            color (Color): Side to move and the side scores are reported for.
            depth (int): Plies to search, root move included.
            enable_pruning (bool): Cut off siblings once ``beta <= alpha``.
            use_cache (bool): Memoize node scores by position hash.
            on_evaluate: Called with each root candidate just before it is
                searched, in search order.

        Returns:
            SearchResult: ``best_move`` holds a piece of ``board`` and its
                destination, or ``None`` when ``color`` has no legal move.

        Raises:
            ValueError: If ``depth`` is below 1.
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")
        start = time.perf_counter()
        cache = TranspositionCache()
        nodes = 0

        def minimax(node: Board, depth_left: int, maximizing: bool, alpha: int, beta: int) -> int:
            nonlocal nodes
            nodes += 1
            key = position_hash(node)
            if use_cache:
                cached = cache.get(key)
                if cached is not None:
                    return cached

            if depth_left == 0:
                best = evaluate(node, color)
            else:
                # A side with no legal reply keeps its initial bound: mate or
                # stalemate of the opponent wins outright, our own loses
                best = MIN_SCORE if maximizing else MAX_SCORE
                moves = all_legal_moves(color if maximizing else color.opponent, node)
                for piece, dest in moves:
                    child = node.clone()
                    child.apply_move(piece, dest)
                    score = minimax(child, depth_left - 1, not maximizing, alpha, beta)
                    if maximizing:
                        best = max(best, score)
                        alpha = max(alpha, best)
                    else:
                        best = min(best, score)
                        beta = min(beta, best)
                    if enable_pruning and beta <= alpha:
                        break

            if use_cache:
                cache.set(key, best)
            return best

        best_move: Optional[Candidate] = None
        best_score: Optional[int] = None
        alpha = MIN_SCORE
        for piece, dest in order_moves(board, all_legal_moves(color, board)):
            if on_evaluate is not None:
                on_evaluate(piece, dest)
            child = board.clone()
            child.apply_move(piece, dest)
            score = minimax(child, depth - 1, False, alpha, MAX_SCORE)
            if best_score is None or score > best_score:
                best_score = score
                best_move = (piece, dest)
                if enable_pruning:
                    alpha = max(alpha, score)

        time_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "search done",
            extra={
                "color": color.value,
                "depth": depth,
                "score": best_score,
                "nodes": nodes,
                "cache_size": len(cache),
                "time_ms": time_ms,
            },
        )
        return SearchResult(
            best_move=best_move,
            score=best_score,
            nodes=nodes,
            cache_probes=cache.probes,
            cache_hits=cache.hits,
            cache_stores=cache.stores,
            cache_size=len(cache),
            depth=depth,
            time_ms=time_ms,
        )


def choose_move(board: Board, side: Color, depth: int) -> Optional[Candidate]:
    """Search entry point for hosts: the automated side's move, or None."""
    return SearchService().search(board, side, depth).best_move
