from __future__ import annotations

from .board import Board
from .move import Color, square_to_str
from .movegen import all_legal_moves


def perft(board: Board, color: Color, depth: int) -> int:
    """Compute perft node count for ``board`` with ``color`` to move.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Note: children are produced by clone-and-apply, the same contract the
    search uses. En passant and promotion are not generated, so counts match
    the standard tables only while neither can occur (startpos up to depth 4).
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = all_legal_moves(color, board)
    if depth == 1:
        return len(moves)
    nodes = 0
    for piece, dest in moves:
        child = board.clone()
        child.apply_move(piece, dest)
        nodes += perft(child, color.opponent, depth - 1)
    return nodes


def divide(board: Board, color: Color, depth: int) -> dict[str, int]:
    """Per-root-move perft counts keyed by UCI string."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: dict[str, int] = {}
    for piece, dest in all_legal_moves(color, board):
        child = board.clone()
        child.apply_move(piece, dest)
        key = square_to_str(piece.square) + square_to_str(dest)
        out[key] = perft(child, color.opponent, depth - 1)
    return out
