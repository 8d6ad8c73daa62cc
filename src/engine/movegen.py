"""Pseudo-legal and legal move generation.

Legality is decided one way only: apply the candidate to a clone and ask
whether the mover's king is attacked afterwards.
"""

from __future__ import annotations

from typing import List, Tuple

from .board import KING_FILE, Board, Piece, home_rank, pawn_start_rank
from .move import Color, PieceKind, Square, in_bounds


KNIGHT_OFFSETS = ((2, 1), (1, 2), (-1, 2), (-2, 1), (-2, -1), (-1, -2), (1, -2), (2, -1))
KING_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1), (1, 1), (-1, -1), (1, -1), (-1, 1))
ROOK_DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))
BISHOP_DIRECTIONS = ((1, 1), (-1, -1), (1, -1), (-1, 1))
QUEEN_DIRECTIONS = ROOK_DIRECTIONS + BISHOP_DIRECTIONS

SLIDER_DIRECTIONS = {
    PieceKind.ROOK: ROOK_DIRECTIONS,
    PieceKind.BISHOP: BISHOP_DIRECTIONS,
    PieceKind.QUEEN: QUEEN_DIRECTIONS,
}


def pawn_direction(color: Color) -> int:
    return 1 if color is Color.WHITE else -1


def _slide(board: Board, piece: Piece, directions) -> List[Square]:
    out: List[Square] = []
    rank, file = piece.square
    for dr, df in directions:
        r, f = rank + dr, file + df
        while 0 <= r < 8 and 0 <= f < 8:
            other = board.piece_at((r, f))
            if other is not None:
                if other.color is not piece.color:
                    out.append((r, f))
                break
            out.append((r, f))
            r += dr
            f += df
    return out


def _step(board: Board, piece: Piece, offsets) -> List[Square]:
    out: List[Square] = []
    rank, file = piece.square
    for dr, df in offsets:
        dest = (rank + dr, file + df)
        if not in_bounds(dest):
            continue
        other = board.piece_at(dest)
        if other is None or other.color is not piece.color:
            out.append(dest)
    return out


def _pawn_moves(board: Board, piece: Piece) -> List[Square]:
    out: List[Square] = []
    rank, file = piece.square
    step = pawn_direction(piece.color)
    one = (rank + step, file)
    if in_bounds(one) and board.piece_at(one) is None:
        out.append(one)
        two = (rank + 2 * step, file)
        if rank == pawn_start_rank(piece.color) and board.piece_at(two) is None:
            out.append(two)
    for df in (-1, 1):
        diag = (rank + step, file + df)
        if not in_bounds(diag):
            continue
        target = board.piece_at(diag)
        if target is not None and target.color is not piece.color:
            out.append(diag)
    return out


def pseudo_legal_moves(piece: Piece, board: Board) -> List[Square]:
    """Destinations obeying movement geometry and occupancy only.

    Castling is not included; see ``legal_moves``.
    """
    if piece.kind is PieceKind.PAWN:
        return _pawn_moves(board, piece)
    if piece.kind is PieceKind.KNIGHT:
        return _step(board, piece, KNIGHT_OFFSETS)
    if piece.kind is PieceKind.KING:
        return _step(board, piece, KING_OFFSETS)
    return _slide(board, piece, SLIDER_DIRECTIONS[piece.kind])


def is_square_attacked(board: Board, square: Square, by: Color) -> bool:
    """Return True if any piece of ``by`` could capture on ``square``.

    Scans outward from the target: pawn diagonals, knight and king offsets,
    then slider rays. Pawn pushes never attack; pawn diagonals attack whether
    or not the square is occupied.
    """
    rank, file = square

    # Pawns of `by` sit one rank behind the square, from their own perspective
    back = rank - pawn_direction(by)
    for df in (-1, 1):
        p = board.piece_at((back, file + df))
        if p is not None and p.color is by and p.kind is PieceKind.PAWN:
            return True

    for offsets, kind in ((KNIGHT_OFFSETS, PieceKind.KNIGHT), (KING_OFFSETS, PieceKind.KING)):
        for dr, df in offsets:
            p = board.piece_at((rank + dr, file + df))
            if p is not None and p.color is by and p.kind is kind:
                return True

    for directions, kinds in (
        (ROOK_DIRECTIONS, (PieceKind.ROOK, PieceKind.QUEEN)),
        (BISHOP_DIRECTIONS, (PieceKind.BISHOP, PieceKind.QUEEN)),
    ):
        for dr, df in directions:
            r, f = rank + dr, file + df
            while 0 <= r < 8 and 0 <= f < 8:
                p = board.piece_at((r, f))
                if p is not None:
                    if p.color is by and p.kind in kinds:
                        return True
                    break
                r += dr
                f += df
    return False


def king_in_check(board: Board, color: Color) -> bool:
    king = board.king(color)
    if king is None:
        return False
    return is_square_attacked(board, king.square, color.opponent)


def _can_castle(board: Board, color: Color, rook_file: int) -> bool:
    rank = home_rank(color)
    king = board.piece_at((rank, KING_FILE))
    if king is None or king.kind is not PieceKind.KING or king.color is not color or king.has_moved:
        return False
    rook = board.piece_at((rank, rook_file))
    if rook is None or rook.kind is not PieceKind.ROOK or rook.color is not color or rook.has_moved:
        return False

    lo, hi = sorted((KING_FILE, rook_file))
    for f in range(lo + 1, hi):
        if board.piece_at((rank, f)) is not None:
            return False

    # King's origin, the square it crosses, and where it lands
    step = 1 if rook_file > KING_FILE else -1
    enemy = color.opponent
    for f in (KING_FILE, KING_FILE + step, KING_FILE + 2 * step):
        if is_square_attacked(board, (rank, f), enemy):
            return False
    return True


def can_castle_kingside(board: Board, color: Color) -> bool:
    return _can_castle(board, color, 7)


def can_castle_queenside(board: Board, color: Color) -> bool:
    return _can_castle(board, color, 0)


def castling_destinations(piece: Piece, board: Board) -> List[Square]:
    if piece.kind is not PieceKind.KING:
        return []
    rank = home_rank(piece.color)
    if piece.square != (rank, KING_FILE):
        return []
    out: List[Square] = []
    if can_castle_kingside(board, piece.color):
        out.append((rank, KING_FILE + 2))
    if can_castle_queenside(board, piece.color):
        out.append((rank, KING_FILE - 2))
    return out


def leaves_king_in_check(board: Board, piece: Piece, destination: Square) -> bool:
    trial = board.clone()
    trial.apply_move(piece, destination)
    return king_in_check(trial, piece.color)


def legal_moves(piece: Piece, board: Board) -> List[Square]:
    """Destinations for ``piece`` that do not leave its own king attacked.

    Includes the king's two-file castling destinations when eligible.
    """
    if board.get(piece.id) is None:
        return []
    out = [d for d in pseudo_legal_moves(piece, board) if not leaves_king_in_check(board, piece, d)]
    # Eligibility already proves the king never stands on an attacked square
    out.extend(castling_destinations(piece, board))
    return out


def all_legal_moves(color: Color, board: Board) -> List[Tuple[Piece, Square]]:
    """All legal ``(piece, destination)`` pairs for ``color`` in traversal order."""
    moves: List[Tuple[Piece, Square]] = []
    for piece in board.pieces(color):
        for dest in legal_moves(piece, board):
            moves.append((piece, dest))
    return moves


def has_legal_move(color: Color, board: Board) -> bool:
    for piece in board.pieces(color):
        if legal_moves(piece, board):
            return True
    return False
