from __future__ import annotations

from typing import List, TYPE_CHECKING

from .move import Color, PieceKind, square_index

if TYPE_CHECKING:  # pragma: no cover
    from .board import Board


MASK64 = 0xFFFFFFFFFFFFFFFF

COLOR_ORDER = [Color.WHITE, Color.BLACK]
KIND_ORDER = [
    PieceKind.KING,
    PieceKind.QUEEN,
    PieceKind.ROOK,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.PAWN,
]
_COLOR_INDEX = {c: i for i, c in enumerate(COLOR_ORDER)}
_KIND_INDEX = {k: i for i, k in enumerate(KIND_ORDER)}


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        # Deterministic 64-bit SplitMix64
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        z = z ^ (z >> 31)
        return z & MASK64


class Zobrist:
    """Placement hashing constants.

    Table layout:
    - piece_square[2][6][64]: color (white, black) x kind (K, Q, R, B, N, P)
      x square index (rank * 8 + file)

    No side-to-move, castling or en passant keys: the hash identifies piece
    placement only.
    """

    piece_square: List[List[List[int]]]

    def __init__(self, seed: int = 0xC0FFEE_F00D_DEAD) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = [
            [[prng.next() for _ in range(64)] for _ in KIND_ORDER] for _ in COLOR_ORDER
        ]

    def key(self, color: Color, kind: PieceKind, sq: int) -> int:
        return self.piece_square[_COLOR_INDEX[color]][_KIND_INDEX[kind]][sq]


# Global deterministic table, built once at import and never mutated
ZOBRIST = Zobrist()


def position_hash(board: "Board") -> int:
    """Compute the 64-bit placement hash of ``board``.

    XOR of one constant per piece on the board. Boards with identical
    placement hash identically regardless of move history.
    """
    h = 0
    for piece in board.pieces():
        h ^= ZOBRIST.key(piece.color, piece.kind, square_index(piece.square))
    return h & MASK64
