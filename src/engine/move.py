from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# (rank, file), both 0..7; rank 0 is white's back rank.
Square = Tuple[int, int]


class Color(str, Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE


class PieceKind(str, Enum):
    KING = "king"
    QUEEN = "queen"
    ROOK = "rook"
    BISHOP = "bishop"
    KNIGHT = "knight"
    PAWN = "pawn"


PROMOTION_PIECES = {
    "q": PieceKind.QUEEN,
    "r": PieceKind.ROOK,
    "b": PieceKind.BISHOP,
    "n": PieceKind.KNIGHT,
}


@dataclass(frozen=True)
class Move:
    """Record of an applied move, kept for history and notification.

    Attributes:
        origin (Square): Square the piece left.
        destination (Square): Square the piece landed on.
        kind (PieceKind): Type of the moving piece.
        promotion (Optional[PieceKind]): Piece the pawn became, if any.
    """

    origin: Square
    destination: Square
    kind: PieceKind
    promotion: Optional[PieceKind] = None

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = ""
        if self.promotion is not None:
            promo = next(ch for ch, k in PROMOTION_PIECES.items() if k is self.promotion)
        return square_to_str(self.origin) + square_to_str(self.destination) + promo


def in_bounds(square: Square) -> bool:
    rank, file = square
    return 0 <= rank < 8 and 0 <= file < 8


def parse_uci(uci: str) -> Tuple[Square, Square, Optional[PieceKind]]:
    """Parse a UCI move string into squares and an optional promotion.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Tuple[Square, Square, Optional[PieceKind]]: Origin, destination and
            requested promotion piece.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    origin = str_to_square(uci[0:2])
    destination = str_to_square(uci[2:4])
    promo: Optional[PieceKind] = None
    if len(uci) == 5:
        ch = uci[4].lower()
        if ch not in PROMOTION_PIECES:
            raise ValueError(f"invalid promotion piece: {ch!r}")
        promo = PROMOTION_PIECES[ch]
    return origin, destination, promo


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a ``(rank, file)`` square.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: Zero-based ``(rank, file)`` pair.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    return int(s[1]) - 1, ord(s[0]) - ord("a")


def square_to_str(square: Square) -> str:
    """Convert a ``(rank, file)`` square into algebraic notation.

    Raises:
        ValueError: If ``square`` is off the board.
    """
    if not in_bounds(square):
        raise ValueError(f"invalid square: {square!r}")
    rank, file = square
    return chr(ord("a") + file) + str(rank + 1)


def square_index(square: Square) -> int:
    rank, file = square
    return rank * 8 + file
