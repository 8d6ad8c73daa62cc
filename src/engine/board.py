from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional

from .move import (
    Color,
    PieceKind,
    Square,
    in_bounds,
    square_to_str,
    str_to_square,
)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

BACK_RANK = [
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
]

KIND_TO_CHAR = {
    PieceKind.PAWN: "p",
    PieceKind.KNIGHT: "n",
    PieceKind.BISHOP: "b",
    PieceKind.ROOK: "r",
    PieceKind.QUEEN: "q",
    PieceKind.KING: "k",
}
CHAR_TO_KIND = {v: k for k, v in KIND_TO_CHAR.items()}

KING_FILE = 4


def home_rank(color: Color) -> int:
    return 0 if color is Color.WHITE else 7


def pawn_start_rank(color: Color) -> int:
    return 1 if color is Color.WHITE else 6


def last_rank(color: Color) -> int:
    return 7 if color is Color.WHITE else 0


@dataclass
class Piece:
    """A piece owned by exactly one Board.

    ``id`` is stable for the piece's lifetime on the board and survives
    cloning. ``has_moved`` only matters for castling.
    """

    id: int
    kind: PieceKind
    color: Color
    square: Square
    has_moved: bool = False

    def symbol(self) -> str:
        ch = KIND_TO_CHAR[self.kind]
        return ch.upper() if self.color is Color.WHITE else ch


class Board:
    """Canonical position: an unordered collection of pieces.

    Notes:
    - At most one piece per square and at most one king per color.
    - ``apply_move`` performs no legality checks; callers draw destinations
      from the move generator.
    - Stale pieces and off-board squares are no-ops, never exceptions.
    """

    def __init__(self) -> None:
        self._pieces: Dict[int, Piece] = {}
        self._squares: Dict[Square, Piece] = {}
        self._next_id = 1

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board in the standard starting layout."""
        board = cls()
        board.reset()
        return board

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    # --- Queries ---
    def piece_at(self, square: Square) -> Optional[Piece]:
        return self._squares.get(square)

    def get(self, piece_id: int) -> Optional[Piece]:
        return self._pieces.get(piece_id)

    def pieces(self, color: Optional[Color] = None) -> List[Piece]:
        """Return pieces in board traversal order, optionally for one color."""
        if color is None:
            return list(self._pieces.values())
        return [p for p in self._pieces.values() if p.color is color]

    def king(self, color: Color) -> Optional[Piece]:
        for p in self._pieces.values():
            if p.kind is PieceKind.KING and p.color is color:
                return p
        return None

    def __iter__(self) -> Iterator[Piece]:
        return iter(list(self._pieces.values()))

    def __len__(self) -> int:
        return len(self._pieces)

    # --- Construction ---
    def put(self, kind: PieceKind, color: Color, square: Square, has_moved: bool = False) -> Piece:
        """Place a new piece on an empty square and return it.

        Raises:
            ValueError: If the square is off the board or occupied, or a
                second king of ``color`` would be added.
        """
        if not in_bounds(square):
            raise ValueError(f"square off the board: {square!r}")
        if square in self._squares:
            raise ValueError(f"square already occupied: {square_to_str(square)}")
        if kind is PieceKind.KING and self.king(color) is not None:
            raise ValueError(f"{color.value} already has a king")
        piece = Piece(self._next_id, kind, color, square, has_moved)
        self._next_id += 1
        self._pieces[piece.id] = piece
        self._squares[square] = piece
        return piece

    def reset(self) -> None:
        """Repopulate the standard 32-piece starting layout."""
        self._pieces.clear()
        self._squares.clear()
        self._next_id = 1
        for file in range(8):
            self.put(PieceKind.PAWN, Color.WHITE, (pawn_start_rank(Color.WHITE), file))
            self.put(PieceKind.PAWN, Color.BLACK, (pawn_start_rank(Color.BLACK), file))
        for file, kind in enumerate(BACK_RANK):
            self.put(kind, Color.WHITE, (home_rank(Color.WHITE), file))
            self.put(kind, Color.BLACK, (home_rank(Color.BLACK), file))

    def clone(self) -> "Board":
        """Return an independent deep copy; piece ids are preserved."""
        other = Board()
        for p in self._pieces.values():
            q = replace(p)
            other._pieces[q.id] = q
            other._squares[q.square] = q
        other._next_id = self._next_id
        return other

    # --- Mutation ---
    def apply_move(self, piece: Piece, destination: Square) -> Optional[Piece]:
        """Move ``piece`` to ``destination`` and return the captured piece.

        ``piece`` is matched by id, so a piece taken from another board with
        the same lineage (e.g. the original of a clone) is accepted. A king
        moving two files also brings the corner rook across.
        """
        current = self._pieces.get(piece.id)
        if current is None or not in_bounds(destination):
            return None
        occupant = self._squares.get(destination)
        if occupant is not None and occupant.color is current.color:
            return None

        origin = current.square
        if current.kind is PieceKind.KING and abs(destination[1] - origin[1]) == 2:
            rank = origin[0]
            if destination[1] > origin[1]:
                rook_from, rook_to = (rank, 7), (rank, 5)
            else:
                rook_from, rook_to = (rank, 0), (rank, 3)
            rook = self._squares.get(rook_from)
            if rook is not None and rook.kind is PieceKind.ROOK and rook.color is current.color:
                self._relocate(rook, rook_to)

        if occupant is not None:
            del self._pieces[occupant.id]
            del self._squares[destination]
        self._relocate(current, destination)
        return occupant

    def promote(self, piece: Piece, kind: PieceKind) -> Piece:
        """Replace a pawn standing on its last rank with a piece of ``kind``.

        Returns:
            Piece: The new piece, carrying a fresh id.

        Raises:
            ValueError: If ``piece`` is not a pawn of this board on its last
                rank, or ``kind`` is not a promotion piece.
        """
        current = self._pieces.get(piece.id)
        if current is None or current.kind is not PieceKind.PAWN:
            raise ValueError("only a pawn on the board can be promoted")
        if current.square[0] != last_rank(current.color):
            raise ValueError("pawn has not reached the last rank")
        if kind in (PieceKind.PAWN, PieceKind.KING):
            raise ValueError(f"cannot promote to {kind.value}")
        del self._pieces[current.id]
        del self._squares[current.square]
        return self.put(kind, current.color, current.square, has_moved=True)

    def _relocate(self, piece: Piece, destination: Square) -> None:
        del self._squares[piece.square]
        piece.square = destination
        piece.has_moved = True
        self._squares[destination] = piece

    # --- FEN I/O ---
    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board holding the placement encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields, or
                contains invalid piece placement, side to move, castling
                rights, en passant square, or move counters.

        Notes:
            Castling rights are folded into ``has_moved``: a king or rook on
            its home square counts as unmoved only while a matching right is
            present. The en passant field is validated and then dropped.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")
        if castling != "-" and any(ch not in "KQkq" for ch in castling):
            raise ValueError("invalid castling rights")
        rights = "" if castling == "-" else castling
        if ep != "-":
            try:
                ep_square = str_to_square(ep)
            except ValueError as e:
                raise ValueError("invalid en passant square") from e
            if ep_square[0] not in (2, 5):
                raise ValueError("invalid en passant square rank")
        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        board = cls()
        for rank_idx, row in enumerate(reversed(ranks)):
            file_idx = 0
            for ch in row:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                    continue
                if ch.lower() not in CHAR_TO_KIND:
                    raise ValueError(f"invalid piece in FEN: {ch!r}")
                if file_idx >= 8:
                    raise ValueError("too many squares in FEN rank")
                color = Color.WHITE if ch.isupper() else Color.BLACK
                kind = CHAR_TO_KIND[ch.lower()]
                square = (rank_idx, file_idx)
                board.put(kind, color, square, has_moved=_moved_from_rights(kind, color, square, rights))
                file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")
        return board

    def to_fen(self, side_to_move: Color = Color.WHITE) -> str:
        """Serialize the placement, side to move, and castling rights.

        En passant is always ``-`` and the move counters are ``0 1``.
        """
        rows: List[str] = []
        for rank in range(7, -1, -1):
            run = 0
            row: List[str] = []
            for file in range(8):
                p = self._squares.get((rank, file))
                if p is None:
                    run += 1
                    continue
                if run:
                    row.append(str(run))
                    run = 0
                row.append(p.symbol())
            if run:
                row.append(str(run))
            rows.append("".join(row))
        stm = "w" if side_to_move is Color.WHITE else "b"
        return f"{'/'.join(rows)} {stm} {self.castling_rights() or '-'} - 0 1"

    def castling_rights(self) -> str:
        """Rights implied by unmoved kings and rooks, in ``KQkq`` order."""
        out = ""
        for color, kingside, queenside in ((Color.WHITE, "K", "Q"), (Color.BLACK, "k", "q")):
            rank = home_rank(color)
            king = self._squares.get((rank, KING_FILE))
            if king is None or king.kind is not PieceKind.KING or king.color is not color or king.has_moved:
                continue
            for file, ch in ((7, kingside), (0, queenside)):
                rook = self._squares.get((rank, file))
                if (
                    rook is not None
                    and rook.kind is PieceKind.ROOK
                    and rook.color is color
                    and not rook.has_moved
                ):
                    out += ch
        return out


def _moved_from_rights(kind: PieceKind, color: Color, square: Square, rights: str) -> bool:
    rank, file = square
    if kind is PieceKind.PAWN:
        return rank != pawn_start_rank(color)
    if rank != home_rank(color):
        return kind in (PieceKind.KING, PieceKind.ROOK)
    kingside = "K" if color is Color.WHITE else "k"
    queenside = "Q" if color is Color.WHITE else "q"
    if kind is PieceKind.KING:
        return file != KING_FILE or not (kingside in rights or queenside in rights)
    if kind is PieceKind.ROOK:
        if file == 7:
            return kingside not in rights
        if file == 0:
            return queenside not in rights
        return True
    return False


def apply_move(board: Board, piece: Piece, destination: Square) -> Optional[Piece]:
    return board.apply_move(piece, destination)


def clone_board(board: Board) -> Board:
    return board.clone()


def reset_board(board: Board) -> None:
    board.reset()
