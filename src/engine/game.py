from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from .board import Board, Piece, last_rank
from .move import Color, Move, PieceKind, Square, square_to_str
from .movegen import all_legal_moves, legal_moves
from .status import GameStatus, game_status, is_checkmate, is_in_check, is_stalemate


class IllegalMoveError(ValueError):
    """Raised when a requested move is not legal in the current game state."""


@dataclass
class HistoryEntry:
    move: Move
    before: Board
    turn: Color
    captured: Optional[Piece]


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: track the side to move, validate and apply moves, keep
    undo snapshots and captured pieces. The board itself never validates.
    """

    board: Board
    turn: Color = Color.WHITE
    history: List[HistoryEntry] = field(default_factory=list)
    captures: Dict[Color, List[Piece]] = field(
        default_factory=lambda: {Color.WHITE: [], Color.BLACK: []}
    )
    pending_promotion: Optional[int] = None

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        board = Board.from_fen(fen)
        turn = Color.WHITE if fen.split()[1] == "w" else Color.BLACK
        return cls(board=board, turn=turn)

    def to_fen(self) -> str:
        return self.board.to_fen(self.turn)

    def legal_moves(self) -> List[Tuple[Piece, Square]]:
        if self.pending_promotion is not None:
            return []
        return all_legal_moves(self.turn, self.board)

    def legal_moves_uci(self) -> List[str]:
        return [square_to_str(p.square) + square_to_str(d) for p, d in self.legal_moves()]

    def apply_move(
        self,
        origin: Square,
        destination: Square,
        promotion: Optional[PieceKind] = None,
        *,
        await_promotion: bool = True,
    ) -> Move:
        """Validate and apply a move for the side to move.

        A pawn reaching its last rank is promoted to ``promotion`` when given.
        Otherwise, with ``await_promotion`` the turn is held until
        ``promote`` is called; without it the pawn simply stays a pawn.

        Raises:
            IllegalMoveError: If a promotion is pending, the origin holds no
                piece of the side to move, the destination is not legal, or
                ``promotion`` is given for a move that does not promote.
        """
        if self.pending_promotion is not None:
            raise IllegalMoveError("promotion pending")
        piece = self.board.piece_at(origin)
        if piece is None:
            raise IllegalMoveError(f"no piece on {square_to_str(origin)}")
        if piece.color is not self.turn:
            raise IllegalMoveError(f"it is {self.turn.value}'s turn")
        if destination not in legal_moves(piece, self.board):
            raise IllegalMoveError("illegal move")
        reaches_last_rank = piece.kind is PieceKind.PAWN and destination[0] == last_rank(piece.color)
        if promotion is not None and not reaches_last_rank:
            raise IllegalMoveError("move does not promote")

        before = self.board.clone()
        mover = piece.color
        captured = self.board.apply_move(piece, destination)
        if captured is not None:
            self.captures[mover].append(captured)

        move = Move(origin, destination, piece.kind)
        if reaches_last_rank and promotion is not None:
            self.board.promote(piece, promotion)
            move = replace(move, promotion=promotion)
        self.history.append(HistoryEntry(move, before, mover, captured))

        if reaches_last_rank and promotion is None and await_promotion:
            self.pending_promotion = piece.id
            return move
        self.turn = mover.opponent
        return move

    def promote(self, kind: PieceKind) -> Move:
        """Complete a held promotion with the mover's choice of piece.

        Raises:
            ValueError: If no promotion is pending or ``kind`` is not a
                promotion piece.
        """
        if self.pending_promotion is None:
            raise ValueError("no promotion pending")
        pawn = self.board.get(self.pending_promotion)
        if pawn is None:
            raise ValueError("no promotion pending")
        self.board.promote(pawn, kind)
        entry = self.history[-1]
        entry.move = replace(entry.move, promotion=kind)
        self.pending_promotion = None
        self.turn = entry.turn.opponent
        return entry.move

    def undo_move(self) -> Move:
        if not self.history:
            raise ValueError("no moves to undo")
        entry = self.history.pop()
        self.board = entry.before
        self.turn = entry.turn
        if entry.captured is not None:
            self.captures[entry.turn].pop()
        self.pending_promotion = None
        return entry.move

    def reset(self) -> None:
        self.board.reset()
        self.turn = Color.WHITE
        self.history.clear()
        self.captures = {Color.WHITE: [], Color.BLACK: []}
        self.pending_promotion = None

    # --- State flags for protocol ---
    @property
    def status_color(self) -> Color:
        """Side the status flags describe.

        Normally the side to move. While a promotion is pending the mover has
        already moved, so the flags describe the opponent who replies next,
        judged with the pawn still on the board.
        """
        if self.pending_promotion is not None:
            return self.turn.opponent
        return self.turn

    def in_check(self) -> bool:
        return is_in_check(self.status_color, self.board)

    def checkmate(self) -> bool:
        return is_checkmate(self.status_color, self.board)

    def stalemate(self) -> bool:
        return is_stalemate(self.status_color, self.board)

    def status(self) -> GameStatus:
        return game_status(self.status_color, self.board)

    def is_over(self) -> bool:
        if self.pending_promotion is not None:
            return False
        return self.status() in (GameStatus.CHECKMATE, GameStatus.STALEMATE)

    @property
    def last_move(self) -> Optional[Move]:
        return self.history[-1].move if self.history else None

    def move_history_uci(self) -> List[str]:
        return [entry.move.to_uci() for entry in self.history]
