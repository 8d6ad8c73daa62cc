from __future__ import annotations

from enum import Enum

from .board import Board
from .move import Color
from .movegen import has_legal_move, king_in_check


class GameStatus(str, Enum):
    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


def is_in_check(color: Color, board: Board) -> bool:
    """True iff ``color``'s king stands on a square the opponent attacks."""
    return king_in_check(board, color)


def is_checkmate(color: Color, board: Board) -> bool:
    return is_in_check(color, board) and not has_legal_move(color, board)


def is_stalemate(color: Color, board: Board) -> bool:
    return not is_in_check(color, board) and not has_legal_move(color, board)


def game_status(color: Color, board: Board) -> GameStatus:
    """Classify the position for the side about to move.

    Hosts poll this after every applied move; nothing here keeps state.
    """
    check = is_in_check(color, board)
    if has_legal_move(color, board):
        return GameStatus.CHECK if check else GameStatus.ACTIVE
    return GameStatus.CHECKMATE if check else GameStatus.STALEMATE
