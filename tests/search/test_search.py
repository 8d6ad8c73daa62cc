from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from src.engine.board import Board, Piece
from src.engine.move import Color, PieceKind, Square, str_to_square
from src.engine.movegen import all_legal_moves
from src.search.service import (
    MAX_SCORE,
    MIN_SCORE,
    SearchService,
    choose_move,
    evaluate,
    order_moves,
)


HANGING_QUEEN_FEN = "4k3/8/8/3q4/8/8/8/3RK3 w - - 0 1"
SMALL_FEN = "4k3/8/8/3n4/8/8/8/3RK3 w - - 0 1"


def _uci(piece: Piece, dest: Square) -> str:
    return "abcdefgh"[piece.square[1]] + str(piece.square[0] + 1) + "abcdefgh"[dest[1]] + str(dest[0] + 1)


def _reference(board: Board, color: Color, depth: int) -> Tuple[Optional[str], Optional[int]]:
    """Plain minimax, no pruning and no cache, same ordering and tie-break."""

    def mm(node: Board, left: int, maximizing: bool) -> int:
        if left == 0:
            return evaluate(node, color)
        best = MIN_SCORE if maximizing else MAX_SCORE
        for piece, dest in all_legal_moves(color if maximizing else color.opponent, node):
            child = node.clone()
            child.apply_move(piece, dest)
            score = mm(child, left - 1, not maximizing)
            best = max(best, score) if maximizing else min(best, score)
        return best

    best_move: Optional[str] = None
    best_score: Optional[int] = None
    for piece, dest in order_moves(board, all_legal_moves(color, board)):
        child = board.clone()
        child.apply_move(piece, dest)
        score = mm(child, depth - 1, False)
        if best_score is None or score > best_score:
            best_move, best_score = _uci(piece, dest), score
    return best_move, best_score


def test_evaluate_is_material_balance() -> None:
    assert evaluate(Board.startpos(), Color.WHITE) == 0
    b = Board.from_fen(HANGING_QUEEN_FEN)
    assert evaluate(b, Color.WHITE) == 500 - 900
    assert evaluate(b, Color.BLACK) == 900 - 500


def test_startpos_returns_legal_move_from_input_board() -> None:
    b = Board.startpos()
    res = SearchService().search(b, Color.WHITE, 2)
    assert res.best_move is not None
    piece, dest = res.best_move
    assert b.get(piece.id) is piece
    assert dest in [d for p, d in all_legal_moves(Color.WHITE, b) if p.id == piece.id]
    assert res.score == 0
    assert res.nodes > 0
    assert res.depth == 2


def test_search_does_not_mutate_board() -> None:
    b = Board.startpos()
    before = b.to_fen()
    SearchService().search(b, Color.WHITE, 2)
    assert b.to_fen() == before
    assert not any(p.has_moved for p in b)


def test_captures_hanging_queen() -> None:
    b = Board.from_fen(HANGING_QUEEN_FEN)
    for depth in (1, 2):
        res = SearchService().search(b, Color.WHITE, depth)
        assert res.best_move is not None
        piece, dest = res.best_move
        assert _uci(piece, dest) == "d1d5"
        assert res.score == 500


def test_search_is_deterministic() -> None:
    b = Board.from_fen("r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3")
    a = SearchService().search(b, Color.WHITE, 2)
    c = SearchService().search(b, Color.WHITE, 2)
    assert a.best_move is not None and c.best_move is not None
    assert (a.best_move[0].id, a.best_move[1], a.score) == (c.best_move[0].id, c.best_move[1], c.score)
    assert a.nodes == c.nodes


@pytest.mark.parametrize(
    "fen,color,depth",
    [
        (SMALL_FEN, Color.WHITE, 3),
        (SMALL_FEN, Color.BLACK, 3),
        (HANGING_QUEEN_FEN, Color.BLACK, 2),
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", Color.WHITE, 2),
    ],
)
def test_alpha_beta_matches_exhaustive_minimax(fen: str, color: Color, depth: int) -> None:
    b = Board.from_fen(fen)
    res = SearchService().search(b, color, depth)
    ref_move, ref_score = _reference(b, color, depth)
    assert res.best_move is not None
    assert (_uci(*res.best_move), res.score) == (ref_move, ref_score)

    plain = SearchService().search(b, color, depth, enable_pruning=False, use_cache=False)
    assert plain.best_move is not None
    assert (_uci(*plain.best_move), plain.score) == (ref_move, ref_score)
    assert res.nodes <= plain.nodes


def test_captures_are_searched_before_quiet_moves() -> None:
    b = Board.from_fen(HANGING_QUEEN_FEN)
    seen: List[str] = []
    SearchService().search(b, Color.WHITE, 1, on_evaluate=lambda p, d: seen.append(_uci(p, d)))
    assert seen[0] == "d1d5"
    # d1d2 is generated before d1d5 but searched after it
    assert seen.index("d1d2") > 0
    assert sorted(seen) == sorted(_uci(p, d) for p, d in all_legal_moves(Color.WHITE, b))


def test_order_moves_is_stable_for_equal_values() -> None:
    b = Board.startpos()
    moves = all_legal_moves(Color.WHITE, b)
    assert order_moves(b, moves) == moves


def test_order_moves_prefers_bigger_captures() -> None:
    b = Board.from_fen("4k3/8/8/1r1q4/8/8/8/1R1RK3 w - - 0 1")
    ordered = [_uci(p, d) for p, d in order_moves(b, all_legal_moves(Color.WHITE, b))]
    assert ordered[:2] == ["d1d5", "b1b5"]


def test_no_legal_moves_returns_no_move() -> None:
    mated = Board.from_fen("7k/6Q1/6K1/8/8/8/8/8 b - - 0 1")
    res = SearchService().search(mated, Color.BLACK, 2)
    assert res.best_move is None
    assert res.score is None

    stalemated = Board.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert choose_move(stalemated, Color.BLACK, 1) is None


def test_depth_below_one_raises() -> None:
    with pytest.raises(ValueError):
        SearchService().search(Board.startpos(), Color.WHITE, 0)


def test_choose_move_matches_service() -> None:
    b = Board.from_fen(HANGING_QUEEN_FEN)
    piece, dest = choose_move(b, Color.WHITE, 2)
    assert piece.kind is PieceKind.ROOK
    assert dest == str_to_square("d5")


def test_prefers_mate_in_one_over_material() -> None:
    # Ra8 mates; Rxb1 only wins a knight
    b = Board.from_fen("7k/8/6K1/8/8/8/8/Rn6 w - - 0 1")
    res = SearchService().search(b, Color.WHITE, 2)
    assert res.best_move is not None
    assert _uci(*res.best_move) == "a1a8"
    assert res.score == MAX_SCORE


def test_stalemating_the_opponent_counts_as_a_win() -> None:
    # Kc7 leaves black without a move; nothing here mates
    b = Board.from_fen("k7/8/1PK5/8/8/8/8/8 w - - 0 1")
    res = SearchService().search(b, Color.WHITE, 2)
    assert res.best_move is not None
    assert _uci(*res.best_move) == "c6c7"
    assert res.score == MAX_SCORE


def test_avoids_being_left_without_moves() -> None:
    # Every black move but Na3 allows Ra8 mate
    b = Board.from_fen("7k/8/6K1/8/8/8/8/Rn6 b - - 0 1")
    res = SearchService().search(b, Color.BLACK, 3)
    assert res.best_move is not None
    assert _uci(*res.best_move) == "b1a3"
    assert res.score is not None and res.score > MIN_SCORE

    stuck = SearchService().search(Board.from_fen("7k/8/6K1/8/8/8/8/R7 b - - 0 1"), Color.BLACK, 3)
    assert stuck.score == MIN_SCORE
