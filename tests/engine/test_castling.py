from __future__ import annotations

from src.engine.board import Board
from src.engine.move import Color, str_to_square
from src.engine.movegen import all_legal_moves, can_castle_kingside, can_castle_queenside


def moves_set(b: Board, color: Color = Color.WHITE) -> set[str]:
    out = set()
    for p, d in all_legal_moves(color, b):
        out.add("abcdefgh"[p.square[1]] + str(p.square[0] + 1) + "abcdefgh"[d[1]] + str(d[0] + 1))
    return out


def test_white_castling_available_when_clear_and_not_in_check() -> None:
    fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
    b = Board.from_fen(fen)
    ms = moves_set(b)
    assert "e1g1" in ms
    assert "e1c1" in ms
    assert {"e8g8", "e8c8"}.issubset(moves_set(b, Color.BLACK))


def test_white_castling_blocked_when_in_check() -> None:
    # A black rook on e8 gives check on e1
    fen = "4r2k/8/8/8/8/8/8/R3K2R w KQ - 0 1"
    b = Board.from_fen(fen)
    ms = moves_set(b)
    assert "e1g1" not in ms
    assert "e1c1" not in ms


def test_castling_blocked_through_attacked_square() -> None:
    # f1 is covered by the f8 rook; the queenside path is clear
    fen = "5r1k/8/8/8/8/8/8/R3K2R w KQ - 0 1"
    b = Board.from_fen(fen)
    assert not can_castle_kingside(b, Color.WHITE)
    assert can_castle_queenside(b, Color.WHITE)


def test_castling_blocked_into_attacked_square() -> None:
    fen = "6rk/8/8/8/8/8/8/R3K2R w KQ - 0 1"
    b = Board.from_fen(fen)
    assert "e1g1" not in moves_set(b)


def test_queenside_allowed_when_only_b_file_attacked() -> None:
    # The king never crosses b1, so an attack there does not matter
    fen = "1r5k/8/8/8/8/8/8/R3K3 w Q - 0 1"
    b = Board.from_fen(fen)
    assert "e1c1" in moves_set(b)


def test_castling_blocked_by_piece_between() -> None:
    b = Board.startpos()
    assert not can_castle_kingside(b, Color.WHITE)
    assert not can_castle_queenside(b, Color.BLACK)
    assert "e1g1" not in moves_set(b)


def test_castling_requires_unmoved_rook_and_king() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w Qk - 0 1")
    assert not can_castle_kingside(b, Color.WHITE)
    assert can_castle_queenside(b, Color.WHITE)
    assert can_castle_kingside(b, Color.BLACK)
    assert not can_castle_queenside(b, Color.BLACK)

    # A king that steps away and back has lost the right
    b2 = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    king = b2.piece_at(str_to_square("e1"))
    b2.apply_move(king, str_to_square("f1"))
    b2.apply_move(b2.piece_at(str_to_square("f1")), str_to_square("e1"))
    assert not can_castle_kingside(b2, Color.WHITE)
    assert not can_castle_queenside(b2, Color.WHITE)


def test_castling_moves_rook_correctly() -> None:
    fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
    b = Board.from_fen(fen)
    piece, dest = next(
        (p, d) for p, d in all_legal_moves(Color.WHITE, b) if d == str_to_square("c1") and p.square == str_to_square("e1")
    )
    b.apply_move(piece, dest)
    assert b.piece_at(str_to_square("d1")).kind.value == "rook"
    assert b.piece_at(str_to_square("a1")) is None
    assert b.to_fen().split()[0] == "r3k2r/8/8/8/8/8/8/2KR3R"
