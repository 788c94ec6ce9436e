from __future__ import annotations

from chess_rules.engine.board import Board, Color, EnPassantTarget, Piece, PieceKind
from chess_rules.engine.move import Square, str_to_square


def test_startpos_layout() -> None:
    b = Board.startpos()
    back = ["r", "n", "b", "q", "k", "b", "n", "r"]
    rows = b.rows()
    assert rows[0] == back
    assert rows[1] == ["p"] * 8
    assert rows[6] == ["P"] * 8
    assert rows[7] == [ch.upper() for ch in back]
    for row in rows[2:6]:
        assert row == [None] * 8
    assert b.en_passant is None


def test_startpos_pieces_are_unmoved_and_empty_squares_hold_sentinel() -> None:
    b = Board.startpos()
    for sq in b.squares():
        piece = b.piece_at(sq)
        assert isinstance(piece, Piece)
        assert piece.has_moved is False
        if sq.row in (2, 3, 4, 5):
            assert piece.is_empty
            assert piece.color is Color.NONE


def test_coordinate_convention() -> None:
    # Row 0 is rank 8, col 0 is file a
    b = Board.startpos()
    assert str_to_square("e1") == Square(7, 4)
    assert str_to_square("a8") == Square(0, 0)
    assert b.piece_at(str_to_square("e1")) == Piece(PieceKind.KING, Color.WHITE)
    assert b.piece_at(str_to_square("d8")) == Piece(PieceKind.QUEEN, Color.BLACK)


def test_reset_restores_start_and_clears_en_passant() -> None:
    b = Board.startpos()
    b.clear(str_to_square("e2"))
    b.set_piece(str_to_square("e4"), Piece(PieceKind.PAWN, Color.WHITE, has_moved=True))
    b.en_passant = EnPassantTarget(str_to_square("e3"), Color.WHITE)

    b.reset()

    assert b == Board.startpos()
    assert b.en_passant is None


def test_find_king() -> None:
    b = Board.startpos()
    assert b.find_king(Color.WHITE) == str_to_square("e1")
    assert b.find_king(Color.BLACK) == str_to_square("e8")


def test_copy_is_independent() -> None:
    b = Board.startpos()
    c = b.copy()
    c.piece_at(str_to_square("e2")).has_moved = True
    c.clear(str_to_square("d2"))
    assert b.piece_at(str_to_square("e2")).has_moved is False
    assert not b.is_empty(str_to_square("d2"))
