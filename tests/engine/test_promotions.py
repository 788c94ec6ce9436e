from __future__ import annotations

import pytest

from chess_rules.engine.board import Color, PieceKind
from chess_rules.engine.fen import parse_fen
from chess_rules.engine.game import Game
from chess_rules.engine.move import Move, parse_uci, str_to_square as sq
from chess_rules.engine.rules import apply_move


@pytest.mark.parametrize(
    ("fen", "move", "color"),
    [
        # White push
        ("k7/4P3/8/8/8/8/8/4K3 w - - 0 1", "e7e8", Color.WHITE),
        # White capture onto the last rank
        ("3rk3/4P3/8/8/8/8/8/4K3 w - - 0 1", "e7d8", Color.WHITE),
        # Black push
        ("4k3/8/8/8/8/8/3p4/K7 b - - 0 1", "d2d1", Color.BLACK),
        # Black capture
        ("4k3/8/8/8/8/8/3p4/K1N5 b - - 0 1", "d2c1", Color.BLACK),
    ],
)
def test_pawn_reaching_last_rank_becomes_queen(fen: str, move: str, color: Color) -> None:
    b = parse_fen(fen)[0]
    assert apply_move(b, sq(move[:2]), sq(move[2:]))
    piece = b.piece_at(sq(move[2:]))
    assert piece.kind is PieceKind.QUEEN
    assert piece.color is color
    assert piece.has_moved
    assert b.is_empty(sq(move[:2]))


def test_pawn_short_of_last_rank_stays_a_pawn() -> None:
    b = parse_fen("4k3/8/4P3/8/8/8/8/4K3 w - - 0 1")[0]
    assert apply_move(b, sq("e6"), sq("e7"))
    assert b.piece_at(sq("e7")).kind is PieceKind.PAWN


def test_queen_suffix_is_accepted_only_on_promotion_ranks() -> None:
    assert parse_uci("e7e8q") == Move(sq("e7"), sq("e8"))
    assert parse_uci("d2d1Q") == Move(sq("d2"), sq("d1"))
    with pytest.raises(ValueError):
        parse_uci("e2e4q")

    g = Game.from_fen("k7/4P3/8/8/8/8/8/4K3 w - - 0 1")
    assert g.apply_uci("e7e8q")
    assert g.board.piece_at(sq("e8")).kind is PieceKind.QUEEN
