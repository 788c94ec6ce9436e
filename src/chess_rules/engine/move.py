from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


FILES = "abcdefgh"
# Promotion always yields a queen; "q" is the only accepted suffix.
PROMOTION_SUFFIX = "q"


class Square(NamedTuple):
    """Board coordinate.

    Row 0 is rank 8 (black's back rank) and row 7 is rank 1; col 0 is file a.
    """

    row: int
    col: int

    def on_board(self) -> bool:
        return 0 <= self.row < 8 and 0 <= self.col < 8

    def offset(self, d_row: int, d_col: int) -> "Square":
        return Square(self.row + d_row, self.col + d_col)


@dataclass(frozen=True)
class Move:
    """A source/destination pair.

    Attributes:
        source (Square): Square the moving piece starts on.
        destination (Square): Square the moving piece ends on.
    """

    source: Square
    destination: Square

    def to_uci(self) -> str:
        """Serialize the move into long algebraic form.

        Returns:
            str: Move encoded like ``"e2e4"``.
        """
        return square_to_str(self.source) + square_to_str(self.destination)


def parse_uci(uci: str) -> Move:
    """Parse a long algebraic move string.

    Args:
        uci (str): Move such as ``"e2e4"`` or ``"e7e8q"``.

    Returns:
        Move: Parsed move.

    Raises:
        ValueError: If the string has an invalid length or squares, a
            promotion suffix other than ``q``, or a suffix on a move that does
            not end on the first or last rank.
    """
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    source = str_to_square(uci[0:2])
    destination = str_to_square(uci[2:4])
    if len(uci) == 5 and uci[4].lower() != PROMOTION_SUFFIX:
        raise ValueError(f"unsupported promotion piece: {uci[4]!r}")
    if len(uci) == 5 and destination.row not in (0, 7):
        raise ValueError(f"promotion suffix on a non-promoting move: {uci!r}")
    return Move(source, destination)


def str_to_square(s: str) -> Square:
    """Convert algebraic notation into a ``Square``.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        Square: ``(row, col)`` with row 0 on rank 8.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    col = ord(s[0]) - ord("a")
    row = 8 - int(s[1])
    return Square(row, col)


def square_to_str(sq: Square) -> str:
    """Convert a ``Square`` into algebraic notation.

    Raises:
        ValueError: If ``sq`` lies outside the board.
    """
    if not Square(*sq).on_board():
        raise ValueError(f"invalid square: {tuple(sq)!r}")
    return FILES[sq[1]] + str(8 - sq[0])
