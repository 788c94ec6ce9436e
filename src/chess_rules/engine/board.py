from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from .move import Square


class Color(Enum):
    WHITE = "w"
    BLACK = "b"
    NONE = "-"

    @property
    def opposite(self) -> "Color":
        if self is Color.WHITE:
            return Color.BLACK
        if self is Color.BLACK:
            return Color.WHITE
        return Color.NONE

    @property
    def forward(self) -> int:
        """Row delta of a pawn advance: white moves up the board (toward row 0)."""
        return -1 if self is Color.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self is Color.WHITE else 0

    @property
    def pawn_row(self) -> int:
        return 6 if self is Color.WHITE else 1

    @property
    def promotion_row(self) -> int:
        return 0 if self is Color.WHITE else 7


class PieceKind(Enum):
    NONE = "none"
    PAWN = "p"
    ROOK = "r"
    KNIGHT = "n"
    BISHOP = "b"
    QUEEN = "q"
    KING = "k"


BACK_RANK = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)
CHAR_TO_KIND = {k.value: k for k in PieceKind if k is not PieceKind.NONE}


@dataclass
class Piece:
    """Occupant of one square; ``kind == NONE`` marks an empty square.

    ``has_moved`` belongs to the piece, not the square, so it follows the
    piece wherever it is placed.
    """

    kind: PieceKind
    color: Color
    has_moved: bool = False

    @classmethod
    def empty(cls) -> "Piece":
        return cls(PieceKind.NONE, Color.NONE)

    @property
    def is_empty(self) -> bool:
        return self.kind is PieceKind.NONE

    def symbol(self) -> Optional[str]:
        """FEN letter, uppercase for white; ``None`` when empty."""
        if self.is_empty:
            return None
        ch = self.kind.value
        return ch.upper() if self.color is Color.WHITE else ch

    @classmethod
    def from_symbol(cls, ch: str, has_moved: bool = False) -> "Piece":
        kind = CHAR_TO_KIND.get(ch.lower())
        if kind is None:
            raise ValueError(f"invalid piece symbol: {ch!r}")
        color = Color.WHITE if ch.isupper() else Color.BLACK
        return cls(kind, color, has_moved)


@dataclass(frozen=True)
class EnPassantTarget:
    """Square a pawn just skipped over, and that pawn's color."""

    square: Square
    color: Color


def _empty_grid() -> List[List[Piece]]:
    return [[Piece.empty() for _ in range(8)] for _ in range(8)]


@dataclass
class Board:
    """8x8 grid of pieces plus the transient en-passant target.

    Notes:
    - Every square always holds a ``Piece``; empty squares hold a ``NONE`` piece.
    - ``grid[row][col]`` with row 0 on rank 8 and col 0 on file a.
    - Only ``rules.apply_move``, ``reset`` and position loading mutate a board
      outside of the scoped simulation in ``rules.simulated_move``.
    """

    grid: List[List[Piece]] = field(default_factory=_empty_grid)
    en_passant: Optional[EnPassantTarget] = None

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position."""
        board = cls()
        board.reset()
        return board

    def reset(self) -> None:
        """Restore the standard starting position and clear en passant."""
        self.grid = _empty_grid()
        for color in (Color.WHITE, Color.BLACK):
            for col, kind in enumerate(BACK_RANK):
                self.grid[color.home_row][col] = Piece(kind, color)
                self.grid[color.pawn_row][col] = Piece(PieceKind.PAWN, color)
        self.en_passant = None

    def piece_at(self, sq: Square) -> Piece:
        return self.grid[sq[0]][sq[1]]

    def set_piece(self, sq: Square, piece: Piece) -> None:
        self.grid[sq[0]][sq[1]] = piece

    def clear(self, sq: Square) -> None:
        self.grid[sq[0]][sq[1]] = Piece.empty()

    def is_empty(self, sq: Square) -> bool:
        return self.piece_at(sq).is_empty

    def squares(self) -> Iterator[Square]:
        for row in range(8):
            for col in range(8):
                yield Square(row, col)

    def pieces(self, color: Color) -> Iterator[Tuple[Square, Piece]]:
        """Yield ``(square, piece)`` for every piece of ``color``."""
        for sq in self.squares():
            piece = self.piece_at(sq)
            if piece.color is color:
                yield sq, piece

    def find_king(self, color: Color) -> Square:
        """Return the square of the unique king of ``color``."""
        found = [sq for sq, p in self.pieces(color) if p.kind is PieceKind.KING]
        assert len(found) == 1, f"expected one {color.name} king, found {len(found)}"
        return found[0]

    def copy(self) -> "Board":
        return Board(grid=copy.deepcopy(self.grid), en_passant=self.en_passant)

    def rows(self) -> List[List[Optional[str]]]:
        """Piece letters per square, row 0 first; ``None`` for empty squares."""
        return [[p.symbol() for p in row] for row in self.grid]
