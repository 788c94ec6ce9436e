from __future__ import annotations

from typing import List, Tuple

from .board import Board, Color, EnPassantTarget, Piece, PieceKind
from .move import Square, square_to_str, str_to_square


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Castling letter -> (color, rook column)
CASTLING_ROOKS = {
    "K": (Color.WHITE, 7),
    "Q": (Color.WHITE, 0),
    "k": (Color.BLACK, 7),
    "q": (Color.BLACK, 0),
}
KING_HOME_COL = 4


def parse_fen(fen: str) -> Tuple[Board, Color, int, int]:
    """Build a board from a Forsyth-Edwards Notation string.

    Args:
        fen (str): FEN string describing the position to load.

    Returns:
        Tuple[Board, Color, int, int]: Board, side to move, halfmove clock and
            fullmove number.

    Raises:
        ValueError: If ``fen`` is empty, has the wrong number of fields,
            contains invalid placement, castling rights, en passant square
            or move counters, or does not have exactly one king per side.

    Notes:
        FEN carries no per-piece history, so ``has_moved`` is derived: pawns
        off their starting rank have moved, kings and corner rooks are unmoved
        only while the matching castling right is present, and every other
        piece counts as unmoved.
    """
    if not fen or not isinstance(fen, str):
        raise ValueError("FEN must be a non-empty string")
    parts = fen.strip().split()
    if len(parts) != 6:
        raise ValueError("FEN must have 6 fields")
    placement, stm, castling, ep, halfmove, fullmove = parts

    ranks = placement.split("/")
    if len(ranks) != 8:
        raise ValueError("FEN board must have 8 ranks")
    board = Board()
    for row, rank in enumerate(ranks):  # FEN lists rank 8 first, which is row 0
        col = 0
        for ch in rank:
            if ch.isdigit():
                n = int(ch)
                if n < 1 or n > 8:
                    raise ValueError("invalid empty count in FEN rank")
                col += n
            else:
                if col >= 8:
                    raise ValueError("too many squares in FEN rank")
                board.set_piece(Square(row, col), Piece.from_symbol(ch))
                col += 1
            if col > 8:
                raise ValueError("too many squares in FEN rank")
        if col != 8:
            raise ValueError("rank does not sum to 8 squares in FEN")

    for color in (Color.WHITE, Color.BLACK):
        kings = [sq for sq, p in board.pieces(color) if p.kind is PieceKind.KING]
        if len(kings) != 1:
            raise ValueError(f"FEN must contain exactly one {color.name.lower()} king")

    if stm not in ("w", "b"):
        raise ValueError("side to move must be 'w' or 'b'")
    turn = Color(stm)

    if castling == "-":
        rights = ""
    else:
        if any(ch not in CASTLING_ROOKS for ch in castling):
            raise ValueError("invalid castling rights")
        rights = castling
    _derive_has_moved(board, rights)

    if ep != "-":
        try:
            ep_square = str_to_square(ep)
        except ValueError as e:
            raise ValueError("invalid en passant square") from e
        # The pawn that skipped the square belongs to the side not to move.
        owner = turn.opposite
        if ep_square.row != owner.pawn_row + owner.forward:
            raise ValueError("invalid en passant square rank")
        board.en_passant = EnPassantTarget(ep_square, owner)

    try:
        halfmove_clock = int(halfmove)
        fullmove_number = int(fullmove)
    except ValueError as e:
        raise ValueError("invalid move counters in FEN") from e
    if halfmove_clock < 0 or fullmove_number <= 0:
        raise ValueError("invalid move counters in FEN")

    return board, turn, halfmove_clock, fullmove_number


def _derive_has_moved(board: Board, rights: str) -> None:
    for sq in board.squares():
        piece = board.piece_at(sq)
        if piece.kind is PieceKind.PAWN:
            piece.has_moved = sq.row != piece.color.pawn_row
        elif piece.kind in (PieceKind.KING, PieceKind.ROOK):
            piece.has_moved = True
    for letter in rights:
        color, rook_col = CASTLING_ROOKS[letter]
        king = board.piece_at(Square(color.home_row, KING_HOME_COL))
        rook = board.piece_at(Square(color.home_row, rook_col))
        if king.kind is not PieceKind.KING or king.color is not color:
            continue
        if rook.kind is not PieceKind.ROOK or rook.color is not color:
            continue
        king.has_moved = False
        rook.has_moved = False


def castling_rights(board: Board) -> str:
    """Castling letters still available according to ``has_moved`` flags."""
    out = []
    for letter, (color, rook_col) in CASTLING_ROOKS.items():
        king = board.piece_at(Square(color.home_row, KING_HOME_COL))
        rook = board.piece_at(Square(color.home_row, rook_col))
        if (
            king.kind is PieceKind.KING
            and king.color is color
            and not king.has_moved
            and rook.kind is PieceKind.ROOK
            and rook.color is color
            and not rook.has_moved
        ):
            out.append(letter)
    return "".join(out)


def board_to_fen(
    board: Board, turn: Color, halfmove_clock: int = 0, fullmove_number: int = 1
) -> str:
    """Serialize a position into a normalized FEN string.

    Returns:
        str: FEN string; castling rights are derived from ``has_moved``.
    """
    ranks_str: List[str] = []
    for row in board.rows():
        run = 0
        out = []
        for ch in row:
            if ch is None:
                run += 1
            else:
                if run > 0:
                    out.append(str(run))
                    run = 0
                out.append(ch)
        if run > 0:
            out.append(str(run))
        ranks_str.append("".join(out))
    placement = "/".join(ranks_str)

    castling = castling_rights(board) or "-"
    ep = square_to_str(board.en_passant.square) if board.en_passant is not None else "-"
    return f"{placement} {turn.value} {castling} {ep} {halfmove_clock} {fullmove_number}"
