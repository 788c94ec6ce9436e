from __future__ import annotations

import logging
import operator
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from .board import Board, Color, EnPassantTarget, Piece, PieceKind
from .move import Move, Square, square_to_str


logger = logging.getLogger(__name__)

KNIGHT_JUMPS = {(1, 2), (2, 1)}

Geometry = Callable[[Board, Square, Square, Piece], bool]


def _sign(n: int) -> int:
    return (n > 0) - (n < 0)


def as_square(value: Sequence[int]) -> Optional[Square]:
    """Coerce caller input to a ``Square``; ``None`` unless it is an on-board pair of ints."""
    try:
        row, col = value
        sq = Square(operator.index(row), operator.index(col))
    except (TypeError, ValueError):
        return None
    return sq if sq.on_board() else None


# --- Pseudo-legal move checker ---
def is_path_clear(board: Board, source: Square, destination: Square) -> bool:
    """Return True if every square strictly between the endpoints is empty.

    The endpoints must share a row, a column, or a diagonal.
    """
    d_row = _sign(destination.row - source.row)
    d_col = _sign(destination.col - source.col)
    sq = source.offset(d_row, d_col)
    while sq != destination:
        if not board.is_empty(sq):
            return False
        sq = sq.offset(d_row, d_col)
    return True


def is_en_passant_capture(board: Board, source: Square, destination: Square) -> bool:
    """Return True if moving ``source`` to ``destination`` captures en passant.

    Besides the target square and the owner of the target, the pawn to be
    captured must actually stand beside the mover, which guards against a
    stale target.
    """
    piece = board.piece_at(source)
    ep = board.en_passant
    if piece.kind is not PieceKind.PAWN or ep is None:
        return False
    if ep.square != destination or ep.color is piece.color:
        return False
    if destination.row - source.row != piece.color.forward:
        return False
    if abs(destination.col - source.col) != 1:
        return False
    victim = board.piece_at(Square(source.row, destination.col))
    return victim.kind is PieceKind.PAWN and victim.color is piece.color.opposite


def _pawn_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    forward = piece.color.forward
    d_row = destination.row - source.row
    d_col = destination.col - source.col
    if d_col == 0:
        if d_row == forward:
            return board.is_empty(destination)
        if d_row == 2 * forward and not piece.has_moved:
            return board.is_empty(source.offset(forward, 0)) and board.is_empty(destination)
        return False
    if abs(d_col) == 1 and d_row == forward:
        if not board.is_empty(destination):
            return True
        return is_en_passant_capture(board, source, destination)
    return False


def _rook_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    # Both axes require a clear path.
    if source.row != destination.row and source.col != destination.col:
        return False
    return is_path_clear(board, source, destination)


def _knight_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    d = (abs(destination.row - source.row), abs(destination.col - source.col))
    return d in KNIGHT_JUMPS


def _bishop_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    if abs(destination.row - source.row) != abs(destination.col - source.col):
        return False
    return is_path_clear(board, source, destination)


def _queen_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    return _rook_geometry(board, source, destination, piece) or _bishop_geometry(
        board, source, destination, piece
    )


def _king_step(source: Square, destination: Square) -> bool:
    return max(abs(destination.row - source.row), abs(destination.col - source.col)) == 1


def _can_castle(board: Board, source: Square, destination: Square, king: Piece) -> bool:
    """Castling preconditions, except safety of the destination square.

    Destination safety is left to ``is_legal``'s simulation, which applies to
    every move alike.
    """
    if destination.row != source.row or abs(destination.col - source.col) != 2:
        return False
    if king.has_moved:
        return False
    step = _sign(destination.col - source.col)
    rook_sq = Square(source.row, 7 if step > 0 else 0)
    rook = board.piece_at(rook_sq)
    if rook.kind is not PieceKind.ROOK or rook.color is not king.color or rook.has_moved:
        return False
    if not is_path_clear(board, source, rook_sq):
        return False
    if is_in_check(board, king.color):
        return False
    with simulated_move(board, source, source.offset(0, step)):
        return not is_in_check(board, king.color)


def _king_geometry(board: Board, source: Square, destination: Square, piece: Piece) -> bool:
    if _king_step(source, destination):
        return True
    return _can_castle(board, source, destination, piece)


_GEOMETRY: Dict[PieceKind, Geometry] = {
    PieceKind.PAWN: _pawn_geometry,
    PieceKind.ROOK: _rook_geometry,
    PieceKind.KNIGHT: _knight_geometry,
    PieceKind.BISHOP: _bishop_geometry,
    PieceKind.QUEEN: _queen_geometry,
    PieceKind.KING: _king_geometry,
}


def is_pseudo_legal(board: Board, source: Sequence[int], destination: Sequence[int]) -> bool:
    """Return True if the move fits the piece's geometry and occupancy rules.

    Ignores whether the move leaves the mover's own king in check.
    Off-board coordinates are rejected rather than indexed.
    """
    src = as_square(source)
    dst = as_square(destination)
    if src is None or dst is None or src == dst:
        return False
    piece = board.piece_at(src)
    if piece.is_empty:
        return False
    if board.piece_at(dst).color is piece.color:
        return False
    return _GEOMETRY[piece.kind](board, src, dst, piece)


# --- Check oracle ---
def attacks_square(board: Board, source: Square, target: Square) -> bool:
    """Return True if the piece on ``source`` attacks ``target``.

    Pawns attack diagonally forward whether or not ``target`` is occupied, and
    kings attack only their neighbours; every other kind attacks exactly where
    it may move.
    """
    piece = board.piece_at(source)
    if piece.is_empty or source == target:
        return False
    if piece.kind is PieceKind.PAWN:
        return (
            target.row - source.row == piece.color.forward
            and abs(target.col - source.col) == 1
        )
    if piece.kind is PieceKind.KING:
        return _king_step(source, target)
    return is_pseudo_legal(board, source, target)


def is_square_attacked(board: Board, target: Square, by_color: Color) -> bool:
    return any(attacks_square(board, sq, target) for sq, _ in list(board.pieces(by_color)))


def is_in_check(board: Board, color: Color) -> bool:
    """Return True if the king of ``color`` stands on an attacked square."""
    king_sq = board.find_king(color)
    return is_square_attacked(board, king_sq, color.opposite)


# --- Legal move evaluator ---
@contextmanager
def simulated_move(board: Board, source: Square, destination: Square) -> Iterator[None]:
    """Temporarily play ``source`` -> ``destination`` on ``board``.

    Snapshots the moving piece, the destination occupant and, for en passant,
    the captured pawn; all three are put back on exit, however the block ends.
    Only piece placement changes; flags and the en-passant target are untouched.
    """
    moving = board.piece_at(source)
    captured = board.piece_at(destination)
    ep_square: Optional[Square] = None
    ep_victim: Optional[Piece] = None
    if is_en_passant_capture(board, source, destination):
        ep_square = Square(source.row, destination.col)
        ep_victim = board.piece_at(ep_square)
    try:
        if ep_square is not None:
            board.clear(ep_square)
        board.set_piece(destination, moving)
        board.clear(source)
        yield
    finally:
        board.set_piece(source, moving)
        board.set_piece(destination, captured)
        if ep_square is not None and ep_victim is not None:
            board.set_piece(ep_square, ep_victim)


def is_legal(board: Board, source: Sequence[int], destination: Sequence[int]) -> bool:
    """Return True if the move is pseudo-legal and keeps the mover's king safe.

    Leaves the board unchanged.
    """
    src, dst = as_square(source), as_square(destination)
    if src is None or dst is None or not is_pseudo_legal(board, src, dst):
        return False
    color = board.piece_at(src).color
    with simulated_move(board, src, dst):
        return not is_in_check(board, color)


def legal_destinations(board: Board, source: Sequence[int]) -> List[Square]:
    src = as_square(source)
    if src is None or board.is_empty(src):
        return []
    return [dst for dst in board.squares() if is_legal(board, src, dst)]


def generate_legal_moves(board: Board, color: Color) -> List[Move]:
    """Return every legal move for ``color`` in row-major source order."""
    moves: List[Move] = []
    for src, _ in list(board.pieces(color)):
        moves.extend(Move(src, dst) for dst in legal_destinations(board, src))
    return moves


def has_any_legal_move(board: Board, color: Color) -> bool:
    """Return True as soon as one legal move for ``color`` is found."""
    for src, _ in list(board.pieces(color)):
        for dst in board.squares():
            if is_legal(board, src, dst):
                return True
    return False


def is_checkmate(board: Board, color: Color) -> bool:
    return is_in_check(board, color) and not has_any_legal_move(board, color)


def is_stalemate(board: Board, color: Color) -> bool:
    return not is_in_check(board, color) and not has_any_legal_move(board, color)


# --- Move application ---
def apply_move(board: Board, source: Sequence[int], destination: Sequence[int]) -> bool:
    """Play a move on ``board`` in-place if it is legal.

    Returns:
        bool: ``False`` (board untouched) for an illegal move, else ``True``.

    Notes:
        Handles en-passant removal, en-passant target bookkeeping, queen
        promotion and the castling rook. Turn order is the caller's concern.
    """
    src, dst = as_square(source), as_square(destination)
    if src is None or dst is None or not is_legal(board, src, dst):
        logger.debug("illegal move rejected: %s -> %s", source, destination)
        return False
    piece = board.piece_at(src)
    d_row = dst.row - src.row
    d_col = dst.col - src.col

    if is_en_passant_capture(board, src, dst):
        board.clear(Square(src.row, dst.col))
        logger.debug("en passant capture on %s", square_to_str(Square(src.row, dst.col)))

    # The target lives for exactly one reply.
    if piece.kind is PieceKind.PAWN and abs(d_row) == 2:
        board.en_passant = EnPassantTarget(src.offset(piece.color.forward, 0), piece.color)
    else:
        board.en_passant = None

    if piece.kind is PieceKind.PAWN and dst.row == piece.color.promotion_row:
        piece.kind = PieceKind.QUEEN

    if piece.kind is PieceKind.KING and abs(d_col) == 2:
        step = _sign(d_col)
        rook_from = Square(src.row, 7 if step > 0 else 0)
        rook_to = Square(src.row, dst.col - step)
        rook = board.piece_at(rook_from)
        rook.has_moved = True
        board.set_piece(rook_to, rook)
        board.clear(rook_from)

    piece.has_moved = True
    board.set_piece(dst, piece)
    board.clear(src)
    logger.debug("applied %s%s", square_to_str(src), square_to_str(dst))
    return True
