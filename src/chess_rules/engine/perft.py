from __future__ import annotations

from .board import Board, Color
from .rules import apply_move, generate_legal_moves


def perft(board: Board, turn: Color, depth: int) -> int:
    """Compute perft node count for ``board`` with ``turn`` to move.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Note: promotion always yields a queen, so counts only match published
    tables for positions where no under-promotion is reachable within
    ``depth`` plies.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = generate_legal_moves(board, turn)
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        child = board.copy()
        apply_move(child, m.source, m.destination)
        nodes += perft(child, turn.opposite, depth - 1)
    return nodes
