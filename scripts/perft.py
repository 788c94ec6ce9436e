#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import time
import os
import sys

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo's src/ directory to sys.path.
SRC_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from chess_rules.engine.fen import STARTPOS_FEN, parse_fen
from chess_rules.engine.move import square_to_str
from chess_rules.engine.perft import perft
from chess_rules.engine.rules import apply_move, generate_legal_moves


def main() -> None:
    parser = argparse.ArgumentParser(description="Count legal move-tree leaves for a position")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--divide", action="store_true", help="Print the node count below each root move"
    )
    args = parser.parse_args()

    board, turn, _, _ = parse_fen(args.fen)
    start = time.perf_counter()
    if args.divide and args.depth > 0:
        nodes = 0
        for m in generate_legal_moves(board, turn):
            child = board.copy()
            apply_move(child, m.source, m.destination)
            n = perft(child, turn.opposite, args.depth - 1)
            print(f"{square_to_str(m.source)}{square_to_str(m.destination)}: {n}")
            nodes += n
    else:
        nodes = perft(board, turn, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
