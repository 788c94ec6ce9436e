from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from . import rules
from .board import Board, Color, PieceKind
from .fen import board_to_fen, parse_fen
from .move import Move, Square, parse_uci


logger = logging.getLogger(__name__)


class GameOutcome(Enum):
    IN_PROGRESS = "in_progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


@dataclass
class Game:
    """Game wrapper around a board with turn and outcome tracking.

    Responsibility: own one board, enforce turn order, apply moves and
    reclassify the outcome after each of them.
    """

    board: Board
    turn: Color = Color.WHITE
    outcome: GameOutcome = GameOutcome.IN_PROGRESS
    winner: Optional[Color] = None
    last_move: Optional[Move] = None
    # FEN move counters, kept only so positions round-trip.
    halfmove_clock: int = 0
    fullmove_number: int = 1

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        board, turn, halfmove, fullmove = parse_fen(fen)
        game = cls(board=board, turn=turn, halfmove_clock=halfmove, fullmove_number=fullmove)
        game._classify()
        return game

    def to_fen(self) -> str:
        return board_to_fen(self.board, self.turn, self.halfmove_clock, self.fullmove_number)

    def reset(self) -> None:
        """Return to the starting position with white to move."""
        self.board.reset()
        self.turn = Color.WHITE
        self.outcome = GameOutcome.IN_PROGRESS
        self.winner = None
        self.last_move = None
        self.halfmove_clock = 0
        self.fullmove_number = 1
        logger.info("game reset")

    @property
    def is_over(self) -> bool:
        return self.outcome is not GameOutcome.IN_PROGRESS

    # --- Queries ---
    def is_legal(self, source: Sequence[int], destination: Sequence[int]) -> bool:
        return rules.is_legal(self.board, source, destination)

    def is_in_check(self, color: Optional[Color] = None) -> bool:
        return rules.is_in_check(self.board, color or self.turn)

    def is_checkmate(self, color: Optional[Color] = None) -> bool:
        return rules.is_checkmate(self.board, color or self.turn)

    def has_any_legal_move(self, color: Optional[Color] = None) -> bool:
        return rules.has_any_legal_move(self.board, color or self.turn)

    def legal_moves(self) -> List[Move]:
        if self.is_over:
            return []
        return rules.generate_legal_moves(self.board, self.turn)

    def legal_destinations(self, source: Sequence[int]) -> List[Square]:
        src = rules.as_square(source)
        if self.is_over or src is None or self.board.piece_at(src).color is not self.turn:
            return []
        return rules.legal_destinations(self.board, src)

    # --- Mutation ---
    def apply_move(self, source: Sequence[int], destination: Sequence[int]) -> bool:
        """Play a move for the side to move.

        Returns:
            bool: ``False`` without touching the board when the game is over,
                the source piece is not the mover's, or the move is illegal.
        """
        if self.is_over:
            logger.debug("move refused: game is over (%s)", self.outcome.value)
            return False
        src, dst = rules.as_square(source), rules.as_square(destination)
        if src is None or dst is None:
            return False
        if self.board.piece_at(src).color is not self.turn:
            return False
        resets_clock = (
            self.board.piece_at(src).kind is PieceKind.PAWN or not self.board.is_empty(dst)
        )
        if not rules.apply_move(self.board, src, dst):
            return False

        self.last_move = Move(src, dst)
        self.halfmove_clock = 0 if resets_clock else self.halfmove_clock + 1
        if self.turn is Color.BLACK:
            self.fullmove_number += 1
        self.turn = self.turn.opposite
        self._classify()
        return True

    def apply_uci(self, uci: str) -> bool:
        """Parse and play a move such as ``"e2e4"``.

        Raises:
            ValueError: If ``uci`` is not a well-formed move string.
        """
        move = parse_uci(uci)
        return self.apply_move(move.source, move.destination)

    def _classify(self) -> None:
        if rules.has_any_legal_move(self.board, self.turn):
            self.outcome = GameOutcome.IN_PROGRESS
            self.winner = None
            return
        if rules.is_in_check(self.board, self.turn):
            self.outcome = GameOutcome.CHECKMATE
            self.winner = self.turn.opposite
            logger.info("checkmate, %s wins", self.winner.name.lower())
        else:
            self.outcome = GameOutcome.STALEMATE
            self.winner = None
            logger.info("stalemate")

    def status_text(self) -> str:
        if self.outcome is GameOutcome.CHECKMATE and self.winner is not None:
            return f"Checkmate! {self.winner.name.capitalize()} wins"
        if self.outcome is GameOutcome.STALEMATE:
            return "Stalemate!"
        text = f"{self.turn.name.capitalize()} to move"
        if self.is_in_check():
            text += " (check)"
        return text
