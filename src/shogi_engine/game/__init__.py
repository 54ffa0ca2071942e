"""本将棋 (Shogi, 9x9): board model and rules engine."""

from shogi_engine.game import rules
from shogi_engine.game.board import Board
from shogi_engine.game.errors import (
    AlreadyCalculatingError,
    InvalidBoardDataError,
    InvalidMoveError,
    InvalidPositionError,
    NoLegalMovesError,
    SearchTimeoutError,
    ShogiError,
    UnpromotablePieceError,
)
from shogi_engine.game.moves import DropMove, Move, PieceMove
from shogi_engine.game.piece import Piece
from shogi_engine.game.position import Position
from shogi_engine.game.state import CapturedPieces, GameState, GameStatus
from shogi_engine.game.types import PieceKind, Player

__all__ = [
    "AlreadyCalculatingError",
    "Board",
    "CapturedPieces",
    "DropMove",
    "GameState",
    "GameStatus",
    "InvalidBoardDataError",
    "InvalidMoveError",
    "InvalidPositionError",
    "Move",
    "NoLegalMovesError",
    "Piece",
    "PieceKind",
    "PieceMove",
    "Player",
    "Position",
    "SearchTimeoutError",
    "ShogiError",
    "UnpromotablePieceError",
    "rules",
]
