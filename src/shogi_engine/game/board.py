"""Board representation for 本将棋 (9x9).

9×9盤の盤面データ構造。イミュータブルなデータクラスで、変更メソッドは
新しい Board を返す。探索中の仮の盤面（自玉の王手チェック用）と
対局中の盤面が参照を共有して壊し合うことはない。

持ち駒は盤面ではなく GameState（state.py）が管理する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shogi_engine.game.errors import InvalidBoardDataError, InvalidMoveError
from shogi_engine.game.moves import DropMove, PieceMove
from shogi_engine.game.piece import Piece
from shogi_engine.game.position import Position, in_bounds
from shogi_engine.game.types import COLS, NUM_SQUARES, ROWS, PieceKind, Player

Coordinate = Position | tuple[int, int]

_BACK_RANK = [
    PieceKind.LANCE, PieceKind.KNIGHT, PieceKind.SILVER,
    PieceKind.GOLD, PieceKind.KING, PieceKind.GOLD,
    PieceKind.SILVER, PieceKind.KNIGHT, PieceKind.LANCE,
]


def _coords(pos: Coordinate) -> tuple[int, int]:
    if isinstance(pos, Position):
        return pos.row, pos.column
    row, column = pos
    return row, column


@dataclass(frozen=True)
class Board:
    """Immutable 9x9 board.

    squares: 81要素のタプル（行優先）。squares[row * COLS + column] でアクセス。
    格納された駒の position は常にそのマスの座標と一致する。
    """

    squares: tuple[Piece | None, ...] = field(
        default_factory=lambda: (None,) * NUM_SQUARES
    )

    def __post_init__(self) -> None:
        if len(self.squares) != NUM_SQUARES:
            raise InvalidBoardDataError(
                f"Board needs {NUM_SQUARES} squares, got {len(self.squares)}"
            )

    @classmethod
    def empty(cls) -> Board:
        return cls()

    @classmethod
    def create_initial_board(cls) -> Board:
        """Return the standard starting position (平手).

        Row 0 = 後手の後段（上端）、Row 8 = 先手の後段（下端）。
        """
        squares: list[Piece | None] = [None] * NUM_SQUARES

        def _put(row: int, column: int, kind: PieceKind, owner: Player) -> None:
            squares[row * COLS + column] = Piece(kind, owner, Position(row, column))

        # 後手: 後段（Row 0）、飛角（Row 1）、歩（Row 2）
        for c, kind in enumerate(_BACK_RANK):
            _put(0, c, kind, Player.GOTE)
        _put(1, 1, PieceKind.ROOK, Player.GOTE)
        _put(1, 7, PieceKind.BISHOP, Player.GOTE)
        for c in range(COLS):
            _put(2, c, PieceKind.PAWN, Player.GOTE)

        # 先手: 歩（Row 6）、角飛（Row 7、後手と点対称）、後段（Row 8）
        for c in range(COLS):
            _put(6, c, PieceKind.PAWN, Player.SENTE)
        _put(7, 1, PieceKind.BISHOP, Player.SENTE)
        _put(7, 7, PieceKind.ROOK, Player.SENTE)
        for c, kind in enumerate(_BACK_RANK):
            _put(8, c, kind, Player.SENTE)

        return cls(squares=tuple(squares))

    @staticmethod
    def is_valid_position(pos: Coordinate) -> bool:
        return in_bounds(*_coords(pos))

    def piece_at(self, row: int, column: int) -> Piece | None:
        """マス(row, column)の駒を返す。呼び出し側で盤内を保証すること。"""
        return self.squares[row * COLS + column]

    def get_piece(self, pos: Coordinate) -> Piece | None:
        """Return the piece at `pos`; off-board coordinates read as empty."""
        row, column = _coords(pos)
        if not in_bounds(row, column):
            return None
        return self.squares[row * COLS + column]

    def set_piece(self, pos: Coordinate, piece: Piece | None) -> Board:
        """Return a new board with `pos` replaced.

        盤外の座標への書き込みは無視して同じ盤面を返す。
        置く駒の position はマスの座標に付け替える。
        """
        row, column = _coords(pos)
        if not in_bounds(row, column):
            return self
        squares = list(self.squares)
        if piece is not None:
            piece = piece.clone(Position(row, column))
        squares[row * COLS + column] = piece
        return Board(squares=tuple(squares))

    def clone(self) -> Board:
        """Independent copy. Boards never change in place, so this only copies the slots."""
        return Board(squares=tuple(self.squares))

    def get_pieces(self, player: Player) -> list[Piece]:
        return [p for p in self.squares if p is not None and p.owner == player]

    def find_king(self, player: Player) -> Position | None:
        """プレイヤーの玉の座標を返す。玉がなければ None。"""
        for piece in self.squares:
            if piece is not None and piece.kind is PieceKind.KING and piece.owner == player:
                return piece.position
        return None

    def apply_move(self, move: PieceMove) -> Board:
        """Apply a board move mechanically and return the new board.

        合法性は検査しない（rules 側の責務）。移動元が空なら InvalidMoveError、
        成れない駒の成りは UnpromotablePieceError。移動先の駒は盤から消える
        （持ち駒への追加は GameState が行う）。
        """
        piece = self.get_piece(move.from_pos)
        if piece is None:
            raise InvalidMoveError(f"No piece at {move.from_pos}")

        moved = piece.clone(move.to_pos)
        if move.is_promotion:
            moved = moved.promote()

        squares = list(self.squares)
        squares[move.from_pos.index] = None
        squares[move.to_pos.index] = moved
        return Board(squares=tuple(squares))

    def apply_drop(self, move: DropMove, player: Player) -> Board:
        """持ち駒を打った新しい盤面を返す。打つ先が埋まっていれば InvalidMoveError。"""
        if self.get_piece(move.to_pos) is not None:
            raise InvalidMoveError(f"Square {move.to_pos} is occupied")
        return self.set_piece(move.to_pos, Piece(move.kind, player))

    def serialize(self) -> dict[str, Any]:
        """Serialize for hand-off to a search worker."""
        squares: list[list[dict[str, Any] | None]] = []
        for r in range(ROWS):
            row: list[dict[str, Any] | None] = []
            for c in range(COLS):
                piece = self.piece_at(r, c)
                if piece is None:
                    row.append(None)
                else:
                    row.append(
                        {
                            "type": piece.kind.value,
                            "player": piece.owner.name,
                            "position": {"row": r, "column": c},
                        }
                    )
            squares.append(row)
        return {"type": "Board", "squares": squares}

    @classmethod
    def deserialize(cls, data: Any) -> Board:
        """serialize() の逆変換。データが壊れていれば InvalidBoardDataError。"""
        if not isinstance(data, dict) or data.get("type") != "Board":
            raise InvalidBoardDataError("Invalid serialized board data")
        rows = data.get("squares")
        if not isinstance(rows, list) or len(rows) != ROWS:
            raise InvalidBoardDataError("Serialized board must have 9 rows")

        squares: list[Piece | None] = [None] * NUM_SQUARES
        for r, row in enumerate(rows):
            if not isinstance(row, list) or len(row) != COLS:
                raise InvalidBoardDataError(f"Row {r} must have 9 squares")
            for c, cell in enumerate(row):
                if cell is None:
                    continue
                try:
                    kind = PieceKind(cell["type"])
                    owner = Player[cell["player"]]
                except (KeyError, TypeError, ValueError) as exc:
                    raise InvalidBoardDataError(f"Bad piece at ({r}, {c}): {cell!r}") from exc
                squares[r * COLS + c] = Piece(kind, owner, Position(r, c))
        return cls(squares=tuple(squares))
