"""Board coordinates.

盤上の座標を表す値オブジェクト。行・列とも 0〜8 の範囲しか作れない。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shogi_engine.game.errors import InvalidPositionError
from shogi_engine.game.types import COLS, ROWS


def in_bounds(row: int, column: int) -> bool:
    """(row, column) が盤内なら True。"""
    return 0 <= row < ROWS and 0 <= column < COLS


@dataclass(frozen=True, order=True)
class Position:
    """An immutable, bounds-checked square.

    row 0 が後手側（上端）、row 8 が先手側（下端）。
    """

    row: int
    column: int

    def __post_init__(self) -> None:
        if not in_bounds(self.row, self.column):
            msg = (
                f"Invalid position ({self.row}, {self.column}): "
                f"row and column must be between 0 and {ROWS - 1}"
            )
            raise InvalidPositionError(msg)

    @property
    def index(self) -> int:
        """フラット配列上のインデックス（row * 9 + column）。"""
        return self.row * COLS + self.column

    @classmethod
    def from_index(cls, index: int) -> Position:
        return cls(index // COLS, index % COLS)

    def offset(self, d_row: int, d_column: int) -> Position | None:
        """Return the square shifted by (d_row, d_column), or None if off-board."""
        row, column = self.row + d_row, self.column + d_column
        if not in_bounds(row, column):
            return None
        return Position(row, column)

    def to_dict(self) -> dict[str, int]:
        return {"row": self.row, "column": self.column}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Position:
        try:
            return cls(int(data["row"]), int(data["column"]))
        except (KeyError, TypeError) as exc:
            raise InvalidPositionError(f"Malformed position: {data!r}") from exc

    def __str__(self) -> str:
        return f"({self.row}, {self.column})"
