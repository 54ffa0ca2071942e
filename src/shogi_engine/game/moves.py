"""Move command objects.

盤上の駒を動かす手（PieceMove）と持ち駒を打つ手（DropMove）。
どちらも一時的なコマンドオブジェクトで、JSON 形式の dict と相互変換できる。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shogi_engine.game.errors import InvalidMoveError
from shogi_engine.game.position import Position
from shogi_engine.game.types import PieceKind


@dataclass(frozen=True)
class PieceMove:
    """Board-to-board move."""

    from_pos: Position
    to_pos: Position
    is_promotion: bool = False


@dataclass(frozen=True)
class DropMove:
    """Hand-to-board move."""

    kind: PieceKind
    to_pos: Position


Move = PieceMove | DropMove


def move_to_dict(move: Move) -> dict[str, Any]:
    if isinstance(move, DropMove):
        return {"type": "drop", "drop": move.kind.value, "to": move.to_pos.to_dict()}
    return {
        "type": "board",
        "from": move.from_pos.to_dict(),
        "to": move.to_pos.to_dict(),
        "is_promotion": move.is_promotion,
    }


def move_from_dict(data: dict[str, Any]) -> Move:
    """move_to_dict の逆変換。形式が不正なら InvalidMoveError。"""
    try:
        to_pos = Position.from_dict(data["to"])
        if "drop" in data:
            return DropMove(PieceKind(data["drop"]), to_pos)
        return PieceMove(
            Position.from_dict(data["from"]),
            to_pos,
            bool(data.get("is_promotion", False)),
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise InvalidMoveError(f"Malformed move: {data!r}") from exc


def format_move(move: Move) -> str:
    """Format a move for display, e.g. "(6, 4) -> (5, 4)+" or "drop PAWN -> (4, 4)"."""
    if isinstance(move, DropMove):
        return f"drop {move.kind.value} -> {move.to_pos}"
    suffix = "+" if move.is_promotion else ""
    return f"{move.from_pos} -> {move.to_pos}{suffix}"
