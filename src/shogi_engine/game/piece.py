"""Pieces and their movement geometry.

駒の種類ごとのクラスは作らず、types.py の方向テーブルを1つの汎用アルゴリズム
（project_destinations）で展開する。駒はイミュータブルで、移動・成りは
新しい Piece を返す。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shogi_engine.game.errors import UnpromotablePieceError
from shogi_engine.game.position import Position, in_bounds
from shogi_engine.game.types import (
    KNIGHT_MOVES,
    PROMOTED_KINDS,
    PROMOTION_MAP,
    SLIDE_MOVES,
    STEP_MOVES,
    UNPROMOTION_MAP,
    PieceKind,
    Player,
)

if TYPE_CHECKING:
    from shogi_engine.game.board import Board


class _Unset:
    pass


_UNSET = _Unset()


def project_destinations(
    board: Board,
    kind: PieceKind,
    owner: Player,
    row: int,
    column: int,
) -> list[tuple[int, int]]:
    """Return the squares a piece of `kind` at (row, column) can reach.

    盤上の駒による遮りを考慮した移動先 (row, column) のリスト。
    自駒のマスは含めず、敵駒のマスは含める（取り）。
    飛び駒は最初にぶつかった駒でその方向の展開を止める。
    成りの有無や自玉の安全は考慮しない（それは rules の責務）。
    """
    # 方向テーブルは先手視点。後手は行方向を反転する（列方向は左右対称）
    flip = owner.forward * -1
    result: list[tuple[int, int]] = []

    def _try_step(nr: int, nc: int) -> None:
        if not in_bounds(nr, nc):
            return
        target = board.piece_at(nr, nc)
        if target is None or target.owner != owner:
            result.append((nr, nc))

    for dr, dc in STEP_MOVES.get(kind, ()):
        _try_step(row + dr * flip, column + dc)

    if kind is PieceKind.KNIGHT:
        # 桂馬は間の駒を飛び越える
        for dr, dc in KNIGHT_MOVES:
            _try_step(row + dr * flip, column + dc)

    for dr, dc in SLIDE_MOVES.get(kind, ()):
        dr *= flip
        nr, nc = row + dr, column + dc
        while in_bounds(nr, nc):
            target = board.piece_at(nr, nc)
            if target is not None and target.owner == owner:
                break
            result.append((nr, nc))
            if target is not None:
                break  # 取ったらそこで止まる
            nr, nc = nr + dr, nc + dc

    return result


@dataclass(frozen=True)
class Piece:
    """A piece, on the board or in hand.

    position が None の駒は持ち駒（盤外）を表す。
    等価性は (kind, owner, position) の構造比較。
    """

    kind: PieceKind
    owner: Player
    position: Position | None = None

    @property
    def is_promoted(self) -> bool:
        return self.kind in PROMOTED_KINDS

    @property
    def can_promote(self) -> bool:
        """成り駒を持つ駒種なら True（玉・金・成り駒は False）。"""
        return self.kind in PROMOTION_MAP

    def get_valid_moves(self, board: Board) -> list[Position]:
        """Geometric destinations from the current square; empty when in hand."""
        if self.position is None:
            return []
        return [
            Position(r, c)
            for r, c in project_destinations(
                board, self.kind, self.owner, self.position.row, self.position.column
            )
        ]

    def promote(self) -> Piece:
        """成り駒を返す。成れない駒種なら UnpromotablePieceError。"""
        promoted = PROMOTION_MAP.get(self.kind)
        if promoted is None:
            raise UnpromotablePieceError(f"{self.kind.value} cannot promote")
        return Piece(promoted, self.owner, self.position)

    def demote(self) -> Piece:
        """元の駒種に戻した駒を返す（未成駒はそのまま）。"""
        return Piece(UNPROMOTION_MAP.get(self.kind, self.kind), self.owner, self.position)

    def clone(self, position: Position | None | _Unset = _UNSET) -> Piece:
        """Copy the piece, optionally relocated (None puts it in hand)."""
        if isinstance(position, _Unset):
            position = self.position
        return Piece(self.kind, self.owner, position)

    def equals(self, other: Piece | None) -> bool:
        if other is None:
            return False
        return self == other
