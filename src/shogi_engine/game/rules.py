"""Legal move generation and rule checks for 本将棋.

合法手生成と反則判定。すべての関数は純粋関数で、引数の盤面を変更しない。
合法手なし・王手・詰みは戻り値で表し、例外は送出しない。

流れ:
  1. 各駒の幾何的な移動先（piece.project_destinations）
  2. 成り・不成の選択肢（promotion_options）
  3. 自玉が王手になる手を除外（自殺手フィルタ）
"""

from __future__ import annotations

from collections.abc import Iterable

from shogi_engine.game.board import Board
from shogi_engine.game.moves import DropMove, PieceMove
from shogi_engine.game.piece import Piece, project_destinations
from shogi_engine.game.position import Position
from shogi_engine.game.types import (
    COLS,
    HAND_PIECE_KINDS,
    NUM_SQUARES,
    ROWS,
    PieceKind,
    Player,
)


def in_promotion_zone(player: Player, row: int) -> bool:
    """Check if a row is in the promotion zone (enemy's 3 ranks)."""
    if player == Player.SENTE:
        return row <= 2
    return row >= 6


def must_promote(kind: PieceKind, player: Player, dest_row: int) -> bool:
    """Check if promotion is mandatory (piece would have no further moves)."""
    return is_dead_square(kind, player, dest_row)


def is_dead_square(kind: PieceKind, player: Player, row: int) -> bool:
    """行き所のない駒: 歩・香は最奥段、桂は奥2段に置けない。"""
    if kind is PieceKind.PAWN or kind is PieceKind.LANCE:
        return row == (0 if player == Player.SENTE else ROWS - 1)
    if kind is PieceKind.KNIGHT:
        if player == Player.SENTE:
            return row <= 1
        return row >= ROWS - 2
    return False


def promotion_options(piece: Piece, from_pos: Position, to_pos: Position) -> tuple[bool, ...]:
    """Return the promotion flags a move may carry.

    - 成れない駒（玉・金・成り駒）: (False,)
    - 強制成り（歩・香が最奥段、桂が奥2段）: (True,)
    - 敵陣に入る／敵陣から出る: (True, False) の2通り
    - それ以外: (False,)
    """
    if not piece.can_promote:
        return (False,)
    player = piece.owner
    if not (in_promotion_zone(player, from_pos.row) or in_promotion_zone(player, to_pos.row)):
        return (False,)
    if must_promote(piece.kind, player, to_pos.row):
        return (True,)
    return (True, False)


def _piece_moves(board: Board, piece: Piece) -> list[PieceMove]:
    """1つの駒の擬似合法手（自玉の安全は未検査）。"""
    assert piece.position is not None
    from_pos = piece.position
    moves: list[PieceMove] = []
    for r, c in project_destinations(board, piece.kind, piece.owner, from_pos.row, from_pos.column):
        to_pos = Position(r, c)
        for promote in promotion_options(piece, from_pos, to_pos):
            moves.append(PieceMove(from_pos, to_pos, promote))
    return moves


def _leaves_king_safe(board: Board, move: PieceMove, player: Player) -> bool:
    return not is_in_check(board.apply_move(move), player)


def generate_legal_moves(board: Board, player: Player) -> list[PieceMove]:
    """Generate all legal board moves (excluding moves that leave the king in check).

    打ち駒は含まない（持ち駒は GameState 側にあるため generate_legal_drops を使う）。
    """
    legal: list[PieceMove] = []
    for piece in board.get_pieces(player):
        for move in _piece_moves(board, piece):
            if _leaves_king_safe(board, move, player):
                legal.append(move)
    return legal


def legal_moves_from(board: Board, pos: Position, player: Player) -> list[PieceMove]:
    """Legal moves of the piece on `pos` (empty if it is not `player`'s piece)."""
    piece = board.get_piece(pos)
    if piece is None or piece.owner != player:
        return []
    return [m for m in _piece_moves(board, piece) if _leaves_king_safe(board, m, player)]


def is_in_check(board: Board, player: Player) -> bool:
    """Check if player's king is attacked by any opposing piece.

    玉が盤上にない場合は False（正常な対局では起きない）。
    """
    king = board.find_king(player)
    if king is None:
        return False

    target = (king.row, king.column)
    for piece in board.get_pieces(player.opponent):
        assert piece.position is not None
        destinations = project_destinations(
            board, piece.kind, piece.owner, piece.position.row, piece.position.column
        )
        if target in destinations:
            return True
    return False


def is_checkmate(board: Board, player: Player) -> bool:
    """王手されていて、かつ盤上の合法手が1つもない。"""
    if not is_in_check(board, player):
        return False
    return len(generate_legal_moves(board, player)) == 0


def is_nifu(board: Board, column: int, player: Player) -> bool:
    """Return True if `player` already has an unpromoted pawn in `column` (二歩)."""
    if not 0 <= column < COLS:
        return False
    for row in range(ROWS):
        piece = board.piece_at(row, column)
        if piece is not None and piece.owner == player and piece.kind is PieceKind.PAWN:
            return True
    return False


def is_drop_pawn_mate(board: Board, to_pos: Position, player: Player) -> bool:
    """Return True if dropping a pawn on `to_pos` would checkmate (打ち歩詰め).

    歩による王手は隣接しているので合駒はできない。
    したがって相手の盤上の合法手だけを調べれば十分。
    """
    opponent = player.opponent
    king = board.find_king(opponent)
    if king is None or board.get_piece(to_pos) is not None:
        return False
    if to_pos.offset(player.forward, 0) != king:
        return False
    dropped = board.apply_drop(DropMove(PieceKind.PAWN, to_pos), player)
    return is_checkmate(dropped, opponent)


def legal_drop_positions(board: Board, kind: PieceKind, player: Player) -> list[Position]:
    """Squares where `player` may legally drop a piece of `kind`.

    除外条件:
    - 駒があるマス
    - 行き所のない駒（歩・香の最奥段、桂の奥2段）
    - 二歩
    - 打った後も自玉が王手のまま
    - 打ち歩詰め
    """
    if kind not in HAND_PIECE_KINDS:
        return []

    positions: list[Position] = []
    nifu_columns = {c for c in range(COLS) if kind is PieceKind.PAWN and is_nifu(board, c, player)}
    for idx in range(NUM_SQUARES):
        if board.squares[idx] is not None:
            continue
        row, column = idx // COLS, idx % COLS
        if is_dead_square(kind, player, row) or column in nifu_columns:
            continue
        to_pos = Position(row, column)
        if is_in_check(board.apply_drop(DropMove(kind, to_pos), player), player):
            continue
        if kind is PieceKind.PAWN and is_drop_pawn_mate(board, to_pos, player):
            continue
        positions.append(to_pos)
    return positions


def generate_legal_drops(
    board: Board,
    player: Player,
    kinds: Iterable[PieceKind],
) -> list[DropMove]:
    """持ち駒の駒種ごと（重複は1回）に合法な打ち手を生成する。"""
    drops: list[DropMove] = []
    seen: set[PieceKind] = set()
    for kind in kinds:
        if kind in seen:
            continue
        seen.add(kind)
        drops.extend(DropMove(kind, pos) for pos in legal_drop_positions(board, kind, player))
    return drops


def has_legal_move(
    board: Board,
    player: Player,
    hand_kinds: Iterable[PieceKind] = (),
) -> bool:
    """盤上の手か打ち手が1つでもあれば True（詰み・手詰まり判定用）。"""
    if generate_legal_moves(board, player):
        return True
    return any(legal_drop_positions(board, kind, player) for kind in set(hand_kinds))
