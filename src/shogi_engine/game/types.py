"""Types and constants for 本将棋 (9x9).

本将棋の基本型・定数定義。
駒は14種類（未成8種 + 成り駒6種）。移動方向は先手視点のテーブルとして持ち、
後手は行方向を反転して使う。
"""

from __future__ import annotations

from enum import Enum, IntEnum, unique

ROWS = 9
COLS = 9
NUM_SQUARES = ROWS * COLS  # 81マス


@unique
class Player(IntEnum):
    """Player identifiers.

    先手（SENTE）は下側から上に向かって進む（row 8 → row 0）。
    後手（GOTE）は上側から下に向かって進む（row 0 → row 8）。
    """

    SENTE = 0  # 先手
    GOTE = 1   # 後手

    @property
    def opponent(self) -> Player:
        """相手プレイヤーを返す。"""
        return Player(1 - self.value)

    @property
    def forward(self) -> int:
        """前方向の行の増分（先手 -1、後手 +1）。"""
        return -1 if self is Player.SENTE else 1


@unique
class PieceKind(Enum):
    """Piece kinds in 本将棋（14種類）.

    値は盤面スナップショットのシリアライズにそのまま使う。
    """

    KING = "KING"                        # 玉
    ROOK = "ROOK"                        # 飛
    BISHOP = "BISHOP"                    # 角
    GOLD = "GOLD"                        # 金
    SILVER = "SILVER"                    # 銀
    KNIGHT = "KNIGHT"                    # 桂
    LANCE = "LANCE"                      # 香
    PAWN = "PAWN"                        # 歩
    DRAGON = "DRAGON"                    # 龍（成り飛）
    HORSE = "HORSE"                      # 馬（成り角）
    PROMOTED_SILVER = "PROMOTED_SILVER"  # 成銀
    PROMOTED_KNIGHT = "PROMOTED_KNIGHT"  # 成桂
    PROMOTED_LANCE = "PROMOTED_LANCE"    # 成香
    TOKIN = "TOKIN"                      # と


# 成り変換テーブル: 未成駒 → 成り駒（固定のゲームデータ）
PROMOTION_MAP: dict[PieceKind, PieceKind] = {
    PieceKind.ROOK: PieceKind.DRAGON,
    PieceKind.BISHOP: PieceKind.HORSE,
    PieceKind.SILVER: PieceKind.PROMOTED_SILVER,
    PieceKind.KNIGHT: PieceKind.PROMOTED_KNIGHT,
    PieceKind.LANCE: PieceKind.PROMOTED_LANCE,
    PieceKind.PAWN: PieceKind.TOKIN,
}

# 逆変換: 成り駒 → 元の駒種（取られた駒を持ち駒に戻す際に使用）
UNPROMOTION_MAP: dict[PieceKind, PieceKind] = {v: k for k, v in PROMOTION_MAP.items()}

PROMOTED_KINDS = frozenset(UNPROMOTION_MAP)

# 持ち駒として使える駒種（未成の非玉駒、7種）
HAND_PIECE_KINDS: list[PieceKind] = [
    PieceKind.ROOK, PieceKind.BISHOP, PieceKind.GOLD, PieceKind.SILVER,
    PieceKind.KNIGHT, PieceKind.LANCE, PieceKind.PAWN,
]

_GOLD_STEPS = [(-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, 0)]

# 1マス移動の方向定義（先手視点、前 = 行インデックス減少方向）
STEP_MOVES: dict[PieceKind, list[tuple[int, int]]] = {
    PieceKind.PAWN: [(-1, 0)],  # 歩: 1マス前のみ
    PieceKind.SILVER: [(-1, -1), (-1, 0), (-1, 1), (1, -1), (1, 1)],  # 銀: 前3方向+斜め後
    PieceKind.GOLD: _GOLD_STEPS,  # 金: 6方向
    PieceKind.KING: [
        (-1, -1), (-1, 0), (-1, 1),
        (0, -1), (0, 1),
        (1, -1), (1, 0), (1, 1),
    ],  # 王: 全8方向1マス
    # 成り駒（馬・龍以外）は金と同じ動き
    PieceKind.TOKIN: _GOLD_STEPS,
    PieceKind.PROMOTED_LANCE: _GOLD_STEPS,
    PieceKind.PROMOTED_KNIGHT: _GOLD_STEPS,
    PieceKind.PROMOTED_SILVER: _GOLD_STEPS,
    # 馬は縦横1マス、龍は斜め1マスを追加で動ける
    PieceKind.HORSE: [(-1, 0), (1, 0), (0, -1), (0, 1)],
    PieceKind.DRAGON: [(-1, -1), (-1, 1), (1, -1), (1, 1)],
}

# 桂馬のジャンプ（2マス前+左右1マス、途中の駒は飛び越える）
KNIGHT_MOVES: list[tuple[int, int]] = [(-2, -1), (-2, 1)]

# 遠距離移動の方向定義（同方向に繰り返し移動できる）
SLIDE_MOVES: dict[PieceKind, list[tuple[int, int]]] = {
    PieceKind.LANCE: [(-1, 0)],                              # 香: 前方向のみ
    PieceKind.BISHOP: [(-1, -1), (-1, 1), (1, -1), (1, 1)],  # 角: 斜め4方向
    PieceKind.ROOK: [(-1, 0), (1, 0), (0, -1), (0, 1)],      # 飛: 縦横4方向
    PieceKind.HORSE: [(-1, -1), (-1, 1), (1, -1), (1, 1)],   # 馬: 斜め遠距離
    PieceKind.DRAGON: [(-1, 0), (1, 0), (0, -1), (0, 1)],    # 龍: 縦横遠距離
}
