"""Exception types raised by the shogi core.

盤面・駒レベルの構造的な誤り（呼び出し側のロジックエラー）は即座に送出する。
合法手なし・王手・詰みは通常のゲーム状態なので例外にはしない。
"""

from __future__ import annotations


class ShogiError(Exception):
    """Base class for all errors raised by shogi_engine."""


class InvalidPositionError(ShogiError, ValueError):
    """座標が盤外（0〜8 の範囲外）。"""


class InvalidMoveError(ShogiError):
    """移動元に駒がない、または合法手に含まれない手。"""


class UnpromotablePieceError(ShogiError):
    """成れない駒（玉・金・成り駒）に成りを要求した。"""


class NoLegalMovesError(ShogiError):
    """探索を要求されたが合法手が1つもない（詰み・手詰まり）。"""


class AlreadyCalculatingError(ShogiError):
    """前回の探索がまだ終わっていない。"""


class SearchTimeoutError(ShogiError, TimeoutError):
    """ワーカーでの探索が待機時間内に終わらなかった。"""


class InvalidBoardDataError(ShogiError, ValueError):
    """シリアライズされた盤面データが壊れている。"""
