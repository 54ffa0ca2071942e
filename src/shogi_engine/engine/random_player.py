"""Random player: selects a legal move uniformly at random.

ランダムプレイヤー: 合法手（打ち手を含む）の中からランダムに手を選ぶ。

用途:
- ルール実装の動作確認（ランダム対局で不正な状態にならないか）
- 最弱の対戦相手（難易度の下限）
"""

from __future__ import annotations

import random

from shogi_engine.game.errors import NoLegalMovesError
from shogi_engine.game.moves import Move
from shogi_engine.game.state import GameState


def random_move(state: GameState, rng: random.Random | None = None) -> Move:
    """Return a random legal move.

    合法手がない場合は NoLegalMovesError を送出する（終局局面では呼ばれないはず）。
    """
    moves = state.legal_moves()
    if not moves:
        raise NoLegalMovesError("No legal moves available")
    return (rng or random).choice(moves)  # 一様ランダムサンプリング
