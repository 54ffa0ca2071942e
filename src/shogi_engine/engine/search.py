"""Minimax search with alpha-beta pruning for 本将棋.

自動対局用の手選択エンジン。

アルゴリズム:
1. 合法手を列挙（rules.generate_legal_moves）
2. 各候補手を指した局面を評価
   - 相手が詰んでいれば最高評価（MATE_SCORE）
   - そうでなければ αβ 付きミニマックスで指定深さまで探索
3. 最高評価の手を返す（同点は先に列挙された手）

持ち時間の abort_fraction（既定 90%）を超えたら探索を打ち切り、
それまでに見つかった最善手を返す。
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from enum import Enum

from shogi_engine.config import SearchConfig
from shogi_engine.game import rules
from shogi_engine.game.board import Board
from shogi_engine.game.errors import NoLegalMovesError
from shogi_engine.game.moves import PieceMove
from shogi_engine.game.types import PieceKind, Player

logger = logging.getLogger(__name__)

# 駒の価値テーブル（材料評価に使用）
# 玉に圧倒的に高い値を設定し、玉を失う変化を何よりも避けさせる
PIECE_VALUES: dict[PieceKind, int] = {
    PieceKind.KING: 10_000,
    PieceKind.ROOK: 900,
    PieceKind.BISHOP: 800,
    PieceKind.GOLD: 600,
    PieceKind.SILVER: 500,
    PieceKind.KNIGHT: 400,
    PieceKind.LANCE: 300,
    PieceKind.PAWN: 100,
    PieceKind.DRAGON: 1000,
    PieceKind.HORSE: 950,
    PieceKind.PROMOTED_SILVER: 600,
    PieceKind.PROMOTED_KNIGHT: 600,
    PieceKind.PROMOTED_LANCE: 600,
    PieceKind.TOKIN: 600,
}

MATE_SCORE = 100_000
CHECK_BONUS = 500  # 相手に王手をかけている
IN_CHECK_PENALTY = 1000  # 自分が王手されている

_INF = float("inf")


class SearchState(Enum):
    IDLE = "idle"
    THINKING = "thinking"
    MOVE_SELECTED = "move_selected"
    FAILED = "failed"


class _SearchAborted(Exception):
    """持ち時間切れ。探索中の候補手の評価は捨てる。"""


class EvaluationCache:
    """Bounded memo of static evaluations, owned by one SearchEngine.

    select_move のたびに clear() されるので、探索結果は呼び出し順に依存しない。
    上限に達したら最も古いエントリから捨てる。
    """

    def __init__(self, max_entries: int) -> None:
        self.max_entries = max_entries
        self._entries: dict[Hashable, int] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> int | None:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: Hashable, value: int) -> None:
        if self.max_entries <= 0:
            return
        if key not in self._entries and len(self._entries) >= self.max_entries:
            self._entries.pop(next(iter(self._entries)))
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0


@dataclass(frozen=True)
class SearchResult:
    """Summary of the last select_move call."""

    move: PieceMove
    score: float
    depth: int
    nodes: int
    elapsed_ms: int
    completed: bool  # 全候補手を評価し終えたか（False = 時間切れ）


class SearchEngine:
    """Depth-limited minimax + alpha-beta move selector.

    状態遷移: IDLE → THINKING → (MOVE_SELECTED | FAILED)
    1インスタンスにつき同時に1探索まで（並行実行は SearchWorker が制御する）。
    """

    def __init__(
        self,
        config: SearchConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or SearchConfig()
        self.cache = EvaluationCache(self.config.cache_size)
        self.last_result: SearchResult | None = None
        self._clock = clock
        self._state = SearchState.IDLE
        self._deadline = _INF
        self._nodes = 0

    @property
    def state(self) -> SearchState:
        return self._state

    def evaluate(self, board: Board, player: Player) -> int:
        """Static evaluation from `player`'s point of view.

        (自分の駒の価値の合計) − (相手の駒の価値の合計)
        ＋ 相手に王手をかけていればボーナス、自分が王手されていればペナルティ。
        """
        key = (board, player)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        opponent = player.opponent
        score = 0
        for piece in board.squares:
            if piece is None:
                continue
            value = PIECE_VALUES[piece.kind]
            score += value if piece.owner == player else -value

        if rules.is_in_check(board, opponent):
            score += CHECK_BONUS
        if rules.is_in_check(board, player):
            score -= IN_CHECK_PENALTY

        self.cache.put(key, score)
        return score

    def select_move(
        self,
        board: Board,
        player: Player,
        time_limit_ms: int | None = None,
    ) -> PieceMove:
        """Return the best move for `player` found within the time budget.

        合法手がなければ NoLegalMovesError（呼び出し側は詰み／手詰まりとして扱う）。
        """
        return self.search(board, player, time_limit_ms).move

    def search(
        self,
        board: Board,
        player: Player,
        time_limit_ms: int | None = None,
    ) -> SearchResult:
        if time_limit_ms is None:
            time_limit_ms = self.config.default_time_limit_ms

        start = self._clock()
        self._state = SearchState.THINKING
        self._nodes = 0
        self.cache.clear()

        legal = rules.generate_legal_moves(board, player)
        if not legal:
            self._state = SearchState.FAILED
            raise NoLegalMovesError(f"{player.name} has no legal moves")

        # 残り時間で探索深さを決める
        remaining_ms = time_limit_ms - (self._clock() - start) * 1000
        if remaining_ms > self.config.deep_search_threshold_ms:
            depth = self.config.deep_depth
        else:
            depth = self.config.shallow_depth
        self._deadline = start + time_limit_ms * self.config.abort_fraction / 1000

        best_move = legal[0]
        best_score = -_INF
        completed = True
        for move in legal:
            if self._out_of_time():
                completed = False
                break
            try:
                score = self._score_root_move(board, move, player, depth)
            except _SearchAborted:
                completed = False
                break
            if score > best_score:
                best_score = score
                best_move = move

        elapsed_ms = int((self._clock() - start) * 1000)
        self.last_result = SearchResult(
            move=best_move,
            score=best_score,
            depth=depth,
            nodes=self._nodes,
            elapsed_ms=elapsed_ms,
            completed=completed,
        )
        self._state = SearchState.MOVE_SELECTED
        logger.debug(
            "search %s: move=%s score=%s depth=%d nodes=%d elapsed=%dms completed=%s",
            player.name,
            best_move,
            best_score,
            depth,
            self._nodes,
            elapsed_ms,
            completed,
        )
        return self.last_result

    def _out_of_time(self) -> bool:
        return self._clock() > self._deadline

    def _score_root_move(self, board: Board, move: PieceMove, player: Player, depth: int) -> float:
        """候補手1つを評価する。相手を詰ませる手は MATE_SCORE。"""
        new_board = board.apply_move(move)
        opponent = player.opponent
        if rules.is_checkmate(new_board, opponent):
            return MATE_SCORE
        # 指した直後は相手番なので最小化側から探索を始める
        return self._minimax(new_board, depth - 1, opponent, player, -_INF, _INF, maximizing=False)

    def _minimax(
        self,
        board: Board,
        depth: int,
        current: Player,
        root_player: Player,
        alpha: float,
        beta: float,
        maximizing: bool,
    ) -> float:
        """Alpha-beta minimax; leaves are evaluated from root_player's view.

        alpha: 最大化側が保証できる最低スコア
        beta:  最小化側が保証できる最高スコア
        beta <= alpha になった時点でその枝の残りは探索不要。
        """
        self._nodes += 1
        if self._out_of_time():
            raise _SearchAborted
        if depth <= 0:
            return self.evaluate(board, root_player)

        moves = rules.generate_legal_moves(board, current)
        if not moves:
            # 手番側が詰み（または手詰まり）
            return -MATE_SCORE if maximizing else MATE_SCORE

        opponent = current.opponent
        if maximizing:
            best = -_INF
            for move in moves:
                score = self._minimax(
                    board.apply_move(move), depth - 1, opponent, root_player, alpha, beta, False
                )
                best = max(best, score)
                alpha = max(alpha, score)
                if beta <= alpha:
                    break  # βカット
            return best

        best = _INF
        for move in moves:
            score = self._minimax(
                board.apply_move(move), depth - 1, opponent, root_player, alpha, beta, True
            )
            best = min(best, score)
            beta = min(beta, score)
            if beta <= alpha:
                break  # αカット
        return best
