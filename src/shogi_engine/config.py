"""Search and game configuration.

探索エンジンと対局セッションの設定定義。
難易度や思考時間によって探索の深さ・打ち切り時間が変わるため、設定クラスで管理する。
"""

from __future__ import annotations

from dataclasses import dataclass, field

from shogi_engine.game.types import Player

ENGINE_TYPES = ("minimax", "random")


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for SearchEngine / SearchWorker.

    Attributes:
        deep_depth:               残り時間が十分なときの探索深さ
        shallow_depth:            残り時間が少ないときの探索深さ
        deep_search_threshold_ms: deep_depth を使う残り時間の下限（ミリ秒）
        abort_fraction:           持ち時間のこの割合を超えたら探索を打ち切る
        default_time_limit_ms:    time_limit_ms 省略時の持ち時間
        cache_size:               静的評価キャッシュの最大エントリ数
        worker_timeout_ms:        ワーカー待機時間の下限（持ち時間がこれより短くてもこの時間は待つ）
    """

    deep_depth: int = 2
    shallow_depth: int = 1
    deep_search_threshold_ms: int = 500
    abort_fraction: float = 0.9
    default_time_limit_ms: int = 1000
    cache_size: int = 100_000
    worker_timeout_ms: int = 10_000


@dataclass(frozen=True)
class GameConfig:
    """Configuration for GameSession.

    Attributes:
        human_player:         人間が持つ手番（もう一方をエンジンが指す）
        engine_type:          "minimax"（探索エンジン）または "random"
        difficulty_level:     難易度（1〜10）。思考時間に線形に変換する
        time_per_level_ms:    難易度1あたりの思考時間
        min_thinking_time_ms: 思考時間の下限
        max_thinking_time_ms: 思考時間の上限
        search:               探索エンジンの設定
    """

    human_player: Player = Player.SENTE
    engine_type: str = "minimax"
    difficulty_level: int = 5
    time_per_level_ms: int = 200
    min_thinking_time_ms: int = 100
    max_thinking_time_ms: int = 5000
    search: SearchConfig = field(default_factory=SearchConfig)

    def __post_init__(self) -> None:
        if self.engine_type not in ENGINE_TYPES:
            raise ValueError(f"Unknown engine type: {self.engine_type}")

    @property
    def engine_player(self) -> Player:
        return self.human_player.opponent

    @property
    def thinking_time_ms(self) -> int:
        return thinking_time_for_level(self.difficulty_level, self)


MIN_LEVEL = 1
MAX_LEVEL = 10


def thinking_time_for_level(level: int, config: GameConfig | None = None) -> int:
    """Map a difficulty level (1-10) linearly to a thinking time in ms.

    範囲外のレベルは 1〜10 に丸め、結果は [min, max] にクランプする。
    デフォルト設定ではレベル5で1000ミリ秒。
    """
    config = config or GameConfig()
    level = max(MIN_LEVEL, min(MAX_LEVEL, level))
    ms = level * config.time_per_level_ms
    return max(config.min_thinking_time_ms, min(config.max_thinking_time_ms, ms))


# 標準の探索設定（深さ2、持ち時間1秒）
DEFAULT_SEARCH_CONFIG = SearchConfig()

# 応答速度優先の設定（常に深さ1）。テストや弱いAI向け
QUICK_SEARCH_CONFIG = SearchConfig(
    deep_depth=1,
    shallow_depth=1,
    default_time_limit_ms=300,
)
