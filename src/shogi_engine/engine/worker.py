"""Off-thread search worker.

探索は CPU を長時間使うので、合法手判定（UI のハイライトなど）を止めないよう
別スレッド（または別プロセス）で実行する。

- 盤面は Board.serialize() したスナップショットとしてワーカーに渡す。
  そのため ProcessPoolExecutor を注入すれば別プロセスでも動く。
- 同時に走る探索は1つだけ。実行中に再度要求すると AlreadyCalculatingError。
- キャンセルは粗い: 実行中の探索そのものは止められず、結果を捨てるだけ。
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any

from shogi_engine.config import SearchConfig
from shogi_engine.engine.search import SearchEngine
from shogi_engine.game.board import Board
from shogi_engine.game.errors import AlreadyCalculatingError, SearchTimeoutError
from shogi_engine.game.moves import PieceMove, move_from_dict, move_to_dict
from shogi_engine.game.types import Player

logger = logging.getLogger(__name__)


def search_snapshot(
    snapshot: dict[str, Any],
    player_name: str,
    time_limit_ms: int,
    config: SearchConfig,
) -> dict[str, Any]:
    """Run one search on a serialized board; executed inside the worker.

    引数・戻り値とも pickle 可能な値だけにしている（プロセス間通信のため）。
    """
    board = Board.deserialize(snapshot)
    engine = SearchEngine(config)
    move = engine.select_move(board, Player[player_name], time_limit_ms)
    return move_to_dict(move)


class SearchWorker:
    """Runs SearchEngine off the caller's thread, one request at a time."""

    def __init__(
        self,
        config: SearchConfig | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="shogi-search"
        )
        self._lock = threading.Lock()
        self._pending: asyncio.Future[dict[str, Any]] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_calculating(self) -> bool:
        with self._lock:
            return self._pending is not None

    async def select_move(
        self,
        board: Board,
        player: Player,
        time_limit_ms: int | None = None,
    ) -> PieceMove:
        """Submit a search and await its move.

        Raises:
            AlreadyCalculatingError: 前の探索がまだ終わっていない
            SearchTimeoutError: max(time_limit_ms, worker_timeout_ms) 以内に終わらない
            NoLegalMovesError: 合法手がない（探索側の例外をそのまま伝える）
            asyncio.CancelledError: cancel() で結果が破棄された
        """
        if time_limit_ms is None:
            time_limit_ms = self.config.default_time_limit_ms

        loop = asyncio.get_running_loop()
        with self._lock:
            if self._pending is not None:
                raise AlreadyCalculatingError("Search is already in progress")
            future: Future[dict[str, Any]] = self._executor.submit(
                search_snapshot, board.serialize(), player.name, time_limit_ms, self.config
            )
            pending = asyncio.wrap_future(future, loop=loop)
            self._pending = pending
            self._loop = loop

        timeout_s = max(time_limit_ms, self.config.worker_timeout_ms) / 1000
        try:
            result = await asyncio.wait_for(pending, timeout_s)
        except asyncio.TimeoutError:
            logger.warning("search for %s timed out after %.1fs", player.name, timeout_s)
            raise SearchTimeoutError(f"Search did not finish within {timeout_s:.1f}s") from None
        finally:
            with self._lock:
                if self._pending is pending:
                    self._pending = None
                    self._loop = None

        return move_from_dict(result)  # type: ignore[return-value]

    def cancel(self) -> None:
        """Discard the in-flight search result, if any."""
        with self._lock:
            pending, loop = self._pending, self._loop
            self._pending = None
            self._loop = None
        if pending is not None and loop is not None:
            logger.warning("discarding in-flight search")
            loop.call_soon_threadsafe(pending.cancel)

    def close(self) -> None:
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
