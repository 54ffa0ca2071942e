"""Game session: one human against one engine.

対局セッション: 人間の手番とエンジンの手番を管理し、現在の GameState を保持する。

GameState 自体はイミュータブルなので、セッションが持つ可変な状態は
「現在の局面への参照」だけ。手を検証・適用してから、ロックの中で差し替える。
"""

from __future__ import annotations

import logging
import random
import threading

from shogi_engine.config import GameConfig
from shogi_engine.engine.random_player import random_move
from shogi_engine.engine.worker import SearchWorker
from shogi_engine.game.errors import AlreadyCalculatingError, InvalidMoveError, NoLegalMovesError
from shogi_engine.game.moves import Move, format_move
from shogi_engine.game.position import Position
from shogi_engine.game.state import GameState
from shogi_engine.game.types import PieceKind, Player

logger = logging.getLogger(__name__)


class GameSession:
    """Holds the live GameState for a human colour and an engine colour."""

    def __init__(
        self,
        config: GameConfig | None = None,
        worker: SearchWorker | None = None,
        state: GameState | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.worker = worker or SearchWorker(self.config.search)
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._state = state or GameState.new()
        self._thinking = False

    @property
    def state(self) -> GameState:
        with self._lock:
            return self._state

    @property
    def human_player(self) -> Player:
        return self.config.human_player

    @property
    def engine_player(self) -> Player:
        return self.config.engine_player

    @property
    def is_engine_thinking(self) -> bool:
        with self._lock:
            return self._thinking

    @property
    def is_human_turn(self) -> bool:
        state = self.state
        return not state.is_terminal and state.current_player == self.human_player

    # ------------------------------------------------------------------
    # Human side
    # ------------------------------------------------------------------

    def legal_destinations(self, from_pos: Position) -> list[Position]:
        if not self._human_may_act():
            return []
        return self.state.legal_destinations(from_pos)

    def legal_drop_positions(self, kind: PieceKind) -> list[Position]:
        if not self._human_may_act():
            return []
        return self.state.legal_drop_positions(kind)

    def can_promote(self, from_pos: Position, to_pos: Position) -> bool:
        return self._human_may_act() and self.state.can_promote(from_pos, to_pos)

    def move_piece(self, from_pos: Position, to_pos: Position, promote: bool = False) -> GameState:
        with self._lock:
            self._check_human_turn()
            self._state = self._state.move_piece(from_pos, to_pos, promote)
            new_state = self._state
        self._log_move(new_state)
        return new_state

    def drop_piece(self, kind: PieceKind, to_pos: Position) -> GameState:
        with self._lock:
            self._check_human_turn()
            self._state = self._state.drop_piece(kind, to_pos)
            new_state = self._state
        self._log_move(new_state)
        return new_state

    def resign(self, player: Player | None = None) -> GameState:
        """投了する。player 省略時は人間側の投了。

        探索中でも投了できる。その探索の結果は play_engine_move 側で捨てる。
        """
        player = self.human_player if player is None else player
        with self._lock:
            self._state = self._state.resign(player)
            new_state = self._state
        logger.info("%s resigned; %s wins", player.name, player.opponent.name)
        return new_state

    def _human_may_act(self) -> bool:
        with self._lock:
            state, thinking = self._state, self._thinking
        return not thinking and not state.is_terminal and state.current_player == self.human_player

    def _check_human_turn(self) -> None:
        # self._lock を保持した状態で呼ぶこと
        if self._thinking:
            raise InvalidMoveError("The engine is thinking")
        if self._state.is_terminal:
            raise InvalidMoveError("Game is already over")
        if self._state.current_player != self.human_player:
            raise InvalidMoveError(f"It is {self._state.current_player.name}'s turn")

    # ------------------------------------------------------------------
    # Engine side
    # ------------------------------------------------------------------

    async def play_engine_move(self) -> GameState:
        """Let the engine choose and play one move for its colour.

        Raises:
            AlreadyCalculatingError: エンジンが既に思考中
            InvalidMoveError: 終局後、またはエンジンの手番ではない
            SearchTimeoutError: 探索が時間内に終わらない
        """
        with self._lock:
            if self._thinking:
                raise AlreadyCalculatingError("The engine is already thinking")
            state = self._state
            if state.is_terminal:
                raise InvalidMoveError("Game is already over")
            if state.current_player != self.engine_player:
                raise InvalidMoveError(f"It is {state.current_player.name}'s turn")
            self._thinking = True

        try:
            move = await self._choose_move(state)
        finally:
            with self._lock:
                self._thinking = False

        with self._lock:
            if self._state is not state:
                # 思考中に投了された
                logger.warning("position changed during search; discarding %s", format_move(move))
                return self._state
            self._state = state.apply(move)
            new_state = self._state
        self._log_move(new_state)
        return new_state

    async def _choose_move(self, state: GameState) -> Move:
        if self.config.engine_type == "random":
            return random_move(state, self._rng)
        try:
            return await self.worker.select_move(
                state.board, state.current_player, self.config.thinking_time_ms
            )
        except NoLegalMovesError:
            # 探索は盤上の手だけを読む。打つ手しか残っていなければそこから選ぶ
            if not state.legal_moves():
                raise
            logger.warning("no board move for %s; choosing a drop", state.current_player.name)
            return random_move(state, self._rng)

    def close(self) -> None:
        self.worker.close()

    def _log_move(self, state: GameState) -> None:
        entry = state.history[-1]
        logger.info(
            "%s plays %s (%s)", entry.player.name, format_move(entry.move), state.status.value
        )
