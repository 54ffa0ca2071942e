"""Tests for the minimax / alpha-beta search engine.

本将棋は合法手が多いので、深さ2の探索は駒の少ない局面で行う。
"""

from __future__ import annotations

import itertools

import pytest

from shogi_engine.config import QUICK_SEARCH_CONFIG, SearchConfig
from shogi_engine.engine.search import (
    MATE_SCORE,
    EvaluationCache,
    SearchEngine,
    SearchState,
)
from shogi_engine.game import rules
from shogi_engine.game.board import Board
from shogi_engine.game.errors import NoLegalMovesError
from shogi_engine.game.moves import PieceMove
from shogi_engine.game.piece import Piece
from shogi_engine.game.position import Position
from shogi_engine.game.types import PieceKind, Player


def _make_board(pieces: list[tuple[int, int, PieceKind, Player]]) -> Board:
    board = Board.empty()
    for row, col, kind, owner in pieces:
        board = board.set_piece((row, col), Piece(kind, owner))
    return board


def _fake_clock(step: float) -> itertools.count:
    """呼ばれるたびに step 秒進む時計。"""
    return itertools.count(0.0, step)


# 金を(1,4)に上がれば頭金の一手詰み
MATE_IN_ONE = [
    (0, 4, PieceKind.KING, Player.GOTE),
    (2, 4, PieceKind.GOLD, Player.SENTE),
    (5, 4, PieceKind.LANCE, Player.SENTE),
    (8, 0, PieceKind.KING, Player.SENTE),
]


class TestEvaluate:
    def test_initial_position_is_balanced(self) -> None:
        engine = SearchEngine()
        board = Board.create_initial_board()
        assert engine.evaluate(board, Player.SENTE) == 0
        assert engine.evaluate(board, Player.GOTE) == 0

    def test_material_advantage(self) -> None:
        engine = SearchEngine()
        board = _make_board(
            [
                (8, 8, PieceKind.KING, Player.SENTE),
                (0, 0, PieceKind.KING, Player.GOTE),
                (6, 6, PieceKind.ROOK, Player.SENTE),
            ]
        )
        assert engine.evaluate(board, Player.SENTE) == 900
        assert engine.evaluate(board, Player.GOTE) == -900

    def test_check_terms(self) -> None:
        engine = SearchEngine()
        board = _make_board(
            [
                (8, 4, PieceKind.KING, Player.SENTE),
                (0, 0, PieceKind.KING, Player.GOTE),
                (4, 0, PieceKind.ROOK, Player.SENTE),
            ]
        )
        # 先手: 飛車900 + 王手ボーナス500、後手: 飛車分 -900 と王手ペナルティ
        assert engine.evaluate(board, Player.SENTE) == 1400
        assert engine.evaluate(board, Player.GOTE) == -1900

    def test_evaluation_is_cached(self) -> None:
        engine = SearchEngine()
        board = Board.create_initial_board()
        engine.evaluate(board, Player.SENTE)
        engine.evaluate(board, Player.SENTE)
        assert engine.cache.hits == 1
        assert engine.cache.misses == 1
        assert len(engine.cache) == 1


class TestSelectMove:
    def test_mate_in_one(self) -> None:
        engine = SearchEngine()
        board = _make_board(MATE_IN_ONE)
        move = engine.select_move(board, Player.SENTE, time_limit_ms=5000)
        assert move == PieceMove(Position(2, 4), Position(1, 4))
        assert engine.last_result is not None
        assert engine.last_result.score == MATE_SCORE
        assert engine.state == SearchState.MOVE_SELECTED

    def test_prefers_free_capture(self) -> None:
        engine = SearchEngine()
        board = _make_board(
            [
                (8, 0, PieceKind.KING, Player.SENTE),
                (0, 8, PieceKind.KING, Player.GOTE),
                (4, 0, PieceKind.ROOK, Player.SENTE),
                (4, 5, PieceKind.GOLD, Player.GOTE),
            ]
        )
        move = engine.select_move(board, Player.SENTE, time_limit_ms=5000)
        assert move == PieceMove(Position(4, 0), Position(4, 5))

    def test_returns_legal_move_from_initial_position(self) -> None:
        engine = SearchEngine(QUICK_SEARCH_CONFIG)
        board = Board.create_initial_board()
        move = engine.select_move(board, Player.GOTE)
        assert move in rules.generate_legal_moves(board, Player.GOTE)

    def test_no_legal_moves_raises(self) -> None:
        engine = SearchEngine()
        board = _make_board(
            [
                (0, 0, PieceKind.KING, Player.SENTE),
                (1, 0, PieceKind.GOLD, Player.GOTE),
                (1, 1, PieceKind.ROOK, Player.GOTE),
            ]
        )
        with pytest.raises(NoLegalMovesError):
            engine.select_move(board, Player.SENTE)
        assert engine.state == SearchState.FAILED

    def test_does_not_mutate_board(self) -> None:
        engine = SearchEngine(QUICK_SEARCH_CONFIG)
        board = _make_board(MATE_IN_ONE)
        before = board.serialize()
        engine.select_move(board, Player.SENTE)
        assert board.serialize() == before


class TestTimeControl:
    def test_deep_depth_with_enough_time(self) -> None:
        engine = SearchEngine()
        engine.search(_make_board(MATE_IN_ONE), Player.SENTE, time_limit_ms=5000)
        assert engine.last_result is not None
        assert engine.last_result.depth == 2

    def test_shallow_depth_when_short_on_time(self) -> None:
        engine = SearchEngine()
        engine.search(_make_board(MATE_IN_ONE), Player.SENTE, time_limit_ms=400)
        assert engine.last_result is not None
        assert engine.last_result.depth == 1

    def test_abort_returns_first_legal_move(self) -> None:
        """時計が1回ごとに1秒進むので、最初の候補手を読む前に打ち切られる。"""
        board = Board.create_initial_board()
        engine = SearchEngine(clock=_fake_clock(1.0).__next__)
        result = engine.search(board, Player.SENTE, time_limit_ms=1000)
        assert not result.completed
        assert result.move == rules.generate_legal_moves(board, Player.SENTE)[0]
        assert engine.state == SearchState.MOVE_SELECTED

    def test_completed_with_frozen_clock(self) -> None:
        board = _make_board(MATE_IN_ONE)
        engine = SearchEngine(clock=lambda: 0.0)
        result = engine.search(board, Player.SENTE, time_limit_ms=1000)
        assert result.completed
        assert result.nodes > 0


class TestEvaluationCache:
    def test_cleared_at_start_of_search(self) -> None:
        engine = SearchEngine(QUICK_SEARCH_CONFIG)
        engine.cache.put("stale", 1)
        engine.select_move(_make_board(MATE_IN_ONE), Player.SENTE)
        assert engine.cache.get("stale") is None

    def test_bounded(self) -> None:
        cache = EvaluationCache(max_entries=2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.put("c", 3)
        assert len(cache) == 2
        assert cache.get("a") is None
        assert cache.get("c") == 3

    def test_disabled(self) -> None:
        engine = SearchEngine(SearchConfig(cache_size=0))
        engine.evaluate(Board.create_initial_board(), Player.SENTE)
        assert len(engine.cache) == 0
