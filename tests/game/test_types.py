"""Tests for 本将棋 basic types and movement tables."""

from __future__ import annotations

from shogi_engine.game.types import (
    HAND_PIECE_KINDS,
    KNIGHT_MOVES,
    NUM_SQUARES,
    PROMOTED_KINDS,
    PROMOTION_MAP,
    SLIDE_MOVES,
    STEP_MOVES,
    UNPROMOTION_MAP,
    PieceKind,
    Player,
)


class TestPlayer:
    def test_values(self) -> None:
        assert Player.SENTE == 0
        assert Player.GOTE == 1

    def test_opponent(self) -> None:
        assert Player.SENTE.opponent == Player.GOTE
        assert Player.GOTE.opponent == Player.SENTE

    def test_forward(self) -> None:
        """先手は行が減る方向、後手は増える方向に進む。"""
        assert Player.SENTE.forward == -1
        assert Player.GOTE.forward == 1


class TestPieceKind:
    def test_fourteen_kinds(self) -> None:
        assert len(PieceKind) == 14

    def test_value_is_name(self) -> None:
        for kind in PieceKind:
            assert kind.value == kind.name

    def test_promotion_map_roundtrip(self) -> None:
        for base, promoted in PROMOTION_MAP.items():
            assert UNPROMOTION_MAP[promoted] == base

    def test_unpromotable_kinds(self) -> None:
        assert PieceKind.KING not in PROMOTION_MAP
        assert PieceKind.GOLD not in PROMOTION_MAP
        for kind in PROMOTED_KINDS:
            assert kind not in PROMOTION_MAP

    def test_hand_piece_kinds(self) -> None:
        assert len(HAND_PIECE_KINDS) == 7
        assert PieceKind.KING not in HAND_PIECE_KINDS
        assert all(kind not in PROMOTED_KINDS for kind in HAND_PIECE_KINDS)


class TestMovementTables:
    def test_num_squares(self) -> None:
        assert NUM_SQUARES == 81

    def test_promoted_minor_pieces_move_like_gold(self) -> None:
        gold = STEP_MOVES[PieceKind.GOLD]
        for kind in (
            PieceKind.TOKIN,
            PieceKind.PROMOTED_LANCE,
            PieceKind.PROMOTED_KNIGHT,
            PieceKind.PROMOTED_SILVER,
        ):
            assert STEP_MOVES[kind] == gold

    def test_knight_jumps_forward_only(self) -> None:
        assert all(dr == -2 for dr, _ in KNIGHT_MOVES)

    def test_lance_slides_forward_only(self) -> None:
        assert SLIDE_MOVES[PieceKind.LANCE] == [(-1, 0)]

    def test_horse_and_dragon_extra_steps(self) -> None:
        """馬は縦横1マス、龍は斜め1マスを追加で持つ。"""
        assert all(abs(dr) + abs(dc) == 1 for dr, dc in STEP_MOVES[PieceKind.HORSE])
        assert all(abs(dr) == 1 and abs(dc) == 1 for dr, dc in STEP_MOVES[PieceKind.DRAGON])
