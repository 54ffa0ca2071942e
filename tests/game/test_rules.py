"""Tests for legal move generation and rule checks (本将棋).

Coverage map:
  - Initial position: 30 legal moves for either side
  - Self-check filtering: pinned pieces, check evasion
  - Checkmate: gold at the head of the king, non-mate escape by capture
  - Promotion: optional, mandatory (pawn/lance/knight), leaving the zone
  - Special rules: Nifu (二歩), dead squares, Uchifuzume (打ち歩詰め)

Helper: _make_board(pieces)
  pieces: list of (row, col, PieceKind, Player)
"""

from __future__ import annotations

from shogi_engine.game import rules
from shogi_engine.game.board import Board
from shogi_engine.game.moves import PieceMove
from shogi_engine.game.piece import Piece
from shogi_engine.game.position import Position
from shogi_engine.game.types import PieceKind, Player


def _make_board(pieces: list[tuple[int, int, PieceKind, Player]]) -> Board:
    board = Board.empty()
    for row, col, kind, owner in pieces:
        board = board.set_piece((row, col), Piece(kind, owner))
    return board


def _targets(moves: list[PieceMove]) -> set[tuple[int, int]]:
    return {(m.to_pos.row, m.to_pos.column) for m in moves}


# 玉の頭に金: 先手玉(0,0) に後手金(1,0)、金は後手飛(1,1)が支えている
GOLD_AT_HEAD = [
    (0, 0, PieceKind.KING, Player.SENTE),
    (1, 0, PieceKind.GOLD, Player.GOTE),
    (1, 1, PieceKind.ROOK, Player.GOTE),
]


class TestInitialPosition:
    def test_sente_has_thirty_moves(self) -> None:
        board = Board.create_initial_board()
        assert len(rules.generate_legal_moves(board, Player.SENTE)) == 30

    def test_gote_has_thirty_moves(self) -> None:
        board = Board.create_initial_board()
        assert len(rules.generate_legal_moves(board, Player.GOTE)) == 30

    def test_nobody_in_check(self) -> None:
        board = Board.create_initial_board()
        assert not rules.is_in_check(board, Player.SENTE)
        assert not rules.is_in_check(board, Player.GOTE)

    def test_no_move_captures_own_piece(self) -> None:
        board = Board.create_initial_board()
        for move in rules.generate_legal_moves(board, Player.SENTE):
            target = board.get_piece(move.to_pos)
            assert target is None or target.owner == Player.GOTE

    def test_arguments_are_not_mutated(self) -> None:
        board = Board.create_initial_board()
        before = board.serialize()
        rules.generate_legal_moves(board, Player.SENTE)
        rules.is_checkmate(board, Player.GOTE)
        assert board.serialize() == before


class TestCheck:
    def test_no_king_is_not_check(self) -> None:
        board = _make_board([(4, 4, PieceKind.ROOK, Player.GOTE)])
        assert not rules.is_in_check(board, Player.SENTE)

    def test_rook_gives_check(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceKind.KING, Player.SENTE),
                (0, 4, PieceKind.ROOK, Player.GOTE),
            ]
        )
        assert rules.is_in_check(board, Player.SENTE)

    def test_blocked_rook_gives_no_check(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceKind.KING, Player.SENTE),
                (5, 4, PieceKind.PAWN, Player.SENTE),
                (0, 4, PieceKind.ROOK, Player.GOTE),
            ]
        )
        assert not rules.is_in_check(board, Player.SENTE)

    def test_pinned_piece_stays_on_line(self) -> None:
        """飛車に釘付けされた金は縦にしか動けない。"""
        board = _make_board(
            [
                (8, 4, PieceKind.KING, Player.SENTE),
                (6, 4, PieceKind.GOLD, Player.SENTE),
                (0, 4, PieceKind.ROOK, Player.GOTE),
            ]
        )
        moves = rules.legal_moves_from(board, Position(6, 4), Player.SENTE)
        assert _targets(moves) == {(5, 4), (7, 4)}

    def test_every_legal_move_resolves_check(self) -> None:
        board = _make_board(
            [
                (8, 4, PieceKind.KING, Player.SENTE),
                (8, 0, PieceKind.GOLD, Player.SENTE),
                (0, 4, PieceKind.ROOK, Player.GOTE),
            ]
        )
        moves = rules.generate_legal_moves(board, Player.SENTE)
        assert moves
        for move in moves:
            assert not rules.is_in_check(board.apply_move(move), Player.SENTE)


class TestCheckmate:
    def test_gold_at_head_is_mate(self) -> None:
        board = _make_board(GOLD_AT_HEAD)
        assert rules.is_in_check(board, Player.SENTE)
        assert rules.generate_legal_moves(board, Player.SENTE) == []
        assert rules.is_checkmate(board, Player.SENTE)

    def test_unsupported_gold_can_be_captured(self) -> None:
        board = _make_board(
            [
                (0, 4, PieceKind.KING, Player.SENTE),
                (1, 4, PieceKind.GOLD, Player.GOTE),
            ]
        )
        assert rules.is_in_check(board, Player.SENTE)
        assert not rules.is_checkmate(board, Player.SENTE)
        assert (1, 4) in _targets(rules.generate_legal_moves(board, Player.SENTE))

    def test_not_in_check_is_not_mate(self) -> None:
        board = _make_board([(0, 0, PieceKind.KING, Player.SENTE)])
        assert not rules.is_checkmate(board, Player.SENTE)


class TestPromotion:
    def test_zone(self) -> None:
        assert rules.in_promotion_zone(Player.SENTE, 2)
        assert not rules.in_promotion_zone(Player.SENTE, 3)
        assert rules.in_promotion_zone(Player.GOTE, 6)
        assert not rules.in_promotion_zone(Player.GOTE, 5)

    def test_pawn_to_last_rank_must_promote(self) -> None:
        board = _make_board([(1, 4, PieceKind.PAWN, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(1, 4), Player.SENTE)
        assert moves == [PieceMove(Position(1, 4), Position(0, 4), True)]

    def test_gote_lance_to_last_rank_must_promote(self) -> None:
        board = _make_board([(6, 0, PieceKind.LANCE, Player.GOTE)])
        moves = rules.legal_moves_from(board, Position(6, 0), Player.GOTE)
        to_last = [m for m in moves if m.to_pos == Position(8, 0)]
        assert to_last == [PieceMove(Position(6, 0), Position(8, 0), True)]

    def test_knight_to_last_two_ranks_must_promote(self) -> None:
        board = _make_board([(3, 4, PieceKind.KNIGHT, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(3, 4), Player.SENTE)
        assert len(moves) == 2
        assert all(m.is_promotion for m in moves)

    def test_entering_zone_offers_both(self) -> None:
        board = _make_board([(3, 4, PieceKind.PAWN, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(3, 4), Player.SENTE)
        assert [m.is_promotion for m in moves] == [True, False]

    def test_leaving_zone_offers_both(self) -> None:
        board = _make_board([(2, 4, PieceKind.SILVER, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(2, 4), Player.SENTE)
        to_back = [m.is_promotion for m in moves if m.to_pos == Position(3, 3)]
        assert to_back == [True, False]

    def test_outside_zone_no_promotion(self) -> None:
        board = _make_board([(6, 4, PieceKind.PAWN, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(6, 4), Player.SENTE)
        assert moves == [PieceMove(Position(6, 4), Position(5, 4), False)]

    def test_gold_never_promotes(self) -> None:
        board = _make_board([(3, 4, PieceKind.GOLD, Player.SENTE)])
        moves = rules.legal_moves_from(board, Position(3, 4), Player.SENTE)
        assert moves and not any(m.is_promotion for m in moves)

    def test_rook_destinations_from_center(self) -> None:
        board = _make_board(
            [
                (4, 4, PieceKind.ROOK, Player.SENTE),
                (8, 8, PieceKind.KING, Player.SENTE),
            ]
        )
        moves = rules.legal_moves_from(board, Position(4, 4), Player.SENTE)
        assert len(_targets(moves)) == 16


class TestNifu:
    def test_own_pawn_in_column(self) -> None:
        board = _make_board([(6, 3, PieceKind.PAWN, Player.SENTE)])
        assert rules.is_nifu(board, 3, Player.SENTE)
        assert not rules.is_nifu(board, 4, Player.SENTE)

    def test_enemy_pawn_does_not_count(self) -> None:
        board = _make_board([(2, 3, PieceKind.PAWN, Player.GOTE)])
        assert not rules.is_nifu(board, 3, Player.SENTE)

    def test_off_board_column(self) -> None:
        """盤外の筋は二歩にならない（隣の段に回り込まない）。"""
        board = _make_board([(3, 8, PieceKind.PAWN, Player.SENTE)])
        assert not rules.is_nifu(board, -1, Player.SENTE)
        assert not rules.is_nifu(Board.empty(), 9, Player.SENTE)

    def test_tokin_does_not_count(self) -> None:
        board = _make_board([(2, 3, PieceKind.TOKIN, Player.SENTE)])
        assert not rules.is_nifu(board, 3, Player.SENTE)

    def test_pawn_drops_skip_nifu_column(self) -> None:
        board = _make_board(
            [
                (8, 8, PieceKind.KING, Player.SENTE),
                (0, 0, PieceKind.KING, Player.GOTE),
                (6, 3, PieceKind.PAWN, Player.SENTE),
            ]
        )
        drops = rules.legal_drop_positions(board, PieceKind.PAWN, Player.SENTE)
        assert drops
        assert all(p.column != 3 for p in drops)
