"""GameState for 本将棋.

本将棋の対局状態（盤面・手番・持ち駒・棋譜・終局状態）。
盤面と同じくイミュータブルで、手を指すと新しい GameState を返す。

Terminal conditions（終局条件）:
1. 詰み: 王手されていて盤上の手も打ち手もない → 手を指した側の勝ち
2. 手詰まり: 王手されていないが指せる手がない → 将棋では指せない側の負け
3. 投了
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from shogi_engine.game import rules
from shogi_engine.game.board import Board
from shogi_engine.game.errors import InvalidMoveError
from shogi_engine.game.moves import DropMove, Move, PieceMove, move_to_dict
from shogi_engine.game.piece import Piece
from shogi_engine.game.position import Position
from shogi_engine.game.types import PieceKind, Player


class GameStatus(str, Enum):
    PLAYING = "playing"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    RESIGNED = "resigned"


_TERMINAL_STATUSES = frozenset({GameStatus.CHECKMATE, GameStatus.STALEMATE, GameStatus.RESIGNED})


@dataclass(frozen=True)
class CapturedPieces:
    """Pieces held in hand by each player (持ち駒).

    持ち駒は常に未成・盤外（position=None）・取った側の所有で保持する。
    """

    sente: tuple[Piece, ...] = ()
    gote: tuple[Piece, ...] = ()

    def for_player(self, player: Player) -> tuple[Piece, ...]:
        return self.sente if player == Player.SENTE else self.gote

    def kinds(self, player: Player) -> list[PieceKind]:
        return [p.kind for p in self.for_player(player)]

    def count(self, player: Player, kind: PieceKind) -> int:
        return sum(1 for p in self.for_player(player) if p.kind is kind)

    def add(self, player: Player, piece: Piece) -> CapturedPieces:
        """取った駒を持ち駒に加える。成り駒は元の駒種に戻す。"""
        held = Piece(piece.demote().kind, player, None)
        return self._replace(player, self.for_player(player) + (held,))

    def remove(self, player: Player, kind: PieceKind) -> CapturedPieces:
        """持ち駒から1枚取り除く。持っていなければ InvalidMoveError。"""
        hand = list(self.for_player(player))
        for i, piece in enumerate(hand):
            if piece.kind is kind:
                del hand[i]
                return self._replace(player, tuple(hand))
        raise InvalidMoveError(f"{player.name} has no {kind.value} in hand")

    def _replace(self, player: Player, hand: tuple[Piece, ...]) -> CapturedPieces:
        if player == Player.SENTE:
            return CapturedPieces(sente=hand, gote=self.gote)
        return CapturedPieces(sente=self.sente, gote=hand)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "sente": [p.kind.value for p in self.sente],
            "gote": [p.kind.value for p in self.gote],
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryEntry:
    """One applied move (棋譜の1手)."""

    move: Move
    player: Player
    piece_kind: PieceKind
    captured_kind: PieceKind | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def is_promotion(self) -> bool:
        return isinstance(self.move, PieceMove) and self.move.is_promotion

    def to_dict(self) -> dict[str, Any]:
        return {
            "move": move_to_dict(self.move),
            "player": self.player.name,
            "piece": self.piece_kind.value,
            "captured": self.captured_kind.value if self.captured_kind else None,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class GameState:
    """Immutable game state.

    move_piece / drop_piece は手を検証してから適用し、不正な手には
    InvalidMoveError を送出する。元の GameState は変化しない。
    """

    board: Board = field(default_factory=Board.create_initial_board)
    current_player: Player = Player.SENTE
    history: tuple[HistoryEntry, ...] = ()
    captured: CapturedPieces = field(default_factory=CapturedPieces)
    status: GameStatus = GameStatus.PLAYING
    is_check: bool = False
    winner: Player | None = None

    @classmethod
    def new(cls) -> GameState:
        """平手の初期局面、先手番。"""
        return cls()

    @property
    def is_terminal(self) -> bool:
        return self.status in _TERMINAL_STATUSES

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def legal_moves(self) -> list[Move]:
        """盤上の合法手と打ち手をすべて返す。終局後は空。"""
        if self.is_terminal:
            return []
        player = self.current_player
        moves: list[Move] = list(rules.generate_legal_moves(self.board, player))
        moves.extend(rules.generate_legal_drops(self.board, player, self.captured.kinds(player)))
        return moves

    def legal_destinations(self, from_pos: Position) -> list[Position]:
        """選択した駒の移動可能なマス（成り・不成の重複は除く）。"""
        if self.is_terminal:
            return []
        seen: list[Position] = []
        for move in rules.legal_moves_from(self.board, from_pos, self.current_player):
            if move.to_pos not in seen:
                seen.append(move.to_pos)
        return seen

    def legal_drop_positions(self, kind: PieceKind) -> list[Position]:
        if self.is_terminal or self.captured.count(self.current_player, kind) == 0:
            return []
        return rules.legal_drop_positions(self.board, kind, self.current_player)

    def can_promote(self, from_pos: Position, to_pos: Position) -> bool:
        """from→to の合法手に成る手が含まれるなら True。"""
        return any(
            m.to_pos == to_pos and m.is_promotion
            for m in rules.legal_moves_from(self.board, from_pos, self.current_player)
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def apply(self, move: Move) -> GameState:
        if isinstance(move, DropMove):
            return self.drop_piece(move.kind, move.to_pos)
        return self.move_piece(move.from_pos, move.to_pos, move.is_promotion)

    def move_piece(self, from_pos: Position, to_pos: Position, promote: bool = False) -> GameState:
        """Validate and play a board move.

        強制成りの手は promote=False でも成りとして指す。
        成れない手で promote=True を指定した場合は不正な手として扱う。
        """
        self._ensure_playing()
        player = self.current_player
        piece = self.board.get_piece(from_pos)
        if piece is None:
            raise InvalidMoveError(f"No piece at {from_pos}")
        if piece.owner != player:
            raise InvalidMoveError(f"It is {player.name}'s turn")

        flags = {
            m.is_promotion
            for m in rules.legal_moves_from(self.board, from_pos, player)
            if m.to_pos == to_pos
        }
        if not flags:
            raise InvalidMoveError(f"{from_pos} -> {to_pos} cannot be played")
        if promote and True not in flags:
            raise InvalidMoveError(f"{piece.kind.value} cannot promote on {from_pos} -> {to_pos}")
        is_promotion = promote or False not in flags

        move = PieceMove(from_pos, to_pos, is_promotion)
        target = self.board.get_piece(to_pos)
        captured = self.captured
        if target is not None:
            captured = captured.add(player, target)

        entry = HistoryEntry(
            move=move,
            player=player,
            piece_kind=piece.kind,
            captured_kind=target.kind if target is not None else None,
        )
        return self._advance(self.board.apply_move(move), captured, entry)

    def drop_piece(self, kind: PieceKind, to_pos: Position) -> GameState:
        """Validate and play a drop (持ち駒を打つ)."""
        self._ensure_playing()
        player = self.current_player
        board = self.board

        if self.captured.count(player, kind) == 0:
            raise InvalidMoveError(f"{player.name} has no {kind.value} in hand")
        if board.get_piece(to_pos) is not None:
            raise InvalidMoveError(f"Square {to_pos} is occupied")
        if rules.is_dead_square(kind, player, to_pos.row):
            raise InvalidMoveError(f"{kind.value} on {to_pos} would have no further moves")
        if kind is PieceKind.PAWN and rules.is_nifu(board, to_pos.column, player):
            raise InvalidMoveError(f"Two pawns in column {to_pos.column} (nifu)")

        move = DropMove(kind, to_pos)
        new_board = board.apply_drop(move, player)
        if rules.is_in_check(new_board, player):
            raise InvalidMoveError(f"Dropping on {to_pos} leaves the king in check")
        if kind is PieceKind.PAWN and rules.is_drop_pawn_mate(board, to_pos, player):
            raise InvalidMoveError("Checkmate by a dropped pawn is not allowed")

        entry = HistoryEntry(move=move, player=player, piece_kind=kind)
        return self._advance(new_board, self.captured.remove(player, kind), entry)

    def resign(self, player: Player) -> GameState:
        """投了。相手の勝ちで終局する。"""
        self._ensure_playing()
        return GameState(
            board=self.board,
            current_player=self.current_player,
            history=self.history,
            captured=self.captured,
            status=GameStatus.RESIGNED,
            is_check=self.is_check,
            winner=player.opponent,
        )

    def _ensure_playing(self) -> None:
        if self.is_terminal:
            raise InvalidMoveError("Game is already over")

    def _advance(self, board: Board, captured: CapturedPieces, entry: HistoryEntry) -> GameState:
        """手番を交代し、王手・詰み・手詰まりを判定した新しい状態を返す。"""
        mover = entry.player
        next_player = mover.opponent
        is_check = rules.is_in_check(board, next_player)

        winner: Player | None = None
        if rules.has_legal_move(board, next_player, captured.kinds(next_player)):
            status = GameStatus.CHECK if is_check else GameStatus.PLAYING
        else:
            status = GameStatus.CHECKMATE if is_check else GameStatus.STALEMATE
            winner = mover

        return GameState(
            board=board,
            current_player=next_player,
            history=self.history + (entry,),
            captured=captured,
            status=status,
            is_check=is_check,
            winner=winner,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON 変換用の辞書（Web API のレスポンスに使う）。"""
        return {
            "board": self.board.serialize(),
            "current_player": self.current_player.name,
            "status": self.status.value,
            "is_check": self.is_check,
            "winner": self.winner.name if self.winner is not None else None,
            "captured": self.captured.to_dict(),
            "history": [entry.to_dict() for entry in self.history],
        }
