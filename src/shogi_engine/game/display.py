"""Terminal display for 本将棋."""

from __future__ import annotations

from shogi_engine.game.board import Board
from shogi_engine.game.state import CapturedPieces
from shogi_engine.game.types import COLS, HAND_PIECE_KINDS, ROWS, PieceKind, Player

# Display characters for pieces
PIECE_CHARS: dict[PieceKind, str] = {
    PieceKind.PAWN: "歩",
    PieceKind.LANCE: "香",
    PieceKind.KNIGHT: "桂",
    PieceKind.SILVER: "銀",
    PieceKind.GOLD: "金",
    PieceKind.BISHOP: "角",
    PieceKind.ROOK: "飛",
    PieceKind.KING: "玉",
    PieceKind.TOKIN: "と",
    PieceKind.PROMOTED_LANCE: "杏",
    PieceKind.PROMOTED_KNIGHT: "圭",
    PieceKind.PROMOTED_SILVER: "全",
    PieceKind.HORSE: "馬",
    PieceKind.DRAGON: "龍",
}

_ROW_LABELS = ["一", "二", "三", "四", "五", "六", "七", "八", "九"]


def format_board(board: Board, captured: CapturedPieces | None = None) -> str:
    """Format the board (and hands, if given) for terminal display.

    後手の駒には "v" を付ける。列見出しは0始まりの列番号。
    """
    lines: list[str] = []

    if captured is not None:
        lines.append(f"後手持駒: {format_hand(captured, Player.GOTE)}")
    lines.append("  " + "  ".join(str(c) for c in range(COLS)))
    lines.append("+--+--+--+--+--+--+--+--+--+")

    for r in range(ROWS):
        row_str = "|"
        for c in range(COLS):
            piece = board.piece_at(r, c)
            if piece is None:
                row_str += "  |"
            else:
                mark = "v" if piece.owner == Player.GOTE else " "
                row_str += f"{mark}{PIECE_CHARS[piece.kind]}|"
        lines.append(f"{row_str} {r}{_ROW_LABELS[r]}")
        lines.append("+--+--+--+--+--+--+--+--+--+")

    if captured is not None:
        lines.append(f"先手持駒: {format_hand(captured, Player.SENTE)}")

    return "\n".join(lines)


def format_hand(captured: CapturedPieces, player: Player) -> str:
    kinds = captured.kinds(player)
    if not kinds:
        return "なし"
    pieces: list[str] = []
    for kind in HAND_PIECE_KINDS:
        count = kinds.count(kind)
        if count == 1:
            pieces.append(PIECE_CHARS[kind])
        elif count > 1:
            pieces.append(f"{PIECE_CHARS[kind]}{count}")
    return " ".join(pieces)
