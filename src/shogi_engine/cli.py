"""CLI entry point for shogi-engine: Human vs search engine.

コマンドラインで動く本将棋の対局プログラム。
プレイヤー（先手）対エンジン（後手）で対局できる。

起動方法: `shogi-cli [--level N] [--engine minimax|random]`
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from shogi_engine.config import ENGINE_TYPES, MAX_LEVEL, MIN_LEVEL, GameConfig
from shogi_engine.game.display import format_board
from shogi_engine.game.moves import DropMove, format_move
from shogi_engine.game.types import Player
from shogi_engine.session import GameSession


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="shogi-cli", description="Play shogi against the engine.")
    parser.add_argument(
        "--level",
        type=int,
        default=5,
        help=f"difficulty {MIN_LEVEL}-{MAX_LEVEL} (thinking time grows with the level)",
    )
    parser.add_argument("--engine", choices=ENGINE_TYPES, default="minimax")
    return parser.parse_args(argv)


async def _play(session: GameSession) -> None:
    """Run the game loop until the game ends or input is closed.

    ゲームの流れ:
    1. 盤面を表示
    2. 合法手（盤上の手と打つ手）を番号付きで表示して入力を求める
    3. エンジンが応答する
    4. 終局まで繰り返す
    """
    while not session.state.is_terminal:
        state = session.state
        print(format_board(state.board, state.captured))
        if state.is_check:
            print("王手!")
        print()

        if state.current_player == session.human_player:
            moves = state.legal_moves()
            print("Legal moves:")
            for i, m in enumerate(moves):
                print(f"  {i}: {format_move(m)}")
            print("  r: resign")
            print()

            # 入力検証ループ（正しい番号が入力されるまで繰り返す）
            while True:
                try:
                    choice = input("Your move (number): ").strip()
                except (EOFError, KeyboardInterrupt):
                    print("\nGame aborted.")
                    return
                if choice == "r":
                    session.resign()
                    break
                try:
                    idx = int(choice)
                except ValueError:
                    print("Enter a number.")
                    continue
                if 0 <= idx < len(moves):
                    move = moves[idx]
                    if isinstance(move, DropMove):
                        session.drop_piece(move.kind, move.to_pos)
                    else:
                        session.move_piece(move.from_pos, move.to_pos, move.is_promotion)
                    break
                print(f"Invalid: choose 0-{len(moves) - 1}")
        else:
            print("Engine is thinking...")
            new_state = await session.play_engine_move()
            print(f"Engine plays: {format_move(new_state.history[-1].move)}")

        print()

    # 終局: 結果を表示
    state = session.state
    print(format_board(state.board, state.captured))
    print()
    print(f"Result: {state.status.value}")
    if state.winner == session.human_player:
        print("You win!")
    elif state.winner == session.engine_player:
        print("Engine wins!")


def main(argv: list[str] | None = None) -> None:
    """Run a Human (SENTE) vs engine (GOTE) game."""
    # 対局の進行は画面に出すので、ログは警告以上だけ
    logging.basicConfig(level=logging.WARNING)
    args = _parse_args(argv)
    config = GameConfig(
        human_player=Player.SENTE,
        engine_type=args.engine,
        difficulty_level=args.level,
    )

    print("=== 本将棋 ===")
    print("You are SENTE. Engine is GOTE (marked with v).")
    print()

    session = GameSession(config)
    try:
        asyncio.run(_play(session))
    finally:
        session.close()


if __name__ == "__main__":
    main()
