"""FastAPI web application for playing shogi against the search engine.

FastAPI を使った将棋 Web API。人間（既定は先手）とエンジンが対局する。
座標はすべて 0 始まりの (row, column)。

エンドポイント:
  POST /api/new-game               新規対局を開始（ゲームIDを返す）
  GET  /api/state/{id}             現在の局面情報を取得
  GET  /api/legal-moves/{id}       選択した駒の移動先（?row=&column=）
  GET  /api/legal-drops/{id}       持ち駒を打てるマス（?kind=）
  POST /api/move                   人間が駒を動かす
  POST /api/drop                   人間が持ち駒を打つ
  POST /api/resign                 人間が投了する
  POST /api/engine-move/{id}       エンジンが1手指す
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shogi_engine.config import GameConfig
from shogi_engine.game.display import format_board
from shogi_engine.game.errors import (
    AlreadyCalculatingError,
    NoLegalMovesError,
    SearchTimeoutError,
    ShogiError,
)
from shogi_engine.game.position import Position
from shogi_engine.game.types import PieceKind, Player
from shogi_engine.session import GameSession

logger = logging.getLogger(__name__)

app = FastAPI(title="Shogi Engine")

# 対局情報のインメモリストレージ（サーバ再起動で消える）
_sessions: dict[str, GameSession] = {}

# ドメイン例外 → HTTP ステータス（ここにないものは 400）
_ERROR_STATUS: dict[type[ShogiError], int] = {
    AlreadyCalculatingError: 409,
    NoLegalMovesError: 409,
    SearchTimeoutError: 504,
}


class PositionModel(BaseModel):
    row: int = Field(..., ge=0, le=8)
    column: int = Field(..., ge=0, le=8)

    def to_position(self) -> Position:
        return Position(self.row, self.column)


class NewGameRequest(BaseModel):
    """新規対局リクエストのスキーマ。"""

    human_player: Player = Player.SENTE  # 0=先手, 1=後手
    engine_type: str = Field("minimax", pattern="^(minimax|random)$")
    difficulty_level: int = Field(5, ge=1, le=10)


class MoveRequest(BaseModel):
    game_id: str
    from_pos: PositionModel = Field(..., alias="from")
    to_pos: PositionModel = Field(..., alias="to")
    promote: bool = False


class DropRequest(BaseModel):
    game_id: str
    kind: PieceKind
    to_pos: PositionModel = Field(..., alias="to")


class ResignRequest(BaseModel):
    game_id: str


@app.exception_handler(ShogiError)
async def shogi_error_handler(request: Request, exc: ShogiError) -> JSONResponse:
    status_code = 400
    for error_type, code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def _require_session(game_id: str) -> GameSession:
    session = _sessions.get(game_id)
    if session is None:
        raise HTTPException(404, "Game not found")
    return session


def _session_to_dict(game_id: str, session: GameSession) -> dict[str, Any]:
    """Convert a session's current state to a JSON-serializable dict.

    GameState.to_dict() に対局IDや手番情報、テキスト盤面を加える。
    """
    state = session.state
    data = state.to_dict()
    data.update(
        {
            "game_id": game_id,
            "human_player": session.human_player.name,
            "engine_player": session.engine_player.name,
            "is_terminal": state.is_terminal,
            "engine_thinking": session.is_engine_thinking,
            "board_display": format_board(state.board, state.captured),
        }
    )
    return data


@app.post("/api/new-game")
async def new_game(req: NewGameRequest) -> dict[str, Any]:
    """新規対局を開始する。

    対局IDと初期局面を返す。人間が後手の場合は続けて
    /api/engine-move/{id} を呼んでエンジンに初手を指させる。
    """
    game_id = str(uuid.uuid4())[:8]  # 短いIDを生成
    config = GameConfig(
        human_player=req.human_player,
        engine_type=req.engine_type,
        difficulty_level=req.difficulty_level,
    )
    _sessions[game_id] = GameSession(config)
    logger.info(
        "new game %s: human=%s engine=%s level=%d",
        game_id,
        req.human_player.name,
        req.engine_type,
        req.difficulty_level,
    )
    return _session_to_dict(game_id, _sessions[game_id])


@app.get("/api/state/{game_id}")
async def get_state(game_id: str) -> dict[str, Any]:
    """現在の局面情報を取得する（ページ再読み込み時などに使用）。"""
    return _session_to_dict(game_id, _require_session(game_id))


@app.get("/api/legal-moves/{game_id}")
async def legal_moves(game_id: str, row: int, column: int) -> dict[str, Any]:
    """選択した駒の移動可能マスと、成れるかどうかを返す。"""
    session = _require_session(game_id)
    from_pos = Position(row, column)
    destinations = session.legal_destinations(from_pos)
    return {
        "from": from_pos.to_dict(),
        "destinations": [
            {**to_pos.to_dict(), "can_promote": session.can_promote(from_pos, to_pos)}
            for to_pos in destinations
        ],
    }


@app.get("/api/legal-drops/{game_id}")
async def legal_drops(game_id: str, kind: PieceKind) -> dict[str, Any]:
    session = _require_session(game_id)
    return {
        "kind": kind.value,
        "destinations": [p.to_dict() for p in session.legal_drop_positions(kind)],
    }


@app.post("/api/move")
async def make_move(req: MoveRequest) -> dict[str, Any]:
    """人間の手を検証して適用する。エンジンの応手は /api/engine-move で別に要求する。"""
    session = _require_session(req.game_id)
    session.move_piece(req.from_pos.to_position(), req.to_pos.to_position(), req.promote)
    return _session_to_dict(req.game_id, session)


@app.post("/api/drop")
async def drop_piece(req: DropRequest) -> dict[str, Any]:
    session = _require_session(req.game_id)
    session.drop_piece(req.kind, req.to_pos.to_position())
    return _session_to_dict(req.game_id, session)


@app.post("/api/resign")
async def resign(req: ResignRequest) -> dict[str, Any]:
    session = _require_session(req.game_id)
    session.resign()
    return _session_to_dict(req.game_id, session)


@app.post("/api/engine-move/{game_id}")
async def engine_move(game_id: str) -> dict[str, Any]:
    """エンジンの手番で1手指させる。

    探索は別スレッドで走るので、その間も他の対局のリクエストは処理される。
    """
    session = _require_session(game_id)
    played_before = len(session.state.history)
    state = await session.play_engine_move()
    data = _session_to_dict(game_id, session)
    # 思考中に投了された場合は手が増えていない
    new_entries = state.history[played_before:]
    data["engine_move"] = new_entries[0].to_dict() if new_entries else None
    return data


def main() -> None:
    """Run the web server.

    `shogi-web` または `python -m shogi_engine.web.app` で起動する。
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
