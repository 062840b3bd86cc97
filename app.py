"""
2048 的 Flask JSON 接口。

游戏规则全部在 game2048 / game_session 中，这里只负责把会话状态存进
Flask session（cookie）并提供 move / undo / reset / state 四个命令。
"""
import logging
import os
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request, session

from game2048 import SIZE, Direction
from game_session import WIN_VALUE, ConfigError, GameSession, GameStateSnapshot, check_config

logger = logging.getLogger(__name__)

# 游戏配置常量
MAX_HISTORY = 20  # 撤回最多保存多少步
PORT = 5000

GameState = Dict[str, Any]


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_config() -> Dict[str, Any]:
    """从环境变量读取配置，不合法时抛出 ConfigError。"""
    config = {
        "SECRET_KEY": os.environ.get("SECRET_KEY", "change_this_to_a_random_secret_key"),
        "GAME_SIZE": _env_int("GAME_SIZE", SIZE),
        "WIN_VALUE": _env_int("WIN_VALUE", WIN_VALUE),
        "MAX_HISTORY": _env_int("MAX_HISTORY", MAX_HISTORY),
    }
    check_config(config["GAME_SIZE"], config["WIN_VALUE"], config["MAX_HISTORY"])
    return config


app = Flask(__name__)
# 配置错误在启动时就报出来，而不是等到第一局游戏
app.config.update(load_config())


def new_session(snapshot: Optional[GameStateSnapshot] = None) -> GameSession:
    return GameSession(
        size=app.config["GAME_SIZE"],
        win_value=app.config["WIN_VALUE"],
        max_history=app.config["MAX_HISTORY"],
        snapshot=snapshot,
    )


def _stored_best(stored: Any) -> int:
    """从无法恢复的状态里尽量取回最高分。"""
    if not isinstance(stored, dict):
        return 0
    try:
        return max(int(stored.get("best", 0)), 0)
    except (TypeError, ValueError):
        return 0


def _load_history(game: GameSession, stored: Any) -> List[GameStateSnapshot]:
    """恢复撤回历史；任何一条损坏或尺寸不符时整段丢弃。"""
    try:
        history = [GameStateSnapshot.from_dict(item) for item in stored]
    except (ConfigError, TypeError):
        logger.warning("discarding unreadable undo history from session")
        return []
    if not all(game.fits(item) for item in history):
        logger.warning("discarding undo history with wrong board size")
        return []
    return history


def get_game() -> GameSession:
    """从 Flask session 恢复游戏会话，没有或已损坏时开新局（保留最高分）。"""
    stored = session.get("state")
    if stored is None:
        game = new_session()
        save_game(game)
        return game

    try:
        game = new_session(GameStateSnapshot.from_dict(stored))
    except ConfigError:
        logger.warning("discarding unreadable game state from session")
        game = new_session()
        game.best = _stored_best(stored)
        save_game(game)
        return game

    game.history = _load_history(game, session.get("history", []))
    try:
        game.moves = max(int(session.get("moves", 0)), 0)
    except (TypeError, ValueError):
        game.moves = 0
    save_game(game)
    return game


def save_game(game: GameSession) -> None:
    """保存游戏状态到 session。"""
    session["state"] = game.snapshot().to_dict()
    session["history"] = [item.to_dict() for item in game.history]
    session["moves"] = game.moves


def game_state(game: GameSession) -> GameState:
    return {
        "state": game.snapshot().to_dict(),
        "can_undo": game.can_undo,
        "max_tile": game.max_tile,
        "moves": game.moves,
    }


@app.route("/state", methods=["GET"])
def state():
    """当前游戏状态。"""
    return jsonify(game_state(get_game()))


@app.route("/move", methods=["POST"])
def move():
    """处理移动操作。"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    direction = payload.get("direction") or request.form.get("direction")
    try:
        direction = Direction(direction)
    except ValueError:
        return jsonify({"error": f"unknown direction: {direction!r}"}), 400

    game = get_game()
    result = game.move(direction)
    save_game(game)

    body = game_state(game)
    body["result"] = {
        "moved": result.moved,
        "merged": result.merged,
        "score_gained": result.score_gained,
    }
    return jsonify(body)


@app.route("/undo", methods=["POST"])
def undo():
    """撤回一步。"""
    game = get_game()
    game.undo()
    save_game(game)
    return jsonify(game_state(game))


@app.route("/reset", methods=["POST"])
def reset():
    """重新开始一局游戏（保留最高分）。"""
    game = get_game()
    game.restart()
    save_game(game)
    return jsonify(game_state(game))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app.run(port=_env_int("PORT", PORT), debug=True)
