"""
一局 2048 游戏的状态机：当前棋盘、分数、最高分、胜负标记和撤回历史。
移动/合并算法本身在 game2048 中，这里只做状态记录。
"""
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from game2048 import (
    SIZE,
    Board,
    Direction,
    MoveResult,
    Rng,
    add_random_tile,
    can_move,
    copy_grid,
    get_max_tile,
    move_grid,
    new_board,
)

logger = logging.getLogger(__name__)

WIN_VALUE = 2048  # 出现该数字即为胜利


class ConfigError(ValueError):
    """构造参数或加载的快照不合法。"""


@dataclass(frozen=True)
class GameStateSnapshot:
    """某一时刻的完整游戏状态，棋盘以元组保存，不与会话共享。"""

    grid: Tuple[Tuple[int, ...], ...]
    score: int
    best: int
    over: bool
    won: bool

    @classmethod
    def capture(cls, grid: Board, score: int, best: int, over: bool, won: bool) -> "GameStateSnapshot":
        return cls(
            grid=tuple(tuple(row) for row in grid),
            score=score,
            best=best,
            over=over,
            won=won,
        )

    def board(self) -> Board:
        """返回棋盘的可修改副本。"""
        return [list(row) for row in self.grid]

    def to_dict(self) -> Dict[str, Any]:
        """转换成可以直接 JSON 序列化的 dict。"""
        return {
            "grid": self.board(),
            "score": self.score,
            "best": self.best,
            "over": self.over,
            "won": self.won,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameStateSnapshot":
        try:
            return cls.capture(
                [[int(v) for v in row] for row in data["grid"]],
                int(data["score"]),
                int(data["best"]),
                bool(data["over"]),
                bool(data["won"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"invalid snapshot: {exc}") from exc


def _is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def check_config(size: int, win_value: int, max_history: Optional[int] = None) -> None:
    """
    检查会话参数，不合法时抛出 ConfigError。

    win_value 至少为 2：新数字最小就是 2，取 1（2 的 0 次方）会让每一局
    在开局时就已经胜利。
    """
    if isinstance(size, bool) or not isinstance(size, int) or size < 1:
        raise ConfigError(f"size must be a positive integer, got {size!r}")
    if (
        isinstance(win_value, bool)
        or not isinstance(win_value, int)
        or win_value < 2
        or not _is_power_of_two(win_value)
    ):
        raise ConfigError(f"win_value must be a power of two >= 2, got {win_value!r}")
    if max_history is not None and (
        isinstance(max_history, bool) or not isinstance(max_history, int) or max_history < 1
    ):
        raise ConfigError(f"max_history must be None or a positive integer, got {max_history!r}")


class GameSession:
    """
    单个玩家独占使用的游戏会话。

    - move：移动 -> 生成新数字 -> 检查胜负；无效移动不产生撤回点。
    - restart：重新开局，保留最高分。
    - undo：弹出最近的快照并恢复。

    传入 snapshot 时直接从该状态继续，不生成开局的两个数字。
    """

    def __init__(
        self,
        size: int = SIZE,
        win_value: int = WIN_VALUE,
        rng: Optional[Rng] = None,
        max_history: Optional[int] = None,
        snapshot: Optional[GameStateSnapshot] = None,
    ) -> None:
        check_config(size, win_value, max_history)

        self.size = size
        self.win_value = win_value
        self.max_history = max_history
        self.rng: Rng = rng or random.random

        self.best = 0
        self.grid: Board = []
        self.score = 0
        self.over = False
        self.won = False
        self.moves = 0
        self.history: List[GameStateSnapshot] = []
        if snapshot is None:
            self._new_game(self.rng)
        else:
            self.load(snapshot)

    def fits(self, snapshot: GameStateSnapshot) -> bool:
        """快照的棋盘是否为 size x size。"""
        return len(snapshot.grid) == self.size and all(len(row) == self.size for row in snapshot.grid)

    def _new_game(self, rng: Rng) -> None:
        grid = new_board(self.size)
        add_random_tile(grid, rng)
        add_random_tile(grid, rng)
        self.grid = grid
        self.score = 0
        self.over = False
        self.won = False
        self.moves = 0
        self.history = []
        logger.debug("new %dx%d game: %s", self.size, self.size, grid)

    @property
    def max_tile(self) -> int:
        return get_max_tile(self.grid)

    @property
    def can_undo(self) -> bool:
        return bool(self.history)

    def snapshot(self) -> GameStateSnapshot:
        """当前状态的只读快照。"""
        return GameStateSnapshot.capture(self.grid, self.score, self.best, self.over, self.won)

    def load(self, snapshot: GameStateSnapshot) -> None:
        """用快照覆盖当前状态（棋盘、分数、最高分、结束和胜利标记）。"""
        if not self.fits(snapshot):
            raise ConfigError(f"snapshot grid is not {self.size}x{self.size}")
        self.grid = snapshot.board()
        self.score = snapshot.score
        self.best = snapshot.best
        self.over = snapshot.over
        self.won = snapshot.won

    def move(self, direction: Union[Direction, str], rng: Optional[Rng] = None) -> MoveResult:
        """处理一次移动，返回结果中的棋盘是当前棋盘的副本。"""
        direction = Direction(direction)
        if self.over:
            return MoveResult(grid=copy_grid(self.grid), score_gained=0, moved=False, merged=False)

        # 先保存撤回点，无效移动时再丢弃
        self.history.append(self.snapshot())
        result = move_grid(self.grid, direction)

        if result.moved:
            self.grid = add_random_tile(copy_grid(result.grid), rng or self.rng)
            self.score += result.score_gained
            self.best = max(self.best, self.score)
            self.moves += 1
            if not self.won and get_max_tile(self.grid) >= self.win_value:
                self.won = True
                logger.info("reached %d with score %d", self.win_value, self.score)
            if not can_move(self.grid):
                self.over = True
                logger.info("game over: score %d, max tile %d", self.score, self.max_tile)
            if self.max_history is not None and len(self.history) > self.max_history:
                self.history.pop(0)
        else:
            self.history.pop()

        return MoveResult(
            grid=copy_grid(self.grid),
            score_gained=result.score_gained,
            moved=result.moved,
            merged=result.merged,
        )

    def restart(self, rng: Optional[Rng] = None) -> None:
        """重新开始一局游戏（保留最高分）。"""
        self._new_game(rng or self.rng)
        logger.debug("restarted, best score %d", self.best)

    def undo(self) -> None:
        """撤回一步，没有历史记录时什么也不做。"""
        if not self.history:
            return
        self.load(self.history.pop())
        if self.moves > 0:
            self.moves -= 1
        logger.debug("undo, %d steps left in history", len(self.history))
