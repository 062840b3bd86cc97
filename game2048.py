import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Tuple, Union

SIZE = 4  # 默认棋盘大小：4x4
Board = List[List[int]]
Row = List[int]
Rng = Callable[[], float]

SPAWN_TWO_CHANCE = 0.9  # 新数字为 2 的概率，其余为 4


class Direction(str, Enum):
    """移动方向。"""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class MoveResult:
    """一次移动的结果，不保存在任何状态里。"""

    grid: Board
    score_gained: int
    moved: bool
    merged: bool


def new_board(size: int = SIZE) -> Board:
    """创建一个空棋盘。"""
    return [[0] * size for _ in range(size)]


def copy_grid(board: Board) -> Board:
    """深拷贝二维网格。"""
    return [row[:] for row in board]


def empty_cells(board: Board) -> List[Tuple[int, int]]:
    """按行优先顺序返回所有空格坐标 (r, c)。"""
    return [
        (r, c)
        for r, row in enumerate(board)
        for c, value in enumerate(row)
        if value == 0
    ]


def get_max_tile(board: Board) -> int:
    """取得当前最大的数字，空棋盘返回 0。"""
    return max((max(row) for row in board if row), default=0)


def can_move(board: Board) -> bool:
    """判断是否还能继续游戏：有空格，或有相邻的相同数字。"""
    if empty_cells(board):
        return True

    rows = len(board)
    for r, row in enumerate(board):
        for c, value in enumerate(row):
            if r + 1 < rows and c < len(board[r + 1]) and board[r + 1][c] == value:
                return True
            if c + 1 < len(row) and row[c + 1] == value:
                return True
    return False


def add_random_tile(board: Board, rng: Rng = random.random) -> Board:
    """
    在随机空格生成一个 2 或 4（90% 为 2），直接修改并返回同一个棋盘。
    棋盘已满时什么也不做。
    """
    cells = empty_cells(board)
    if not cells:
        return board

    r, c = cells[int(rng() * len(cells))]
    board[r][c] = 2 if rng() < SPAWN_TWO_CHANCE else 4
    return board


def compress_and_merge_row(row: Row) -> Tuple[Row, bool, int]:
    """
    向左挤压并合并一行，返回 (新行, 是否发生合并, 本行增加的分数)。
    例如: [2, 0, 2, 4] -> [4, 4, 0, 0], merged = True, score_gain = 4
    """
    arr = [x for x in row if x != 0]
    new_row: Row = []
    merged = False
    score_gain = 0
    i = 0

    while i < len(arr):
        if i + 1 < len(arr) and arr[i] == arr[i + 1]:
            value = arr[i] * 2
            new_row.append(value)
            score_gain += value
            merged = True
            i += 2
        else:
            new_row.append(arr[i])
            i += 1

    new_row += [0] * (len(row) - len(new_row))
    return new_row, merged, score_gain


def reverse_rows(board: Board) -> Board:
    """每一行做反转，行的顺序不变。"""
    return [list(reversed(row)) for row in board]


def rotate_right(board: Board) -> Board:
    """顺时针旋转 90°：(r, c) -> (c, size - 1 - r)。"""
    return [list(row) for row in zip(*board[::-1])]


def rotate_left(board: Board) -> Board:
    """逆时针旋转 90°，即 rotate_right 的逆变换。"""
    return rotate_right(rotate_right(rotate_right(board)))


# 方向 -> (正变换, 逆变换)，把所有方向都化为“向左移动”
TRANSFORMS = {
    Direction.LEFT: (copy_grid, copy_grid),
    Direction.RIGHT: (reverse_rows, reverse_rows),
    Direction.UP: (rotate_left, rotate_right),
    Direction.DOWN: (rotate_right, rotate_left),
}


def move_grid(board: Board, direction: Union[Direction, str]) -> MoveResult:
    """整盘向指定方向移动，不修改传入的棋盘。"""
    forward, backward = TRANSFORMS[Direction(direction)]
    work = forward(copy_grid(board))

    new_rows: Board = []
    moved = False
    merged = False
    total_gain = 0
    for row in work:
        new_row, row_merged, gain = compress_and_merge_row(row)
        if new_row != row:
            moved = True
        merged = merged or row_merged
        total_gain += gain
        new_rows.append(new_row)

    return MoveResult(
        grid=backward(new_rows),
        score_gained=total_gain,
        moved=moved,
        merged=merged,
    )
