"""测试用的 fixture。"""

import random
from typing import Callable, Iterable

import pytest

from app import app as flask_app


@pytest.fixture
def scripted_rng() -> Callable[[Iterable[float]], Callable[[], float]]:
    """生成按顺序返回给定数值的 rng。"""

    def make(values: Iterable[float]) -> Callable[[], float]:
        it = iter(values)
        return lambda: next(it)

    return make


@pytest.fixture
def zero_rng() -> Callable[[], float]:
    """总是返回 0.0：新数字落在第一个空格，且为 2。"""
    return lambda: 0.0


@pytest.fixture
def seeded_rng() -> Callable[[], float]:
    return random.Random(2048).random


@pytest.fixture
def configure(monkeypatch) -> Callable[..., None]:
    """在单个测试里修改模块级 app 的配置，测试结束后自动恢复。"""

    def apply(**values) -> None:
        for key, value in values.items():
            monkeypatch.setitem(flask_app.config, key, value)

    return apply


@pytest.fixture
def client(configure):
    configure(TESTING=True, SECRET_KEY="test-secret")
    return flask_app.test_client()
