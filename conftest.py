"""全局 pytest 配置

开发机上的 HONEYDEW_* / STRIPE_* 环境变量不应影响测试：每个用例开始前清空，
需要时由各包 conftest 或用例自行设置。
"""

import os
from pathlib import Path

import pytest

_ISOLATED_PREFIXES = ("HONEYDEW_", "STRIPE_", "LOGFIRE_")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith(_ISOLATED_PREFIXES):
            monkeypatch.delenv(key)


@pytest.fixture
def tmp_media_dir(tmp_path: Path) -> Path:
    """临时媒体目录"""
    media_dir = tmp_path / "media"
    media_dir.mkdir(parents=True, exist_ok=True)
    return media_dir
