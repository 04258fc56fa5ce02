"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、媒体文件目录、轮询间隔、上传大小限制等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("HONEYDEW_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "HONEYDEW_DB_PATH",
        str(_get_base_dir() / "sqlite" / "honeydew.db"),
    )


def get_media_dir() -> Path:
    """获取媒体文件（头像、任务照片）存储目录"""
    return Path(
        os.environ.get(
            "HONEYDEW_MEDIA_DIR",
            str(_get_base_dir() / "media"),
        )
    )


def get_media_base_url() -> str:
    """获取媒体文件公开访问 URL 前缀"""
    return os.environ.get("HONEYDEW_MEDIA_BASE_URL", "/media").rstrip("/")


# 任务列表轮询间隔（秒），同时也是 feed 缓存的最大陈旧时间
POLL_INTERVAL_S: float = float(os.environ.get("HONEYDEW_POLL_INTERVAL_S", "5"))

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("HONEYDEW_SSE_HEARTBEAT_INTERVAL", "15")
)

# 单个上传文件最大字节数
MAX_UPLOAD_BYTES: int = int(
    os.environ.get("HONEYDEW_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))
)

# 任务标题截断长度（从描述生成）
TASK_TITLE_LENGTH: int = 100
