"""MediaStore 文件系统实现 -- 对象存储边界

按 bucket/name 保存二进制内容，返回可公开访问的 URL。
内容本身不被核心层解析。
"""

import re
from pathlib import Path

from ..exceptions import InvalidInput

PROFILE_BUCKET = "profile-pictures"
TASK_PHOTO_BUCKET = "task-photos"

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")
_ALLOWED_BUCKETS = {PROFILE_BUCKET, TASK_PHOTO_BUCKET}


class FileMediaStore:
    """对象存储的本地文件系统实现"""

    def __init__(self, media_dir: Path, base_url: str = "/media") -> None:
        self._media_dir = media_dir
        self._base_url = base_url.rstrip("/")

    @property
    def media_dir(self) -> Path:
        return self._media_dir

    def put_object(self, bucket: str, name: str, content: bytes) -> str:
        """写入对象（同名覆盖），返回公开 URL

        Raises:
            InvalidInput: bucket 或文件名不合法，或内容为空
        """
        if bucket not in _ALLOWED_BUCKETS:
            raise InvalidInput(f"Unknown bucket: {bucket}")
        if not _SAFE_NAME.match(name) or ".." in name:
            raise InvalidInput(f"Invalid object name: {name}")
        if not content:
            raise InvalidInput("Uploaded file is empty")

        file_path = self._object_path(bucket, name)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content)
        return self.public_url(bucket, name)

    def get_object(self, bucket: str, name: str) -> bytes | None:
        """读取对象内容，不存在时返回 None"""
        file_path = self._object_path(bucket, name)
        if not file_path.exists():
            return None
        return file_path.read_bytes()

    def public_url(self, bucket: str, name: str) -> str:
        """对象的公开访问 URL"""
        return f"{self._base_url}/{bucket}/{name}"

    def _object_path(self, bucket: str, name: str) -> Path:
        return self._media_dir / bucket / name
