"""ProfileService -- 用户资料与媒体上传

头像按 `{user_id}.{ext}` 存放（同名覆盖），任务照片按新 ULID 命名。
评分字段不在此处写入，只由评价流程重新聚合。
"""

from collections.abc import Callable
from datetime import datetime

import aiosqlite
import structlog
from honeydew.core.config import MAX_UPLOAD_BYTES
from honeydew.core.exceptions import ExternalServiceFailure, InvalidInput, ProfileNotFound
from honeydew.core.models import Profile, Role
from honeydew.core.store import StoreGroup, unit_of_work
from honeydew.core.store.media_store import PROFILE_BUCKET, TASK_PHOTO_BUCKET
from honeydew.core.store.profile_store import is_duplicate_profile_error
from ulid import ULID

from .task_service import utc_now

log = structlog.get_logger()

# 允许上传的图片扩展名
ALLOWED_IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp", "heic"})


def normalize_extension(ext: str) -> str:
    """校验并规范化图片扩展名"""
    normalized = ext.strip().lstrip(".").lower()
    if normalized not in ALLOWED_IMAGE_EXTENSIONS:
        raise InvalidInput(f"Unsupported image type: {ext!r}")
    return normalized


class ProfileService:
    """资料业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        clock: Callable[[], datetime] = utc_now,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ) -> None:
        self._stores = store_group
        self._clock = clock
        self._max_upload_bytes = max_upload_bytes

    async def create_profile(
        self,
        user_id: str,
        role: Role,
        zip_code: str,
        full_name: str = "",
        address: str = "",
        bio: str = "",
    ) -> Profile:
        """注册资料

        Raises:
            InvalidInput: 邮编为空或资料已存在
        """
        if not zip_code.strip():
            raise InvalidInput("Zip code is required")

        profile = Profile(
            user_id=user_id,
            created_at=self._clock(),
            full_name=full_name.strip(),
            role=role,
            zip=zip_code.strip(),
            address=address.strip(),
            bio=bio,
        )
        try:
            async with unit_of_work(self._stores.conn):
                await self._stores.profile_store.create_profile(profile)
        except aiosqlite.IntegrityError as e:
            if is_duplicate_profile_error(e):
                raise InvalidInput(f"Profile already exists for user {user_id}") from e
            raise

        await log.ainfo("profile_created", user_id=user_id, role=role.value, zip=profile.zip)
        return profile

    async def get_profile(self, user_id: str) -> Profile:
        profile = await self._stores.profile_store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(user_id)
        return profile

    async def update_profile(
        self,
        user_id: str,
        bio: str | None = None,
        address: str | None = None,
        full_name: str | None = None,
    ) -> Profile:
        """更新自己的资料，None 字段保持不变"""
        async with unit_of_work(self._stores.conn):
            updated = await self._stores.profile_store.update_details(
                user_id,
                bio=bio,
                address=address.strip() if address is not None else None,
                full_name=full_name.strip() if full_name is not None else None,
            )
        if not updated:
            raise ProfileNotFound(user_id)
        await log.ainfo("profile_updated", user_id=user_id)
        return await self.get_profile(user_id)

    async def upload_profile_image(self, user_id: str, content: bytes, ext: str) -> Profile:
        """上传头像并更新资料中的 URL

        Raises:
            ProfileNotFound: 资料不存在
            InvalidInput: 文件为空、过大或类型不支持
        """
        await self.get_profile(user_id)
        name = f"{user_id}.{normalize_extension(ext)}"
        url = await self._put(PROFILE_BUCKET, name, content)

        async with unit_of_work(self._stores.conn):
            await self._stores.profile_store.set_profile_image(user_id, url)
        await log.ainfo("profile_image_uploaded", user_id=user_id, size=len(content))
        return await self.get_profile(user_id)

    async def upload_task_photo(self, user_id: str, content: bytes, ext: str) -> str:
        """上传任务照片，返回可写入 Task.photo_reference 的 URL"""
        name = f"{ULID()}.{normalize_extension(ext)}"
        url = await self._put(TASK_PHOTO_BUCKET, name, content)
        await log.ainfo("task_photo_uploaded", user_id=user_id, name=name, size=len(content))
        return url

    async def _put(self, bucket: str, name: str, content: bytes) -> str:
        if len(content) > self._max_upload_bytes:
            raise InvalidInput(
                f"File too large: {len(content)} bytes (limit {self._max_upload_bytes})"
            )
        try:
            return self._stores.media_store.put_object(bucket, name, content)
        except OSError as e:
            await log.aerror(
                "media_store_failed",
                bucket=bucket,
                name=name,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ExternalServiceFailure("object storage") from e
