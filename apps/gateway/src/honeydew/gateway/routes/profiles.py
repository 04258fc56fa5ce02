"""资料与媒体上传路由

POST  /api/profiles: 注册当前调用者的资料
GET   /api/profiles/{user_id}: 查询资料（含评分）
PATCH /api/profiles/me: 更新自己的资料
PUT   /api/profiles/me/image?ext=png: 上传头像（请求体为原始图片字节）
POST  /api/uploads/task-photos?ext=jpg: 上传任务照片，返回 URL
"""

from fastapi import APIRouter, Depends, Query, Request
from honeydew.core.exceptions import InvalidInput

from ..deps import Identity, get_identity, get_profile_service, require_requester
from ..services.profile_service import ProfileService
from .schemas import CreateProfileRequest, UpdateProfileRequest, profile_to_dict

router = APIRouter()


@router.post("/api/profiles", status_code=201)
async def create_profile(
    body: CreateProfileRequest,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    """注册资料；角色必须与身份头一致"""
    if body.role != identity.role:
        raise InvalidInput("Profile role must match the caller's role")
    profile = await service.create_profile(
        identity.user_id,
        role=body.role,
        zip_code=body.zip,
        full_name=body.full_name,
        address=body.address,
        bio=body.bio,
    )
    return profile_to_dict(profile)


@router.get("/api/profiles/{user_id}")
async def get_profile(
    user_id: str,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.get_profile(user_id)
    return profile_to_dict(profile)


@router.patch("/api/profiles/me")
async def update_my_profile(
    body: UpdateProfileRequest,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    profile = await service.update_profile(
        identity.user_id,
        bio=body.bio,
        address=body.address,
        full_name=body.full_name,
    )
    return profile_to_dict(profile)


@router.put("/api/profiles/me/image")
async def upload_profile_image(
    request: Request,
    ext: str = Query(description="图片扩展名，如 png / jpg"),
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    content = await request.body()
    profile = await service.upload_profile_image(identity.user_id, content, ext)
    return profile_to_dict(profile)


@router.post("/api/uploads/task-photos", status_code=201)
async def upload_task_photo(
    request: Request,
    ext: str = Query(description="图片扩展名，如 png / jpg"),
    identity: Identity = Depends(require_requester),
    service: ProfileService = Depends(get_profile_service),
):
    content = await request.body()
    url = await service.upload_task_photo(identity.user_id, content, ext)
    return {"url": url}
