"""
组局帖子API
"""
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from machus.db.database import get_db
from machus.models.user import User
from machus.schemas.common import ResponseModel
from machus.schemas.post import PostCreate, PostResponse
from machus.services.post_service import PostService
from machus.services.visibility import Viewer
from machus.utils.auth import require_completed_profile

router = APIRouter(prefix="/api/posts", tags=["组局帖子"])


def get_post_service(db: AsyncSession = Depends(get_db)) -> PostService:
    return PostService(db)


def post_to_response(post) -> PostResponse:
    return PostResponse(
        id=post.id,
        authorId=post.author_id,
        content=post.content,
        eventTime=post.event_time,
        duration=post.duration_minutes,
        location=post.location,
        targetPeople=post.target_people,
        tags=list(post.tags or []),
        createdAt=post.created_at
    )


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    发布帖子
    """
    post_view = await service.create_post(Viewer.from_user(current_user), post_data)
    return ResponseModel(code=201, message="帖子发布成功", data=post_view)


@router.get("", response_model=ResponseModel)
async def list_posts(
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    获取信息流（按发布时间倒序）
    """
    posts = await service.list_feed(Viewer.from_user(current_user))
    return ResponseModel(code=200, data=posts)


@router.get("/{post_id}", response_model=ResponseModel)
async def get_post(
    post_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    获取帖子详情
    """
    post_view = await service.get_post(Viewer.from_user(current_user), post_id)
    return ResponseModel(code=200, data=post_view)


@router.put("/{post_id}", response_model=ResponseModel)
async def update_post(
    post_id: int,
    payload: Any = Body(None),
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    编辑帖子（作者或管理员，只更新请求中出现的字段）
    """
    post = await service.update_post(Viewer.from_user(current_user), post_id, payload)
    return ResponseModel(code=200, message="帖子更新成功", data=post_to_response(post))


@router.delete("/{post_id}", response_model=ResponseModel)
async def delete_post(
    post_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    删除帖子（作者或管理员）
    """
    await service.delete_post(Viewer.from_user(current_user), post_id)
    return ResponseModel(code=200, message="帖子删除成功")


@router.post("/{post_id}/participate", response_model=ResponseModel)
async def participate(
    post_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    参与帖子
    """
    post_view = await service.participate(Viewer.from_user(current_user), post_id)
    return ResponseModel(code=200, message="参与成功", data=post_view)


@router.delete("/{post_id}/participate", response_model=ResponseModel)
async def cancel_participation(
    post_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    取消参与
    """
    post_view = await service.cancel_participation(Viewer.from_user(current_user), post_id)
    return ResponseModel(code=200, message="已取消参与", data=post_view)


@router.get("/{post_id}/participants", response_model=ResponseModel)
async def list_participants(
    post_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    获取参与者名单（参与者、作者或管理员）
    """
    participants = await service.list_participants(Viewer.from_user(current_user), post_id)
    return ResponseModel(code=200, data=participants)


@router.delete("/{post_id}/participants/{user_id}", response_model=ResponseModel)
async def kick_participant(
    post_id: int,
    user_id: int,
    service: PostService = Depends(get_post_service),
    current_user: User = Depends(require_completed_profile)
):
    """
    移除参与者（作者或管理员）
    """
    await service.kick_participant(Viewer.from_user(current_user), post_id, user_id)
    return ResponseModel(code=200, message="参与者已移除")
