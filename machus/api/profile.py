"""
个人资料API
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from machus.core.exceptions import NotFoundError
from machus.db.database import get_db
from machus.models.user import User
from machus.schemas.common import ResponseModel
from machus.schemas.user import ProfileComplete, UserProfileResponse
from machus.utils.auth import get_current_user

router = APIRouter(prefix="/api/profile", tags=["个人资料"])
logger = logging.getLogger(__name__)


def user_to_profile(user: User) -> UserProfileResponse:
    return UserProfileResponse(
        id=user.id,
        email=user.email,
        realName=user.real_name,
        nickname=user.nickname,
        grade=user.grade,
        gender=user.gender,
        bio=user.bio,
        tags=list(user.tags or []),
        avatarUrl=user.avatar_url,
        isAdmin=user.is_admin,
        profileCompleted=user.profile_completed,
        emailVerified=user.email_verified,
        createdAt=user.created_at
    )


@router.get("/me", response_model=ResponseModel)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    """
    获取当前用户资料（包含自己的真实姓名）
    """
    return ResponseModel(code=200, data=user_to_profile(current_user))


@router.put("/complete", response_model=ResponseModel)
async def complete_profile(
    profile_data: ProfileComplete,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    完善/更新个人资料
    """
    first_completion = not current_user.profile_completed

    current_user.real_name = profile_data.realName
    current_user.nickname = profile_data.nickname
    current_user.grade = profile_data.grade
    current_user.gender = profile_data.gender
    current_user.bio = profile_data.bio
    current_user.tags = profile_data.tags
    current_user.avatar_url = profile_data.avatarUrl
    current_user.profile_completed = True

    await db.commit()
    await db.refresh(current_user)

    if first_completion:
        logger.info(f"用户完成资料: user={current_user.id}")

    return ResponseModel(
        code=200,
        message="资料已保存",
        data=user_to_profile(current_user)
    )


@router.delete("/me", response_model=ResponseModel)
async def delete_my_account(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    注销账号（帖子、参与记录、令牌由数据库外键级联删除）
    """
    user_id = current_user.id
    result = await db.execute(delete(User).where(User.id == user_id))
    deleted = result.rowcount
    await db.commit()

    if deleted == 0:
        raise NotFoundError("用户不存在", error_code="USER_NOT_FOUND")

    logger.info(f"账号已注销: user={user_id}")
    return ResponseModel(code=200, message="账号已注销")
