"""
账号认证API
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from machus.db.database import get_db
from machus.schemas.auth import (
    RegisterRequest, LoginRequest, LoginResponse,
    ForgotPasswordRequest, ResetPasswordRequest
)
from machus.schemas.common import ResponseModel
from machus.schemas.user import UserSummary
from machus.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["账号认证"])


def user_to_summary(user) -> UserSummary:
    return UserSummary(
        id=user.id,
        email=user.email,
        avatarUrl=user.avatar_url,
        profileCompleted=user.profile_completed,
        emailVerified=user.email_verified
    )


@router.post("/register", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def register(
    register_data: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    注册（发送验证邮件，不自动登录）
    """
    user = await AuthService.register(
        db,
        email=register_data.email,
        password=register_data.password,
        avatar_url=register_data.avatarUrl
    )
    return ResponseModel(
        code=201,
        message="注册成功，请查收邮件完成邮箱验证",
        data=user_to_summary(user)
    )


@router.get("/verify-email", response_model=ResponseModel)
async def verify_email(
    token: str = Query(..., min_length=1),
    email: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db)
):
    """
    验证邮箱（用户点击邮件中的链接）
    """
    verified_now = await AuthService.verify_email(db, email=email, token=token)
    message = "邮箱验证成功" if verified_now else "邮箱已验证"
    return ResponseModel(code=200, message=message)


@router.post("/login", response_model=ResponseModel)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    邮箱密码登录
    """
    token, user = await AuthService.login(db, email=login_data.email, password=login_data.password)
    return ResponseModel(
        code=200,
        message="登录成功",
        data=LoginResponse(token=token, user=user_to_summary(user))
    )


@router.post("/forgot-password", response_model=ResponseModel)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    申请重置密码（无论邮箱是否存在都返回相同结果）
    """
    await AuthService.request_password_reset(db, email=request_data.email)
    return ResponseModel(code=200, message="如果该邮箱已注册，重置链接已发送")


@router.post("/reset-password", response_model=ResponseModel)
async def reset_password(
    reset_data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    使用令牌重置密码
    """
    await AuthService.reset_password(
        db,
        email=reset_data.email,
        token=reset_data.token,
        password=reset_data.password
    )
    return ResponseModel(code=200, message="密码重置成功")
