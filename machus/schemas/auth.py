"""
认证Schema模型
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional

from machus.schemas.user import UserSummary


class RegisterRequest(BaseModel):
    """注册请求模型"""
    email: str = Field(..., description="学校邮箱")
    password: str = Field(..., description="密码")
    confirmPassword: str = Field(..., description="确认密码")
    avatarUrl: Optional[str] = Field(None, description="头像URL")

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirmPassword:
            raise ValueError("两次输入的密码不一致")
        return self


class LoginRequest(BaseModel):
    """登录请求模型"""
    email: str = Field(..., min_length=3, description="邮箱")
    password: str = Field(..., min_length=1, description="密码")


class LoginResponse(BaseModel):
    """登录响应模型"""
    token: str
    tokenType: str = "bearer"
    user: UserSummary


class ForgotPasswordRequest(BaseModel):
    """忘记密码请求模型"""
    email: str = Field(..., min_length=3, description="邮箱")


class ResetPasswordRequest(BaseModel):
    """重置密码请求模型"""
    token: str = Field(..., min_length=1, description="重置令牌")
    email: str = Field(..., min_length=3, description="邮箱")
    password: str = Field(..., description="新密码")
    confirmPassword: str = Field(..., description="确认新密码")

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirmPassword:
            raise ValueError("两次输入的密码不一致")
        return self
