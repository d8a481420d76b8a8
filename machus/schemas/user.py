"""
用户资料Schema模型
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class ProfileComplete(BaseModel):
    """完善资料请求模型"""
    realName: str = Field(..., max_length=100, description="真实姓名（仅参与者可见）")
    nickname: str = Field(..., max_length=100, description="昵称")
    grade: str = Field(..., max_length=50, description="年级")
    gender: str = Field(..., max_length=20, description="性别")
    bio: str = Field(..., description="个人简介")
    tags: List[str] = Field(..., min_length=1, description="个人标签，至少一个")
    avatarUrl: Optional[str] = Field(None, description="头像URL")

    @field_validator("realName", "nickname", "grade", "gender", "bio")
    @classmethod
    def not_blank(cls, value):
        if not value.strip():
            raise ValueError("不能为空")
        return value.strip()


class UserProfileResponse(BaseModel):
    """当前用户完整资料"""
    id: int
    email: str
    realName: Optional[str] = None
    nickname: Optional[str] = None
    grade: Optional[str] = None
    gender: Optional[str] = None
    bio: Optional[str] = None
    tags: List[str] = []
    avatarUrl: Optional[str] = None
    isAdmin: bool = False
    profileCompleted: bool = False
    emailVerified: bool = False
    createdAt: Optional[datetime] = None


class UserSummary(BaseModel):
    """注册/登录返回的用户摘要"""
    id: int
    email: str
    avatarUrl: Optional[str] = None
    profileCompleted: bool = False
    emailVerified: bool = False
