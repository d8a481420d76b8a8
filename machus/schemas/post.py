"""
帖子Schema模型
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime


# 请求字段名 -> 数据库列名
POST_FIELD_COLUMNS = {
    "content": "content",
    "eventTime": "event_time",
    "duration": "duration_minutes",
    "location": "location",
    "targetPeople": "target_people",
    "tags": "tags",
}


def _normalize_content(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValueError("内容不能为空")
    return value.strip()


def _normalize_location(value: Optional[str]) -> Optional[str]:
    # 空字符串等同于清空地点
    if value is None:
        return None
    return value.strip() or None


class PostCreate(BaseModel):
    """发布帖子请求模型"""
    content: str = Field(..., description="帖子内容")
    eventTime: Optional[datetime] = Field(None, description="活动时间")
    duration: Optional[int] = Field(None, ge=1, description="活动时长（分钟）")
    location: Optional[str] = Field(None, max_length=255, description="活动地点")
    targetPeople: Optional[int] = Field(None, ge=1, description="目标人数")
    tags: Optional[List[str]] = Field(None, description="标签数组")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value):
        return _normalize_content(value)

    @field_validator("location")
    @classmethod
    def location_blank_to_none(cls, value):
        return _normalize_location(value)


class PostUpdate(BaseModel):
    """
    更新帖子请求模型（部分更新）

    未出现在请求体中的字段保持原值；显式传 null 表示清空该字段。
    两者通过 model_fields_set 区分，不能用 None 判断。
    """
    content: Optional[str] = Field(None, description="帖子内容，不可为null或空白")
    eventTime: Optional[datetime] = Field(None, description="活动时间")
    duration: Optional[int] = Field(None, ge=1, description="活动时长（分钟）")
    location: Optional[str] = Field(None, max_length=255, description="活动地点")
    targetPeople: Optional[int] = Field(None, ge=1, description="目标人数")
    tags: Optional[List[str]] = Field(None, description="标签数组")

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value):
        return _normalize_content(value)

    @field_validator("location")
    @classmethod
    def location_blank_to_none(cls, value):
        return _normalize_location(value)

    @field_validator("tags")
    @classmethod
    def tags_null_to_empty(cls, value):
        return value if value is not None else []

    def to_changes(self) -> Dict[str, Any]:
        """只返回请求中出现过的字段，键为数据库列名"""
        return {
            POST_FIELD_COLUMNS[name]: value
            for name, value in self.model_dump(exclude_unset=True).items()
        }


class AuthorView(BaseModel):
    """帖子中展示的作者信息，realName 仅对参与者可见"""
    id: int
    nickname: Optional[str] = None
    avatarUrl: Optional[str] = None
    grade: Optional[str] = None
    bio: Optional[str] = None
    tags: List[str] = []
    realName: Optional[str] = None


class PostView(BaseModel):
    """面向某个查看者的帖子视图"""
    id: int
    content: str
    eventTime: Optional[datetime] = None
    duration: Optional[int] = None
    location: Optional[str] = None
    targetPeople: Optional[int] = None
    tags: List[str] = []
    createdAt: datetime
    author: AuthorView
    hasParticipated: bool = False
    participantsCount: int = 0


class PostResponse(BaseModel):
    """帖子原始字段（更新接口返回）"""
    id: int
    authorId: int
    content: str
    eventTime: Optional[datetime] = None
    duration: Optional[int] = None
    location: Optional[str] = None
    targetPeople: Optional[int] = None
    tags: List[str] = []
    createdAt: datetime

    class Config:
        from_attributes = True


class ParticipantResponse(BaseModel):
    """参与者信息（不含真实姓名）"""
    id: int
    nickname: Optional[str] = None
    avatarUrl: Optional[str] = None
    grade: Optional[str] = None
    bio: Optional[str] = None
    tags: List[str] = []
    participatedAt: datetime
