"""
组局帖子模型
"""
from sqlalchemy import Column, String, Text, Integer, TIMESTAMP, ForeignKey, func
from machus.db.database import Base, IdType, TagArray


class Post(Base):
    __tablename__ = "posts"

    id = Column(IdType, primary_key=True, autoincrement=True)
    author_id = Column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    event_time = Column(TIMESTAMP(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)  # 统一以分钟存储
    location = Column(String(255), nullable=True)
    target_people = Column(Integer, nullable=True)
    tags = Column(TagArray, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
