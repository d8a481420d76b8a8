"""
用户模型
"""
from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, func
from machus.db.database import Base, IdType, TagArray


class User(Base):
    __tablename__ = "users"

    id = Column(IdType, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    email_verified = Column(Boolean, nullable=False, default=False)

    # 私密身份：只对参与者可见
    real_name = Column(String(100), nullable=True)

    # 公开身份
    nickname = Column(String(100), nullable=True)
    grade = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    bio = Column(Text, nullable=True)
    tags = Column(TagArray, nullable=True)
    avatar_url = Column(Text, nullable=True)

    is_admin = Column(Boolean, nullable=False, default=False)
    profile_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
