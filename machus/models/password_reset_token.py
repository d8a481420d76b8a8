"""
密码重置令牌模型
"""
from sqlalchemy import Column, String, Boolean, TIMESTAMP, ForeignKey, func
from machus.db.database import Base, IdType


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(IdType, primary_key=True, autoincrement=True)
    user_id = Column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String(255), nullable=False)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
