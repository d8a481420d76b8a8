"""
参与记录模型
"""
from sqlalchemy import Column, TIMESTAMP, ForeignKey, UniqueConstraint, func
from machus.db.database import Base, IdType


class Participation(Base):
    __tablename__ = "participations"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uq_participations_post_user"),
    )

    # id 即插入顺序，participated_at 相同时用它排序
    id = Column(IdType, primary_key=True, autoincrement=True)
    post_id = Column(IdType, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(IdType, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    participated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
