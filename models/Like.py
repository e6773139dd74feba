from dataclasses import dataclass
import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, Index, func
from sqlalchemy.orm import relationship
from database import Base


class LikeTargetType(enum.Enum):
    POST = "post"
    RANKING_LIST = "ranking_list"


@dataclass(frozen=True)
class LikeTarget:
    type: LikeTargetType
    id: int

    @classmethod
    def post(cls, post_id: int) -> "LikeTarget":
        return cls(LikeTargetType.POST, post_id)

    @classmethod
    def ranking_list(cls, ranking_list_id: int) -> "LikeTarget":
        return cls(LikeTargetType.RANKING_LIST, ranking_list_id)


class Like(Base):
    # (user, target) uniqueness is checked in services.engagement, not here:
    # the target is one of two nullable columns.
    __tablename__ = "likes"
    __table_args__ = (
        CheckConstraint(
            "(post_id IS NOT NULL AND ranking_list_id IS NULL)"
            " OR (post_id IS NULL AND ranking_list_id IS NOT NULL)",
            name="ck_like_one_target",
        ),
        Index("ix_likes_user_post", "user_id", "post_id"),
        Index("ix_likes_user_ranking_list", "user_id", "ranking_list_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True)
    ranking_list_id = Column(Integer, ForeignKey("ranking_lists.id", ondelete="CASCADE"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User")
    post = relationship("Post")
    ranking_list = relationship("RankingList")

    @classmethod
    def for_target(cls, user_id: int, target: LikeTarget) -> "Like":
        if target.type == LikeTargetType.POST:
            return cls(user_id=user_id, post_id=target.id)
        return cls(user_id=user_id, ranking_list_id=target.id)

    @property
    def target(self) -> LikeTarget:
        if self.post_id is not None:
            return LikeTarget.post(self.post_id)
        return LikeTarget.ranking_list(self.ranking_list_id)
