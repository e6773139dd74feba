from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union
import enum

from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, Enum as SQLEnum, CheckConstraint, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from database import Base


class FeedType(enum.Enum):
    POST = "POST"
    RANKING_UPDATE = "RANKING_UPDATE"
    RETWEET = "RETWEET"
    QUOTE_RETWEET = "QUOTE_RETWEET"


# What a feed entry points at. Exactly one of these is stored per row.
@dataclass(frozen=True)
class PostContent:
    post_id: int


@dataclass(frozen=True)
class RankingUpdateContent:
    ranking_list_id: int


@dataclass(frozen=True)
class RetweetContent:
    feed_item_id: int


@dataclass(frozen=True)
class QuoteContent:
    quoted_feed_item_id: int
    comment_post_id: int


FeedContent = Union[PostContent, RankingUpdateContent, RetweetContent, QuoteContent]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_ONE_BRANCH = (
    "(type = 'POST' AND post_id IS NOT NULL AND ranking_list_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL AND quoted_feed_item_id IS NULL)"
    " OR (type = 'RANKING_UPDATE' AND ranking_list_id IS NOT NULL AND post_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL AND quoted_feed_item_id IS NULL)"
    " OR (type = 'RETWEET' AND retweet_of_feed_item_id IS NOT NULL AND post_id IS NULL"
    " AND ranking_list_id IS NULL AND quoted_feed_item_id IS NULL)"
    # quoted_feed_item_id is nulled when the quoted entry goes away
    " OR (type = 'QUOTE_RETWEET' AND post_id IS NOT NULL AND ranking_list_id IS NULL"
    " AND retweet_of_feed_item_id IS NULL)"
)


class FeedItem(Base):
    __tablename__ = "feed_items"
    __table_args__ = (
        UniqueConstraint("ranking_list_id", "type", name="uq_feed_item_ranking_update"),
        CheckConstraint(_ONE_BRANCH, name="ck_feed_item_one_branch"),
        CheckConstraint("quote_retweet_count >= 0", name="ck_feed_item_quote_count"),
        Index("ix_feed_items_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    type = Column(SQLEnum(FeedType), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=True, index=True)
    ranking_list_id = Column(Integer, ForeignKey("ranking_lists.id", ondelete="CASCADE"), nullable=True)
    retweet_of_feed_item_id = Column(Integer, ForeignKey("feed_items.id", ondelete="CASCADE"), nullable=True, index=True)
    quoted_feed_item_id = Column(Integer, ForeignKey("feed_items.id", ondelete="SET NULL"), nullable=True, index=True)
    # Mirrors count(FeedItem WHERE quoted_feed_item_id = id); written only by services.engagement
    quote_retweet_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")
    post = relationship("Post")
    ranking_list = relationship("RankingList")
    retweet_of_feed_item = relationship("FeedItem", remote_side=[id], foreign_keys=[retweet_of_feed_item_id])
    quoted_feed_item = relationship("FeedItem", remote_side=[id], foreign_keys=[quoted_feed_item_id])

    @classmethod
    def from_content(cls, user_id: int, content: FeedContent) -> "FeedItem":
        """The only way to build a feed entry; sets exactly one reference branch."""
        if isinstance(content, PostContent):
            return cls(user_id=user_id, type=FeedType.POST, post_id=content.post_id)
        if isinstance(content, RankingUpdateContent):
            return cls(user_id=user_id, type=FeedType.RANKING_UPDATE, ranking_list_id=content.ranking_list_id)
        if isinstance(content, RetweetContent):
            return cls(user_id=user_id, type=FeedType.RETWEET, retweet_of_feed_item_id=content.feed_item_id)
        if isinstance(content, QuoteContent):
            return cls(
                user_id=user_id,
                type=FeedType.QUOTE_RETWEET,
                post_id=content.comment_post_id,
                quoted_feed_item_id=content.quoted_feed_item_id,
            )
        raise TypeError(f"Unsupported feed content: {content!r}")

    @property
    def content(self) -> FeedContent:
        if self.type == FeedType.POST:
            return PostContent(self.post_id)
        if self.type == FeedType.RANKING_UPDATE:
            return RankingUpdateContent(self.ranking_list_id)
        if self.type == FeedType.RETWEET:
            return RetweetContent(self.retweet_of_feed_item_id)
        return QuoteContent(self.quoted_feed_item_id, self.post_id)
