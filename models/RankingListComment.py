from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from database import Base
from models.FeedItem import utcnow

class RankingListComment(Base):
    __tablename__ = "ranking_list_comments"
    __table_args__ = (
        Index("ix_ranking_list_comments_list_created", "ranking_list_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    ranking_list_id = Column(Integer, ForeignKey("ranking_lists.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    # python-side default, same as feed entries
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    ranking_list = relationship("RankingList")
    user = relationship("User")
