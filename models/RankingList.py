from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base
import enum

class ListStatus(enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"

class RankingList(Base):
    __tablename__ = "ranking_lists"
    __table_args__ = (
        CheckConstraint("like_count >= 0", name="ck_ranking_list_like_count"),
    )

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    list_image_url = Column(String(500), nullable=True)
    status = Column(SQLEnum(ListStatus), default=ListStatus.DRAFT, nullable=False, index=True)
    # Mirrors count(Like WHERE ranking_list_id = id); written only by services.engagement
    like_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("User")
    items = relationship("RankedItem", back_populates="ranking_list", order_by="RankedItem.rank", cascade="all, delete-orphan")
