from sqlalchemy import Column, Integer, String, Text, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class RankedItem(Base):
    __tablename__ = "ranked_items"

    id = Column(Integer, primary_key=True, index=True)
    ranking_list_id = Column(Integer, ForeignKey("ranking_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    rank = Column(Integer, nullable=False)
    item_name = Column(String(100), nullable=False)
    item_description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    ranking_list = relationship("RankingList", back_populates="items")
