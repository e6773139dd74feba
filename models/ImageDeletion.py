from sqlalchemy import Column, Integer, String, DateTime, func
from database import Base

class ImageDeletion(Base):
    """Storage key waiting to be removed by the external blob-store worker."""
    __tablename__ = "image_deletions"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(500), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
