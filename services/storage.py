"""
Contract with the external blob store. Only storage keys are kept here;
uploads, URL signing and the actual deletes happen elsewhere.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from database import run_in_transaction
from models.ImageDeletion import ImageDeletion
from utils.errors import NotFound


def enqueue_image_deletion(db: Session, key: Optional[str]) -> None:
    """Queue ``key`` for deletion inside the caller's transaction."""
    if key:
        db.add(ImageDeletion(key=key))


def replace_image_key(db: Session, old_key: Optional[str], new_key: Optional[str]) -> Optional[str]:
    """Return ``new_key``; the replaced key is queued when it changes."""
    if old_key and old_key != new_key:
        enqueue_image_deletion(db, old_key)
    return new_key


def pending_image_deletions(db: Session, limit: int = 100) -> List[ImageDeletion]:
    return db.query(ImageDeletion).order_by(ImageDeletion.id).limit(limit).all()


def acknowledge_image_deletion(db: Session, deletion_id: int) -> None:
    def _ack(db: Session) -> int:
        return db.query(ImageDeletion).filter(ImageDeletion.id == deletion_id).delete(synchronize_session=False)

    if not run_in_transaction(db, _ack):
        raise NotFound("Image deletion entry not found")
