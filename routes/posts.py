from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from schemas import PostActionResult, PostCreate
from services import posts
from services.identity import get_viewer_id

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.post("/", response_model=PostActionResult, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Create a post. Its POST feed entry is created in the same transaction.
    """
    post, entry = posts.create_post(db, viewer_id, payload.content, payload.image_url)
    return {"success": True, "post_id": post.id, "feed_item_id": entry.id}


@router.delete("/{post_id}", response_model=PostActionResult)
def delete_post(
    post_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    posts.delete_post(db, post_id, viewer_id)
    return {"success": True, "post_id": post_id}
