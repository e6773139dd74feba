from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from models.Like import LikeTarget
from schemas import LikeActionResult, LikeStatus
from services import engagement
from services.identity import get_viewer_id, require_actor_id

router = APIRouter(prefix="/likes", tags=["Likes"])


def _like_result(db: Session, target: LikeTarget, liked: bool) -> dict:
    return {"success": True, "liked": liked, "like_count": engagement.like_count(db, target)}


def _like_status(db: Session, viewer_id: Optional[int], target: LikeTarget) -> dict:
    liked, like_count = engagement.like_status(db, viewer_id, target)
    return {"liked": liked, "like_count": like_count}


# ---------- Posts ----------

@router.post("/posts/{post_id}", response_model=LikeActionResult)
def like_post(post_id: int, actor_id: int = Depends(require_actor_id), db: Session = Depends(get_db)):
    """
    Like a post. Liking an already liked post leaves the count unchanged.
    """
    target = LikeTarget.post(post_id)
    engagement.like(db, actor_id, target)
    return _like_result(db, target, True)


@router.delete("/posts/{post_id}", response_model=LikeActionResult)
def unlike_post(post_id: int, actor_id: int = Depends(require_actor_id), db: Session = Depends(get_db)):
    target = LikeTarget.post(post_id)
    engagement.unlike(db, actor_id, target)
    return _like_result(db, target, False)


@router.get("/posts/{post_id}", response_model=LikeStatus)
def get_post_like_status(
    post_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return _like_status(db, viewer_id, LikeTarget.post(post_id))


# ---------- Ranking lists ----------

@router.post("/ranking-lists/{ranking_list_id}", response_model=LikeActionResult)
def like_ranking_list(ranking_list_id: int, actor_id: int = Depends(require_actor_id), db: Session = Depends(get_db)):
    target = LikeTarget.ranking_list(ranking_list_id)
    engagement.like(db, actor_id, target)
    return _like_result(db, target, True)


@router.delete("/ranking-lists/{ranking_list_id}", response_model=LikeActionResult)
def unlike_ranking_list(ranking_list_id: int, actor_id: int = Depends(require_actor_id), db: Session = Depends(get_db)):
    target = LikeTarget.ranking_list(ranking_list_id)
    engagement.unlike(db, actor_id, target)
    return _like_result(db, target, False)


@router.get("/ranking-lists/{ranking_list_id}", response_model=LikeStatus)
def get_ranking_list_like_status(
    ranking_list_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return _like_status(db, viewer_id, LikeTarget.ranking_list(ranking_list_id))
