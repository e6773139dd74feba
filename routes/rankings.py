from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config import TIMELINE_PAGE_LIMIT
from database import get_db
from schemas import (
    ActionResult,
    RankingActionResult,
    RankingCommentActionResult,
    RankingCommentCreate,
    RankingCommentPage,
    RankingListCreate,
    RankingStatusUpdate,
)
from services import comments, rankings
from services.identity import get_viewer_id

router = APIRouter(prefix="/ranking-lists", tags=["Ranking Lists"])


@router.post("/", response_model=RankingActionResult, status_code=status.HTTP_201_CREATED)
def create_ranking_list(
    payload: RankingListCreate,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """Create a ranking list as a draft"""
    ranking_list = rankings.create_ranking_list(
        db,
        viewer_id,
        payload.subject,
        description=payload.description,
        items=[item.model_dump() for item in payload.items],
        list_image_url=payload.list_image_url,
    )
    return {"success": True, "ranking_list_id": ranking_list.id, "status": ranking_list.status}


@router.patch("/{ranking_list_id}/status", response_model=RankingActionResult)
def set_ranking_status(
    ranking_list_id: int,
    payload: RankingStatusUpdate,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Publish or unpublish a list. Publishing puts a RANKING_UPDATE entry on the
    author's feed; unpublishing takes it off again.
    """
    ranking_list = rankings.set_ranking_status(db, ranking_list_id, viewer_id, payload.status)
    return {"success": True, "ranking_list_id": ranking_list.id, "status": ranking_list.status}


# ---------- Comments ----------

@router.get("/{ranking_list_id}/comments", response_model=RankingCommentPage)
def list_comments(
    ranking_list_id: int,
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """Comments on a list, newest first"""
    items, next_cursor = comments.list_comments(db, ranking_list_id, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}


@router.post("/{ranking_list_id}/comments", response_model=RankingCommentActionResult, status_code=status.HTTP_201_CREATED)
def create_comment(
    ranking_list_id: int,
    payload: RankingCommentCreate,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    comment = comments.create_comment(db, ranking_list_id, viewer_id, payload.content)
    return {"success": True, "comment": comment}


@router.delete("/{ranking_list_id}/comments/{comment_id}", response_model=ActionResult)
def delete_comment(
    ranking_list_id: int,
    comment_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    comments.delete_comment(db, ranking_list_id, comment_id, viewer_id)
    return {"success": True}
