from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config import TIMELINE_PAGE_LIMIT
from database import get_db
from schemas import (
    FollowActionResult,
    FollowListPage,
    FollowRequestActionResult,
    FollowRequestPage,
    FollowStatusInfo,
)
from services import social_graph
from services.identity import get_viewer_id, require_actor_id

router = APIRouter(prefix="/follows", tags=["Follows"])


# ---------- Follow requests ----------

@router.get("/requests", response_model=FollowRequestPage)
def list_follow_requests(
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    actor_id: int = Depends(require_actor_id),
    db: Session = Depends(get_db)
):
    """
    Pending follow requests addressed to the signed-in user.
    """
    requests, next_cursor = social_graph.list_incoming_requests(db, actor_id, limit, cursor)
    return {"items": requests, "next_cursor": next_cursor}


@router.post("/requests/{request_id}/accept", response_model=FollowRequestActionResult)
def accept_follow_request(
    request_id: int,
    actor_id: int = Depends(require_actor_id),
    db: Session = Depends(get_db)
):
    request = social_graph.accept_follow_request(db, request_id, actor_id)
    return {"success": True, "request": request}


@router.post("/requests/{request_id}/reject", response_model=FollowRequestActionResult)
def reject_follow_request(
    request_id: int,
    actor_id: int = Depends(require_actor_id),
    db: Session = Depends(get_db)
):
    request = social_graph.reject_follow_request(db, request_id, actor_id)
    return {"success": True, "request": request}


# ---------- Follow edges ----------

@router.post("/{target_id}", response_model=FollowActionResult)
def follow_user(
    target_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Follow a user, or send a follow request when the account is private.
    """
    return {"success": True, "status": social_graph.follow_user(db, viewer_id, target_id)}


@router.delete("/{target_id}", response_model=FollowActionResult)
def unfollow_user(
    target_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return {"success": True, "status": social_graph.unfollow_user(db, viewer_id, target_id)}


@router.delete("/{target_id}/request", response_model=FollowActionResult)
def cancel_follow_request(
    target_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return {"success": True, "status": social_graph.cancel_follow_request(db, viewer_id, target_id)}


@router.get("/{target_id}/status", response_model=FollowStatusInfo)
def get_follow_status(
    target_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return social_graph.get_follow_status_info(db, viewer_id, target_id)


@router.get("/{user_id}/followers", response_model=FollowListPage)
def get_followers(
    user_id: int,
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Get list of users that follow a user.
    """
    items, next_cursor = social_graph.list_followers(db, user_id, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}


@router.get("/{user_id}/following", response_model=FollowListPage)
def get_following(
    user_id: int,
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Get list of users that a user is following.
    """
    items, next_cursor = social_graph.list_following(db, user_id, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}
