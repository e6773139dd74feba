from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from config import TIMELINE_PAGE_LIMIT
from database import get_db
from schemas import FeedActionResult, FeedItemRead, FeedPage, QuoteRetweetCreate
from services import feed, timeline
from services.identity import get_viewer_id

router = APIRouter(prefix="/feed", tags=["Feed"])


# ---------- Timelines ----------

@router.get("/home", response_model=FeedPage)
def get_home_feed(
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    The signed-in user's entries and those of everyone they follow, newest first.
    """
    items, next_cursor = timeline.get_home_feed(db, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}


@router.get("/users/{user_id}", response_model=FeedPage)
def get_profile_feed(
    user_id: int,
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    items, next_cursor = timeline.get_profile_feed(db, user_id, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}


@router.get("/users/{user_id}/likes", response_model=FeedPage)
def get_liked_feed(
    user_id: int,
    cursor: Optional[int] = None,
    limit: int = TIMELINE_PAGE_LIMIT,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Entries a user liked, most recent like first. The cursor is a like id.
    """
    items, next_cursor = timeline.get_liked_feed(db, user_id, viewer_id, limit, cursor)
    return {"items": items, "next_cursor": next_cursor}


@router.get("/{feed_item_id}", response_model=FeedItemRead)
def get_feed_item(
    feed_item_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    return timeline.get_feed_item_details(db, feed_item_id, viewer_id)


# ---------- Retweets ----------

@router.post("/{feed_item_id}/retweet", response_model=FeedActionResult)
def retweet(
    feed_item_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Retweet an entry. Retweeting twice succeeds without a second entry.
    """
    new_id = feed.retweet(db, feed_item_id, viewer_id)
    return {"success": True, "feed_item_id": new_id}


@router.delete("/{feed_item_id}/retweet", response_model=FeedActionResult)
def undo_retweet(
    feed_item_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    feed.undo_retweet(db, feed_item_id, viewer_id)
    return {"success": True}


# ---------- Quote retweets ----------

@router.post("/{feed_item_id}/quote", response_model=FeedActionResult, status_code=status.HTTP_201_CREATED)
def quote_retweet(
    feed_item_id: int,
    payload: QuoteRetweetCreate,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    post, entry = feed.quote_retweet(db, feed_item_id, viewer_id, payload.comment, payload.image_url)
    return {"success": True, "feed_item_id": entry.id, "post_id": post.id}


@router.delete("/quotes/{feed_item_id}", response_model=FeedActionResult)
def delete_quote_retweet(
    feed_item_id: int,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    feed.delete_quote_retweet(db, feed_item_id, viewer_id)
    return {"success": True, "feed_item_id": feed_item_id}
