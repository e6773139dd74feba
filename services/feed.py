"""
Feed Aggregator, write side.

Every feed mutation here is one ``run_in_transaction`` unit. Counter changes
are delegated to ``services.engagement``; visibility decisions to
``services.social_graph``.
"""
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from config import QUOTE_MAX_LENGTH
from database import run_in_transaction
from models.FeedItem import (
    FeedItem, FeedType, PostContent, QuoteContent, RankingUpdateContent, RetweetContent, utcnow,
)
from models.Post import Post
from models.Retweet import Retweet
from services import engagement, social_graph, storage
from utils.errors import Conflict, NotFound, PermissionDenied, Unauthenticated, ValidationFailed

logger = logging.getLogger(__name__)


def _require_actor(actor_id: Optional[int]) -> int:
    if actor_id is None:
        raise Unauthenticated("Sign in required")
    return actor_id


def get_feed_item(db: Session, feed_item_id: int) -> FeedItem:
    item = db.query(FeedItem).filter(FeedItem.id == feed_item_id).first()
    if not item:
        raise NotFound("Feed item not found")
    return item


def _share_target(db: Session, item: FeedItem) -> FeedItem:
    # a plain retweet carries no content of its own; sharing it shares its origin
    if item.type == FeedType.RETWEET:
        return get_feed_item(db, item.retweet_of_feed_item_id)
    return item


def _ensure_can_share(db: Session, actor_id: int, item: FeedItem) -> None:
    # sharing follows read visibility: an accepted follower of a private
    # account may retweet or quote it, non-followers may not
    if not social_graph.can_view(db, actor_id, item.user):
        raise PermissionDenied("Posts from private accounts cannot be shared")


def _delete_entry(db: Session, item_id: int) -> None:
    """Delete one entry plus the retweets of it; quotes of it lose their reference."""
    db.query(Retweet).filter(Retweet.feed_item_id == item_id).delete(synchronize_session=False)
    db.query(FeedItem).filter(
        FeedItem.type == FeedType.RETWEET,
        FeedItem.retweet_of_feed_item_id == item_id
    ).delete(synchronize_session=False)
    db.query(FeedItem).filter(FeedItem.quoted_feed_item_id == item_id).update(
        {FeedItem.quoted_feed_item_id: None}, synchronize_session=False
    )
    db.query(FeedItem).filter(FeedItem.id == item_id).delete(synchronize_session=False)


# ---------- Content publication ----------

def create_post_entry(db: Session, author_id: int, post_id: int) -> FeedItem:
    """Add the POST entry for a new post inside the caller's transaction."""
    entry = FeedItem.from_content(author_id, PostContent(post_id))
    db.add(entry)
    db.flush()
    return entry


def delete_post_entries(db: Session, post_id: int) -> int:
    """Remove the POST entries of a post inside the caller's transaction."""
    ids = [row[0] for row in db.query(FeedItem.id).filter(
        FeedItem.type == FeedType.POST,
        FeedItem.post_id == post_id
    ).all()]
    for item_id in ids:
        _delete_entry(db, item_id)
    return len(ids)


def publish_ranking_update(db: Session, ranking_list_id: int, author_id: int) -> FeedItem:
    """
    Upsert the single RANKING_UPDATE entry of a list inside the caller's
    transaction: inserted on first publish, ``updated_at`` bumped afterwards.
    """
    entry = db.query(FeedItem).filter(
        FeedItem.ranking_list_id == ranking_list_id,
        FeedItem.type == FeedType.RANKING_UPDATE
    ).first()
    if entry is None:
        entry = FeedItem.from_content(author_id, RankingUpdateContent(ranking_list_id))
        db.add(entry)
    else:
        entry.updated_at = utcnow()
    db.flush()
    return entry


def retract_ranking_update(db: Session, ranking_list_id: int) -> bool:
    """Remove a list's RANKING_UPDATE entry inside the caller's transaction."""
    row = db.query(FeedItem.id).filter(
        FeedItem.ranking_list_id == ranking_list_id,
        FeedItem.type == FeedType.RANKING_UPDATE
    ).first()
    if row is None:
        return False
    _delete_entry(db, row[0])
    return True


# ---------- Retweets ----------

def retweet(db: Session, feed_item_id: int, actor_id: Optional[int]) -> Optional[int]:
    """
    Retweet a feed entry. Returns the id of the new RETWEET entry, or None
    when the actor had already retweeted it (at most one per user and item).
    """
    actor_id = _require_actor(actor_id)

    def _retweet(db: Session) -> Optional[int]:
        target = _share_target(db, get_feed_item(db, feed_item_id))
        _ensure_can_share(db, actor_id, target)

        existing = db.query(Retweet.id).filter(
            Retweet.user_id == actor_id,
            Retweet.feed_item_id == target.id
        ).first()
        if existing:
            return None

        db.add(Retweet(user_id=actor_id, feed_item_id=target.id))
        entry = FeedItem.from_content(actor_id, RetweetContent(target.id))
        db.add(entry)
        db.flush()
        return entry.id

    try:
        new_id = run_in_transaction(db, _retweet)
    except Conflict:
        # a concurrent retweet by the same user won the unique constraint
        target = _share_target(db, get_feed_item(db, feed_item_id))
        if db.query(Retweet.id).filter(Retweet.user_id == actor_id, Retweet.feed_item_id == target.id).first():
            return None
        raise

    if new_id is None:
        logger.info("User %s already retweeted feed item %s", actor_id, feed_item_id)
    else:
        logger.info("User %s retweeted feed item %s as %s", actor_id, feed_item_id, new_id)
    return new_id


def undo_retweet(db: Session, feed_item_id: int, actor_id: Optional[int]) -> bool:
    """Remove the actor's retweet of an entry. Nothing to remove is still success."""
    actor_id = _require_actor(actor_id)

    def _undo(db: Session) -> int:
        item = db.query(FeedItem).filter(FeedItem.id == feed_item_id).first()
        target_id = feed_item_id
        if item is not None and item.type == FeedType.RETWEET:
            target_id = item.retweet_of_feed_item_id

        deleted = db.query(Retweet).filter(
            Retweet.user_id == actor_id,
            Retweet.feed_item_id == target_id
        ).delete(synchronize_session=False)
        deleted += db.query(FeedItem).filter(
            FeedItem.user_id == actor_id,
            FeedItem.type == FeedType.RETWEET,
            FeedItem.retweet_of_feed_item_id == target_id
        ).delete(synchronize_session=False)
        return deleted

    removed = run_in_transaction(db, _undo)
    if removed:
        logger.info("User %s undid retweet of feed item %s", actor_id, feed_item_id)
    else:
        logger.info("No retweet of feed item %s by user %s to undo", feed_item_id, actor_id)
    return removed > 0


# ---------- Quote retweets ----------

def validate_quote_comment(comment: Optional[str], image_key: Optional[str]) -> str:
    trimmed = (comment or "").strip()
    if not trimmed and not image_key:
        raise ValidationFailed("Enter a comment or attach an image")
    if len(trimmed) > QUOTE_MAX_LENGTH:
        raise ValidationFailed(f"Comment must be {QUOTE_MAX_LENGTH} characters or fewer")
    return trimmed


def quote_retweet(
    db: Session,
    quoted_feed_item_id: int,
    actor_id: Optional[int],
    comment: Optional[str],
    image_key: Optional[str] = None,
) -> Tuple[Post, FeedItem]:
    """
    Create the comment post, the QUOTE_RETWEET entry and bump the quoted
    entry's counter as one unit. Not idempotent: every call quotes again.
    """
    actor_id = _require_actor(actor_id)
    text = validate_quote_comment(comment, image_key)

    def _quote(db: Session) -> Tuple[Post, FeedItem]:
        target = _share_target(db, get_feed_item(db, quoted_feed_item_id))
        _ensure_can_share(db, actor_id, target)

        post = Post(author_id=actor_id, content=text, image_url=image_key)
        db.add(post)
        db.flush()

        entry = FeedItem.from_content(actor_id, QuoteContent(target.id, post.id))
        db.add(entry)
        db.flush()

        engagement.increment_quote_count(db, target.id)
        return post, entry

    post, entry = run_in_transaction(db, _quote)
    logger.info("User %s quoted feed item %s as %s (post %s)", actor_id, quoted_feed_item_id, entry.id, post.id)
    return post, entry


def delete_quote_retweet(db: Session, feed_item_id: int, actor_id: Optional[int]) -> None:
    """Owner-only delete of a quote: counter, comment post and entry go together."""
    actor_id = _require_actor(actor_id)

    def _delete(db: Session) -> None:
        item = db.query(FeedItem).filter(
            FeedItem.id == feed_item_id,
            FeedItem.type == FeedType.QUOTE_RETWEET
        ).first()
        if not item:
            raise NotFound("Quote retweet not found")
        if item.user_id != actor_id:
            raise PermissionDenied("Only the author can delete this quote retweet")

        post_id = item.post_id
        image_key = item.post.image_url if item.post else None
        if item.quoted_feed_item_id is not None:
            engagement.decrement_quote_count(db, item.quoted_feed_item_id)

        _delete_entry(db, item.id)
        engagement.delete_likes_for_post(db, post_id)
        db.query(Post).filter(Post.id == post_id).delete(synchronize_session=False)
        storage.enqueue_image_deletion(db, image_key)

    run_in_transaction(db, _delete)
    logger.info("User %s deleted quote retweet %s", actor_id, feed_item_id)
