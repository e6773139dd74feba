"""
Engagement counters: likes on posts / ranking lists and quote-retweet counts
on feed entries.

This module is the only writer of ``Post.like_count``, ``RankingList.like_count``
and ``FeedItem.quote_retweet_count``. Every change is a relative, guarded
UPDATE issued in the same transaction that inserts or deletes the underlying
row, so readers only ever see the state before or after the whole change.
Retweet counts are not stored; they are counted from ``Retweet`` rows.
"""
import logging
from typing import Dict, Iterable, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import run_in_transaction
from models.FeedItem import FeedItem
from models.Like import Like, LikeTarget, LikeTargetType
from models.Post import Post
from models.RankingList import RankingList
from models.Retweet import Retweet
from services import social_graph
from utils.errors import NotFound

logger = logging.getLogger(__name__)


def _target_model(target: LikeTarget):
    return Post if target.type == LikeTargetType.POST else RankingList


def _like_clause(target: LikeTarget):
    if target.type == LikeTargetType.POST:
        return Like.post_id == target.id
    return Like.ranking_list_id == target.id


def _increment_like_count(db: Session, target: LikeTarget) -> None:
    model = _target_model(target)
    db.query(model).filter(model.id == target.id).update(
        {model.like_count: model.like_count + 1}, synchronize_session=False
    )


def _decrement_like_count(db: Session, target: LikeTarget) -> int:
    model = _target_model(target)
    return db.query(model).filter(model.id == target.id, model.like_count > 0).update(
        {model.like_count: model.like_count - 1}, synchronize_session=False
    )


def _load_visible_target(db: Session, viewer_id: Optional[int], target: LikeTarget):
    model = _target_model(target)
    row = db.query(model).filter(model.id == target.id).first()
    if row is None:
        raise NotFound("Like target not found")
    social_graph.ensure_can_view(db, viewer_id, row.author)
    return row


def like(db: Session, actor_id: int, target: LikeTarget) -> bool:
    """Like ``target``. Returns False when the actor already liked it.

    Content of a private account can only be liked by its owner and followers.
    """

    def _like(db: Session) -> bool:
        _load_visible_target(db, actor_id, target)

        existing = db.query(Like.id).filter(Like.user_id == actor_id, _like_clause(target)).first()
        if existing is not None:
            return False

        db.add(Like.for_target(actor_id, target))
        db.flush()
        _increment_like_count(db, target)
        return True

    created = run_in_transaction(db, _like)
    if created:
        logger.info("User %s liked %s %s", actor_id, target.type.value, target.id)
    return created


def unlike(db: Session, actor_id: int, target: LikeTarget) -> bool:
    """Remove the actor's like. A missing like is a successful no-op."""

    def _unlike(db: Session) -> int:
        deleted = db.query(Like).filter(Like.user_id == actor_id, _like_clause(target)).delete(
            synchronize_session=False
        )
        # one guarded decrement per removed row also absorbs a racing double-like
        for _ in range(deleted):
            _decrement_like_count(db, target)
        return deleted

    deleted = run_in_transaction(db, _unlike)
    if deleted:
        logger.info("User %s unliked %s %s", actor_id, target.type.value, target.id)
    return deleted > 0


def increment_quote_count(db: Session, feed_item_id: int) -> int:
    """Must run inside the transaction that creates the quoting entry."""
    return db.query(FeedItem).filter(FeedItem.id == feed_item_id).update(
        {FeedItem.quote_retweet_count: FeedItem.quote_retweet_count + 1}, synchronize_session=False
    )


def decrement_quote_count(db: Session, feed_item_id: int) -> int:
    """Must run inside the transaction that deletes the quoting entry. Floors at 0."""
    return db.query(FeedItem).filter(
        FeedItem.id == feed_item_id, FeedItem.quote_retweet_count > 0
    ).update(
        {FeedItem.quote_retweet_count: FeedItem.quote_retweet_count - 1}, synchronize_session=False
    )


def delete_likes_for_post(db: Session, post_id: int) -> int:
    """Drop likes of a post that is being deleted in the caller's transaction."""
    return db.query(Like).filter(Like.post_id == post_id).delete(synchronize_session=False)


def is_liked(db: Session, user_id: int, target: LikeTarget) -> bool:
    return db.query(Like.id).filter(Like.user_id == user_id, _like_clause(target)).first() is not None


def like_status(db: Session, viewer_id: Optional[int], target: LikeTarget) -> Tuple[bool, int]:
    """``(liked by viewer, like count)``; PermissionDenied when the content is hidden from the viewer."""
    _load_visible_target(db, viewer_id, target)
    liked = viewer_id is not None and is_liked(db, viewer_id, target)
    return liked, like_count(db, target)


def like_count(db: Session, target: LikeTarget) -> int:
    model = _target_model(target)
    count = db.query(model.like_count).filter(model.id == target.id).scalar()
    if count is None:
        raise NotFound("Like target not found")
    return count


def liked_targets(
    db: Session, user_id: int, post_ids: Iterable[int], ranking_list_ids: Iterable[int]
) -> Tuple[Set[int], Set[int]]:
    """Return the subsets of ``post_ids`` and ``ranking_list_ids`` liked by ``user_id``."""
    post_ids = set(post_ids)
    ranking_list_ids = set(ranking_list_ids)
    liked_posts: Set[int] = set()
    liked_lists: Set[int] = set()
    if post_ids:
        rows = db.query(Like.post_id).filter(Like.user_id == user_id, Like.post_id.in_(post_ids)).all()
        liked_posts = {row[0] for row in rows}
    if ranking_list_ids:
        rows = db.query(Like.ranking_list_id).filter(
            Like.user_id == user_id, Like.ranking_list_id.in_(ranking_list_ids)
        ).all()
        liked_lists = {row[0] for row in rows}
    return liked_posts, liked_lists


def retweet_counts(db: Session, feed_item_ids: Iterable[int]) -> Dict[int, int]:
    ids = set(feed_item_ids)
    if not ids:
        return {}
    rows = (
        db.query(Retweet.feed_item_id, func.count(Retweet.id))
        .filter(Retweet.feed_item_id.in_(ids))
        .group_by(Retweet.feed_item_id)
        .all()
    )
    return {feed_item_id: count for feed_item_id, count in rows}


def retweeted_by(db: Session, user_id: int, feed_item_ids: Iterable[int]) -> Set[int]:
    ids = set(feed_item_ids)
    if not ids:
        return set()
    rows = db.query(Retweet.feed_item_id).filter(
        Retweet.user_id == user_id, Retweet.feed_item_id.in_(ids)
    ).all()
    return {row[0] for row in rows}
