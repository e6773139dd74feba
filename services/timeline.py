"""
Feed Aggregator, read side: home, profile and liked-items timelines.

All three start from ``visible_feed_query``, the single place where the
private-account rule is applied to feed reads. Pages are reverse
chronological (``created_at desc, id desc``) except the liked-items timeline,
which follows the order of the viewer's likes.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from models.FeedItem import FeedItem, FeedType
from models.Like import Like
from models.User import User
from services import social_graph
from services.projections import project_feed_items, with_feed_relations
from utils.errors import NotFound
from utils.pagination import check_limit, fetch_page

logger = logging.getLogger(__name__)

FeedPage = Tuple[List[dict], Optional[int]]


def visible_feed_query(db: Session, viewer_id: Optional[int]) -> Query:
    """Feed entries whose owner ``viewer_id`` is allowed to see."""
    query = db.query(FeedItem).join(User, FeedItem.user_id == User.id)
    return query.filter(social_graph.visible_owner_clause(viewer_id))


def get_home_feed(db: Session, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None) -> FeedPage:
    """The viewer's own entries plus those of everyone they follow.

    Anonymous viewers get an empty page instead of an error so the client
    can render a signed-out placeholder.
    """
    check_limit(limit)
    if viewer_id is None:
        return [], None

    author_ids = social_graph.followed_user_ids(db, viewer_id) | {viewer_id}
    query = visible_feed_query(db, viewer_id).filter(FeedItem.user_id.in_(author_ids))
    rows, next_cursor = fetch_page(with_feed_relations(query), FeedItem.id, limit, cursor, FeedItem.created_at)
    logger.debug("Home feed for %s: %s items, next=%s", viewer_id, len(rows), next_cursor)
    return project_feed_items(db, rows, viewer_id), next_cursor


def get_profile_feed(
    db: Session, user_id: int, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> FeedPage:
    """One user's entries; a private account's feed needs an accepted follow."""
    owner = social_graph.get_user(db, user_id)
    social_graph.ensure_can_view(db, viewer_id, owner)

    query = visible_feed_query(db, viewer_id).filter(FeedItem.user_id == owner.id)
    rows, next_cursor = fetch_page(with_feed_relations(query), FeedItem.id, limit, cursor, FeedItem.created_at)
    return project_feed_items(db, rows, viewer_id), next_cursor


def get_liked_feed(
    db: Session, user_id: int, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> FeedPage:
    """
    Entries for the posts and ranking lists ``user_id`` liked, newest like
    first. The cursor is a like id. Likes whose entry is gone or hidden from
    the viewer are skipped, so a page may hold fewer than ``limit`` items.
    """
    owner = social_graph.get_user(db, user_id)
    social_graph.ensure_can_view(db, viewer_id, owner)

    likes, next_cursor = fetch_page(db.query(Like).filter(Like.user_id == owner.id), Like.id, limit, cursor)
    post_ids = [like.post_id for like in likes if like.post_id is not None]
    list_ids = [like.ranking_list_id for like in likes if like.ranking_list_id is not None]
    if not post_ids and not list_ids:
        return [], next_cursor

    query = visible_feed_query(db, viewer_id).filter(or_(
        and_(FeedItem.type.in_([FeedType.POST, FeedType.QUOTE_RETWEET]), FeedItem.post_id.in_(post_ids)),
        and_(FeedItem.type == FeedType.RANKING_UPDATE, FeedItem.ranking_list_id.in_(list_ids)),
    ))
    entries = with_feed_relations(query).all()
    by_post = {e.post_id: e for e in entries if e.post_id is not None}
    by_list = {e.ranking_list_id: e for e in entries if e.ranking_list_id is not None}

    ordered = []
    for like in likes:
        entry = by_post.get(like.post_id) if like.post_id is not None else by_list.get(like.ranking_list_id)
        if entry is not None:
            ordered.append(entry)
    return project_feed_items(db, ordered, viewer_id), next_cursor


def get_feed_item_details(db: Session, feed_item_id: int, viewer_id: Optional[int]) -> dict:
    query = visible_feed_query(db, viewer_id).filter(FeedItem.id == feed_item_id)
    item = with_feed_relations(query).first()
    if item is None:
        raise NotFound("Feed item not found")
    return project_feed_items(db, [item], viewer_id)[0]
