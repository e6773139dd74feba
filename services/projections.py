"""
Shapes feed entries for renderers.

Each entry carries its user/post/ranking-list projection and, for RETWEET and
QUOTE_RETWEET, the referenced original resolved one level deep. The original
is projected without its own nested objects (only its reference ids), so a
page never needs a second round trip and never recurses.
"""
from typing import Iterable, List, Optional, Set

from sqlalchemy.orm import Query, Session, joinedload, selectinload

from models.FeedItem import FeedItem
from models.Post import Post
from models.RankingList import RankingList
from models.User import User
from services import engagement, social_graph

RANKING_PREVIEW_ITEMS = 3


def with_feed_relations(query: Query) -> Query:
    return query.options(
        joinedload(FeedItem.user),
        joinedload(FeedItem.post).joinedload(Post.author),
        joinedload(FeedItem.ranking_list).selectinload(RankingList.items),
        selectinload(FeedItem.retweet_of_feed_item).options(
            joinedload(FeedItem.user),
            joinedload(FeedItem.post).joinedload(Post.author),
            joinedload(FeedItem.ranking_list).selectinload(RankingList.items),
        ),
        selectinload(FeedItem.quoted_feed_item).options(
            joinedload(FeedItem.user),
            joinedload(FeedItem.post).joinedload(Post.author),
            joinedload(FeedItem.ranking_list).selectinload(RankingList.items),
        ),
    )


def user_snippet(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "image": user.image,
    }


def _post_payload(post: Optional[Post], liked_posts: Set[int]) -> Optional[dict]:
    if post is None:
        return None
    return {
        "id": post.id,
        "content": post.content,
        "image_url": post.image_url,
        "created_at": post.created_at,
        "author": user_snippet(post.author),
        "like_count": post.like_count,
        "liked_by_viewer": post.id in liked_posts,
    }


def _ranking_list_payload(ranking_list: Optional[RankingList], liked_lists: Set[int]) -> Optional[dict]:
    if ranking_list is None:
        return None
    return {
        "id": ranking_list.id,
        "subject": ranking_list.subject,
        "description": ranking_list.description,
        "list_image_url": ranking_list.list_image_url,
        "status": ranking_list.status.value,
        "created_at": ranking_list.created_at,
        "updated_at": ranking_list.updated_at,
        "items": [
            {"id": item.id, "rank": item.rank, "item_name": item.item_name, "image_url": item.image_url}
            for item in ranking_list.items[:RANKING_PREVIEW_ITEMS]
        ],
        "item_count": len(ranking_list.items),
        "like_count": ranking_list.like_count,
        "liked_by_viewer": ranking_list.id in liked_lists,
    }


class _Context:
    """Per-page lookups shared by every entry of the page."""

    def __init__(self, db: Session, items: List[FeedItem], viewer_id: Optional[int]):
        self.viewer_id = viewer_id
        everything = list(items)
        for item in items:
            everything.extend(o for o in (item.retweet_of_feed_item, item.quoted_feed_item) if o is not None)

        ids = {item.id for item in everything}
        self.retweet_counts = engagement.retweet_counts(db, ids)
        self.retweeted: Set[int] = set()
        self.liked_posts: Set[int] = set()
        self.liked_lists: Set[int] = set()
        self.followed: Set[int] = set()
        if viewer_id is not None:
            self.retweeted = engagement.retweeted_by(db, viewer_id, ids)
            self.liked_posts, self.liked_lists = engagement.liked_targets(
                db,
                viewer_id,
                (item.post_id for item in everything if item.post_id is not None),
                (item.ranking_list_id for item in everything if item.ranking_list_id is not None),
            )
            self.followed = social_graph.followed_user_ids(db, viewer_id)

    def can_view(self, owner: User) -> bool:
        return (not owner.is_private) or owner.id == self.viewer_id or owner.id in self.followed


def _entry_payload(item: FeedItem, ctx: _Context) -> dict:
    return {
        "id": item.id,
        "type": item.type.value,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "user_id": item.user_id,
        "post_id": item.post_id,
        "ranking_list_id": item.ranking_list_id,
        "retweet_of_feed_item_id": item.retweet_of_feed_item_id,
        "quoted_feed_item_id": item.quoted_feed_item_id,
        "quote_retweet_count": item.quote_retweet_count,
        "retweet_count": ctx.retweet_counts.get(item.id, 0),
        "retweeted_by_viewer": item.id in ctx.retweeted,
        "user": user_snippet(item.user),
        "post": _post_payload(item.post, ctx.liked_posts),
        "ranking_list": _ranking_list_payload(item.ranking_list, ctx.liked_lists),
    }


def _origin_payload(origin: Optional[FeedItem], ctx: _Context) -> Optional[dict]:
    # an original the viewer may not see is rendered as unavailable
    if origin is None or not ctx.can_view(origin.user):
        return None
    return _entry_payload(origin, ctx)


def project_feed_items(db: Session, items: Iterable[FeedItem], viewer_id: Optional[int]) -> List[dict]:
    items = list(items)
    ctx = _Context(db, items, viewer_id)
    payloads = []
    for item in items:
        payload = _entry_payload(item, ctx)
        payload["retweet_of_feed_item"] = _origin_payload(item.retweet_of_feed_item, ctx)
        payload["quoted_feed_item"] = _origin_payload(item.quoted_feed_item, ctx)
        payloads.append(payload)
    return payloads
