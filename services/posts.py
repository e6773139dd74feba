import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from config import POST_MAX_LENGTH
from database import run_in_transaction
from models.FeedItem import FeedItem, FeedType
from models.Post import Post
from services import engagement, feed, storage
from utils.errors import NotFound, PermissionDenied, Unauthenticated, ValidationFailed

logger = logging.getLogger(__name__)


def validate_post_content(content: Optional[str], image_key: Optional[str]) -> str:
    trimmed = (content or "").strip()
    if not trimmed and not image_key:
        raise ValidationFailed("Enter some text or attach an image")
    if len(trimmed) > POST_MAX_LENGTH:
        raise ValidationFailed(f"Posts must be {POST_MAX_LENGTH} characters or fewer")
    return trimmed


def create_post(
    db: Session, author_id: Optional[int], content: Optional[str], image_key: Optional[str] = None
) -> Tuple[Post, FeedItem]:
    """Create a post together with its POST feed entry."""
    if author_id is None:
        raise Unauthenticated("Sign in required")
    text = validate_post_content(content, image_key)

    def _create(db: Session) -> Tuple[Post, FeedItem]:
        post = Post(author_id=author_id, content=text, image_url=image_key)
        db.add(post)
        db.flush()
        return post, feed.create_post_entry(db, author_id, post.id)

    post, entry = run_in_transaction(db, _create)
    logger.info("User %s created post %s (feed item %s)", author_id, post.id, entry.id)
    return post, entry


def delete_post(db: Session, post_id: int, actor_id: Optional[int]) -> None:
    if actor_id is None:
        raise Unauthenticated("Sign in required")

    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFound("Post not found")
    if post.author_id != actor_id:
        raise PermissionDenied("Not authorized to delete this post")

    # a quote comment goes with its quote entry and the quoted counter
    quote = db.query(FeedItem.id).filter(
        FeedItem.post_id == post_id,
        FeedItem.type == FeedType.QUOTE_RETWEET
    ).first()
    if quote:
        feed.delete_quote_retweet(db, quote[0], actor_id)
        return

    def _delete(db: Session) -> None:
        image_key = db.query(Post.image_url).filter(Post.id == post_id).scalar()
        feed.delete_post_entries(db, post_id)
        engagement.delete_likes_for_post(db, post_id)
        db.query(Post).filter(Post.id == post_id).delete(synchronize_session=False)
        storage.enqueue_image_deletion(db, image_key)

    run_in_transaction(db, _delete)
    logger.info("User %s deleted post %s", actor_id, post_id)
