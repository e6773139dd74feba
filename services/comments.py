"""
Comments on ranking lists.

Reading follows the list author's visibility: a private author's comments
need an accepted follow, and a DRAFT list's comments are only shown to its
author. Only a comment's writer can delete it.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from config import COMMENT_MAX_LENGTH
from database import run_in_transaction
from models.RankingList import ListStatus, RankingList
from models.RankingListComment import RankingListComment
from services import social_graph
from utils.errors import NotFound, PermissionDenied, Unauthenticated, ValidationFailed
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


def _visible_list(db: Session, ranking_list_id: int, viewer_id: Optional[int]) -> RankingList:
    ranking_list = db.query(RankingList).filter(RankingList.id == ranking_list_id).first()
    if not ranking_list:
        raise NotFound("Ranking list not found")
    if ranking_list.status == ListStatus.DRAFT and ranking_list.author_id != viewer_id:
        raise NotFound("Ranking list not found")
    social_graph.ensure_can_view(db, viewer_id, ranking_list.author)
    return ranking_list


def validate_comment(content: Optional[str]) -> str:
    trimmed = (content or "").strip()
    if not trimmed:
        raise ValidationFailed("Comment cannot be empty")
    if len(trimmed) > COMMENT_MAX_LENGTH:
        raise ValidationFailed(f"Comment must be {COMMENT_MAX_LENGTH} characters or fewer")
    return trimmed


def list_comments(
    db: Session, ranking_list_id: int, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> Tuple[List[RankingListComment], Optional[int]]:
    """Newest comment first."""
    ranking_list = _visible_list(db, ranking_list_id, viewer_id)
    query = db.query(RankingListComment).options(joinedload(RankingListComment.user)).filter(
        RankingListComment.ranking_list_id == ranking_list.id
    )
    return fetch_page(query, RankingListComment.id, limit, cursor, RankingListComment.created_at)


def create_comment(
    db: Session, ranking_list_id: int, actor_id: Optional[int], content: Optional[str]
) -> RankingListComment:
    if actor_id is None:
        raise Unauthenticated("Sign in required")
    text = validate_comment(content)

    def _create(db: Session) -> RankingListComment:
        ranking_list = _visible_list(db, ranking_list_id, actor_id)
        comment = RankingListComment(ranking_list_id=ranking_list.id, user_id=actor_id, content=text)
        db.add(comment)
        db.flush()
        return comment

    comment = run_in_transaction(db, _create)
    db.refresh(comment)
    logger.info("User %s commented %s on ranking list %s", actor_id, comment.id, ranking_list_id)
    return comment


def delete_comment(db: Session, ranking_list_id: int, comment_id: int, actor_id: Optional[int]) -> None:
    if actor_id is None:
        raise Unauthenticated("Sign in required")

    def _delete(db: Session) -> None:
        comment = db.query(RankingListComment).filter(
            RankingListComment.id == comment_id,
            RankingListComment.ranking_list_id == ranking_list_id
        ).first()
        if not comment:
            raise NotFound("Comment not found")
        if comment.user_id != actor_id:
            raise PermissionDenied("Only the author can delete this comment")
        db.delete(comment)

    run_in_transaction(db, _delete)
    logger.info("User %s deleted comment %s", actor_id, comment_id)
