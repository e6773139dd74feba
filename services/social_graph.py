"""
Follow edges, follow requests and the visibility rule built on them.

Accepted edges live in ``follows``; requests to private accounts live in
``follow_requests`` and are never deleted once answered (ACCEPTED/REJECTED
rows stay as an audit trail). The pairwise ``FollowStatus`` seen by a viewer
is derived from both tables.
"""
import enum
import logging
from typing import List, Optional, Set, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, joinedload

from database import run_in_transaction
from models.FeedItem import utcnow
from models.Follow import Follow
from models.FollowRequest import FollowRequest, FollowRequestStatus
from models.User import User
from services import notifications
from utils.errors import NotFound, PermissionDenied, Unauthenticated, ValidationFailed
from utils.pagination import fetch_page

logger = logging.getLogger(__name__)


class FollowStatus(str, enum.Enum):
    SELF = "SELF"
    CANNOT_FOLLOW = "CANNOT_FOLLOW"
    FOLLOWING = "FOLLOWING"
    REQUEST_SENT = "REQUEST_SENT"
    REQUEST_RECEIVED = "REQUEST_RECEIVED"
    NOT_FOLLOWING = "NOT_FOLLOWING"


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def get_user_by_username(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise NotFound("User not found")
    return user


def _require_actor(actor_id: Optional[int]) -> int:
    if actor_id is None:
        raise Unauthenticated("Sign in required")
    return actor_id


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return db.query(Follow.id).filter(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id
    ).first() is not None


def _pending_request(db: Session, requester_id: int, requested_id: int) -> Optional[FollowRequest]:
    return db.query(FollowRequest).filter(
        FollowRequest.requester_id == requester_id,
        FollowRequest.requested_id == requested_id,
        FollowRequest.status == FollowRequestStatus.PENDING
    ).first()


def get_follow_status(db: Session, viewer_id: Optional[int], target_id: int) -> FollowStatus:
    if viewer_id is None:
        return FollowStatus.CANNOT_FOLLOW
    if viewer_id == target_id:
        return FollowStatus.SELF
    if is_following(db, viewer_id, target_id):
        return FollowStatus.FOLLOWING
    if _pending_request(db, viewer_id, target_id):
        return FollowStatus.REQUEST_SENT
    if _pending_request(db, target_id, viewer_id):
        return FollowStatus.REQUEST_RECEIVED
    return FollowStatus.NOT_FOLLOWING


def get_follow_status_info(db: Session, viewer_id: Optional[int], target_id: int) -> dict:
    target = get_user(db, target_id)
    return {
        "status": get_follow_status(db, viewer_id, target.id),
        "target_user_id": target.id,
        "target_username": target.username,
        "target_is_private": target.is_private,
    }


def follow_user(db: Session, viewer_id: Optional[int], target_id: int) -> FollowStatus:
    """
    Follow ``target_id``: a direct edge for public accounts, a PENDING request
    for private ones. Already following / already requested are no-ops. An
    inbound request from the target does not affect the outbound attempt.
    """
    viewer_id = _require_actor(viewer_id)
    if viewer_id == target_id:
        raise ValidationFailed("Cannot follow yourself")

    def _follow(db: Session) -> Tuple[FollowStatus, Optional[int]]:
        target = get_user(db, target_id)
        if is_following(db, viewer_id, target.id):
            return FollowStatus.FOLLOWING, None

        request = db.query(FollowRequest).filter(
            FollowRequest.requester_id == viewer_id,
            FollowRequest.requested_id == target.id
        ).first()
        if request and request.status == FollowRequestStatus.PENDING:
            return FollowStatus.REQUEST_SENT, None

        if not target.is_private:
            db.add(Follow(follower_id=viewer_id, following_id=target.id))
            return FollowStatus.FOLLOWING, None

        # one row per ordered pair: an answered request is reopened
        if request is None:
            request = FollowRequest(requester_id=viewer_id, requested_id=target.id)
            db.add(request)
        else:
            request.status = FollowRequestStatus.PENDING
            request.created_at = utcnow()
            request.responded_at = None
        db.flush()
        return FollowStatus.REQUEST_SENT, request.id

    status, new_request_id = run_in_transaction(db, _follow)
    logger.info("User %s follow attempt on %s -> %s", viewer_id, target_id, status.value)

    if new_request_id is not None:
        notifications.notify_follow_request(get_user(db, viewer_id), get_user(db, target_id), new_request_id)
    return status


def unfollow_user(db: Session, viewer_id: Optional[int], target_id: int) -> FollowStatus:
    viewer_id = _require_actor(viewer_id)
    if viewer_id == target_id:
        raise ValidationFailed("Cannot unfollow yourself")

    def _unfollow(db: Session) -> int:
        return db.query(Follow).filter(
            Follow.follower_id == viewer_id,
            Follow.following_id == target_id
        ).delete(synchronize_session=False)

    if run_in_transaction(db, _unfollow):
        logger.info("User %s unfollowed %s", viewer_id, target_id)
    return FollowStatus.NOT_FOLLOWING


def cancel_follow_request(db: Session, viewer_id: Optional[int], target_id: int) -> FollowStatus:
    viewer_id = _require_actor(viewer_id)

    def _cancel(db: Session) -> int:
        return db.query(FollowRequest).filter(
            FollowRequest.requester_id == viewer_id,
            FollowRequest.requested_id == target_id,
            FollowRequest.status == FollowRequestStatus.PENDING
        ).delete(synchronize_session=False)

    if run_in_transaction(db, _cancel):
        logger.info("User %s cancelled follow request to %s", viewer_id, target_id)
    return FollowStatus.NOT_FOLLOWING


def _load_request_for(db: Session, request_id: int, actor_id: int, lock: bool = False) -> FollowRequest:
    query = db.query(FollowRequest).filter(FollowRequest.id == request_id)
    if lock:
        query = query.with_for_update()
    request = query.first()
    if not request:
        raise NotFound("Follow request not found")
    if request.requested_id != actor_id:
        raise PermissionDenied("Only the requested user can answer this follow request")
    return request


def accept_follow_request(db: Session, request_id: int, actor_id: Optional[int]) -> FollowRequest:
    """
    Accept a PENDING request addressed to ``actor_id`` and create the edge.
    Not idempotent: a request that is no longer pending reports NotFound.
    """
    actor_id = _require_actor(actor_id)

    def _accept(db: Session) -> FollowRequest:
        # re-read under lock so a concurrent accept/reject cannot race this one
        request = _load_request_for(db, request_id, actor_id, lock=True)
        updated = db.query(FollowRequest).filter(
            FollowRequest.id == request.id,
            FollowRequest.status == FollowRequestStatus.PENDING
        ).update(
            {FollowRequest.status: FollowRequestStatus.ACCEPTED, FollowRequest.responded_at: utcnow()},
            synchronize_session=False
        )
        if not updated:
            raise NotFound("No pending follow request to accept")

        if not is_following(db, request.requester_id, request.requested_id):
            db.add(Follow(follower_id=request.requester_id, following_id=request.requested_id))
        return request

    request = run_in_transaction(db, _accept)
    db.refresh(request)
    logger.info("User %s accepted follow request %s from %s", actor_id, request.id, request.requester_id)

    notifications.notify_follow_accepted(get_user(db, request.requester_id), get_user(db, request.requested_id))
    return request


def reject_follow_request(db: Session, request_id: int, actor_id: Optional[int]) -> FollowRequest:
    """Mark a request REJECTED. Rejecting an already answered request changes nothing."""
    actor_id = _require_actor(actor_id)

    def _reject(db: Session) -> FollowRequest:
        request = _load_request_for(db, request_id, actor_id)
        db.query(FollowRequest).filter(
            FollowRequest.id == request.id,
            FollowRequest.status == FollowRequestStatus.PENDING
        ).update(
            {FollowRequest.status: FollowRequestStatus.REJECTED, FollowRequest.responded_at: utcnow()},
            synchronize_session=False
        )
        return request

    request = run_in_transaction(db, _reject)
    db.refresh(request)
    logger.info("User %s rejected follow request %s", actor_id, request.id)
    return request


# ---------- Visibility ----------

def followed_user_ids(db: Session, viewer_id: int) -> Set[int]:
    rows = db.query(Follow.following_id).filter(Follow.follower_id == viewer_id).all()
    return {row[0] for row in rows}


def visible_owner_clause(viewer_id: Optional[int]):
    """
    SQL condition on ``User`` rows whose content ``viewer_id`` may see:
    public accounts, the viewer themself, and accounts the viewer follows.
    """
    public = User.is_private.is_(False)
    if viewer_id is None:
        return public
    followed = select(Follow.following_id).where(Follow.follower_id == viewer_id)
    return or_(public, User.id == viewer_id, User.id.in_(followed))


def can_view(db: Session, viewer_id: Optional[int], owner: User) -> bool:
    if not owner.is_private:
        return True
    if viewer_id is None:
        return False
    return owner.id == viewer_id or is_following(db, viewer_id, owner.id)


def ensure_can_view(db: Session, viewer_id: Optional[int], owner: User) -> None:
    if not can_view(db, viewer_id, owner):
        raise PermissionDenied("This account is private")


# ---------- Listings ----------

def follower_count(db: Session, user_id: int) -> int:
    return db.query(Follow).filter(Follow.following_id == user_id).count()


def following_count(db: Session, user_id: int) -> int:
    return db.query(Follow).filter(Follow.follower_id == user_id).count()


def list_followers(
    db: Session, user_id: int, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> Tuple[List[dict], Optional[int]]:
    ensure_can_view(db, viewer_id, get_user(db, user_id))
    query = db.query(Follow).options(joinedload(Follow.follower)).filter(Follow.following_id == user_id)
    rows, next_cursor = fetch_page(query, Follow.id, limit, cursor)
    return [{"id": row.id, "user": row.follower} for row in rows], next_cursor


def list_following(
    db: Session, user_id: int, viewer_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> Tuple[List[dict], Optional[int]]:
    ensure_can_view(db, viewer_id, get_user(db, user_id))
    query = db.query(Follow).options(joinedload(Follow.following_user)).filter(Follow.follower_id == user_id)
    rows, next_cursor = fetch_page(query, Follow.id, limit, cursor)
    return [{"id": row.id, "user": row.following_user} for row in rows], next_cursor


def list_incoming_requests(
    db: Session, actor_id: Optional[int], limit: int, cursor: Optional[int] = None
) -> Tuple[List[FollowRequest], Optional[int]]:
    actor_id = _require_actor(actor_id)
    query = db.query(FollowRequest).options(joinedload(FollowRequest.requester)).filter(
        FollowRequest.requested_id == actor_id,
        FollowRequest.status == FollowRequestStatus.PENDING
    )
    return fetch_page(query, FollowRequest.id, limit, cursor)
