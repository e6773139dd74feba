"""
Maps the external identity provider's principal (a Firebase uid) to the
internal ``User`` row. Authentication itself is Firebase's job; this module
only verifies the presented ID token and looks the uid up.
"""
import logging
from typing import Optional

from fastapi import Depends, Header
from firebase_admin import auth as firebase_auth
from sqlalchemy.orm import Session

from database import get_db, run_in_transaction
from models.User import User
from services.firebase import initialize_firebase_admin
from services.storage import replace_image_key
from utils.errors import Conflict, Unauthenticated, ValidationFailed

logger = logging.getLogger(__name__)


def get_current_principal(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Return the Firebase uid of the caller, or None for anonymous requests."""
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    if not initialize_firebase_admin():
        return None

    token = authorization.split(" ", 1)[1].strip()
    try:
        decoded = firebase_auth.verify_id_token(token)
    except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, ValueError) as exc:
        logger.info("Rejected ID token: %s", exc)
        return None
    return decoded.get("uid")


def resolve_user_id(db: Session, external_id: Optional[str]) -> Optional[int]:
    if not external_id:
        return None
    row = db.query(User.id).filter(User.firebase_uid == external_id).first()
    return row[0] if row else None


def get_viewer_id(
    principal: Optional[str] = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> Optional[int]:
    return resolve_user_id(db, principal)


def require_actor_id(viewer_id: Optional[int] = Depends(get_viewer_id)) -> int:
    if viewer_id is None:
        raise Unauthenticated("Sign in required")
    return viewer_id


def sync_user(
    db: Session,
    external_id: Optional[str],
    username: str,
    name: Optional[str] = None,
    image: Optional[str] = None,
) -> User:
    """
    Create the internal user on the first sign-in of ``external_id``; later
    calls refresh username/name/image. Avatar replacement goes through
    ``services.storage`` so the old key is queued for deletion.
    """
    if not external_id:
        raise Unauthenticated("Sign in required")
    username = (username or "").strip()
    if not username:
        raise ValidationFailed("Username is required")

    def _sync(db: Session) -> User:
        taken = db.query(User).filter(User.username == username, User.firebase_uid != external_id).first()
        if taken:
            raise Conflict("Username already taken")

        user = db.query(User).filter(User.firebase_uid == external_id).first()
        if user is None:
            user = User(firebase_uid=external_id, username=username, name=name, image=image)
            db.add(user)
        else:
            user.username = username
            user.name = name
            if image is not None:
                user.image = replace_image_key(db, user.image, image)
        db.flush()
        return user

    user = run_in_transaction(db, _sync)
    db.refresh(user)
    logger.info("Synced user %s for principal %s", user.id, external_id)
    return user
