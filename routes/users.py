from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db, run_in_transaction
from models.User import User
from schemas import UserSync, UserRead, UserUpdate, UserProfileRead, FCMTokenUpdate, ActionResult
from services import social_graph
from services.identity import get_current_principal, get_viewer_id, require_actor_id, sync_user
from services.storage import replace_image_key
from utils.errors import ValidationFailed

router = APIRouter(prefix="/users", tags=["Users"])

# profile fields backed by NOT NULL columns; an explicit null is a client error
NON_NULLABLE_PROFILE_FIELDS = ("is_private",)


@router.post("/sync", response_model=UserRead, status_code=status.HTTP_200_OK)
def sync_signed_in_user(
    payload: UserSync,
    principal: Optional[str] = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    """
    Create or refresh the internal user for the signed-in identity.
    """
    return sync_user(db, principal, payload.username, payload.name, payload.image)


@router.get("/me", response_model=UserRead)
def get_me(actor_id: int = Depends(require_actor_id), db: Session = Depends(get_db)):
    return social_graph.get_user(db, actor_id)


@router.patch("/me", response_model=UserRead)
def update_me(
    user_update: UserUpdate,
    actor_id: int = Depends(require_actor_id),
    db: Session = Depends(get_db)
):
    """
    Update the signed-in user's profile. Replaced images are queued for deletion.
    """
    update_data = user_update.model_dump(exclude_unset=True)
    for key in NON_NULLABLE_PROFILE_FIELDS:
        if key in update_data and update_data[key] is None:
            raise ValidationFailed(f"{key} cannot be null")

    def _update(db: Session) -> User:
        user = social_graph.get_user(db, actor_id)
        for key, value in update_data.items():
            if key in ("image", "cover_image"):
                value = replace_image_key(db, getattr(user, key), value)
            setattr(user, key, value)
        return user

    user = run_in_transaction(db, _update)
    db.refresh(user)
    return user


@router.put("/me/fcm-token", response_model=ActionResult)
def update_fcm_token(
    payload: FCMTokenUpdate,
    actor_id: int = Depends(require_actor_id),
    db: Session = Depends(get_db)
):
    def _update(db: Session) -> None:
        social_graph.get_user(db, actor_id).fcm_token = payload.fcm_token

    run_in_transaction(db, _update)
    return {"success": True}


@router.get("/{username}/profile", response_model=UserProfileRead)
def get_user_profile(
    username: str,
    viewer_id: Optional[int] = Depends(get_viewer_id),
    db: Session = Depends(get_db)
):
    """
    Get user profile with live follow counts and the viewer's follow status.
    """
    user = social_graph.get_user_by_username(db, username)
    return UserProfileRead(
        id=user.id,
        username=user.username,
        name=user.name,
        image=user.image,
        bio=user.bio,
        cover_image=user.cover_image,
        is_private=user.is_private,
        created_at=user.created_at,
        follower_count=social_graph.follower_count(db, user.id),
        following_count=social_graph.following_count(db, user.id),
        follow_status=social_graph.get_follow_status(db, viewer_id, user.id),
    )
