# schemas.py (Pydantic)
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from models.FeedItem import FeedType
from models.FollowRequest import FollowRequestStatus
from models.RankingList import ListStatus
from services.social_graph import FollowStatus


# ---------- Results ----------
class ActionResult(BaseModel):
    """Envelope returned by every mutating endpoint"""
    success: bool
    error: Optional[str] = None


# ---------- Users ----------
class UserSnippet(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    image: Optional[str] = None

    class Config:
        from_attributes = True

class UserSync(BaseModel):
    """Sign-in event from the identity provider"""
    username: str
    name: Optional[str] = None
    image: Optional[str] = None

class UserUpdate(BaseModel):
    """Partial update for the signed-in user"""
    name: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    cover_image: Optional[str] = None
    is_private: Optional[bool] = None

class UserRead(UserSnippet):
    bio: Optional[str] = None
    cover_image: Optional[str] = None
    is_private: bool
    created_at: datetime

class UserProfileRead(UserRead):
    """Profile with live follow counts and the viewer's relation to it"""
    follower_count: int
    following_count: int
    follow_status: FollowStatus

class FCMTokenUpdate(BaseModel):
    fcm_token: str


# ---------- Follows ----------
class FollowStatusInfo(BaseModel):
    status: FollowStatus
    target_user_id: int
    target_username: str
    target_is_private: bool

class FollowActionResult(ActionResult):
    status: Optional[FollowStatus] = None

class FollowListItem(BaseModel):
    id: int  # follow edge id, used as cursor
    user: UserSnippet

class FollowListPage(BaseModel):
    items: List[FollowListItem]
    next_cursor: Optional[int] = None

class FollowRequestRead(BaseModel):
    id: int
    requester_id: int
    requested_id: int
    status: FollowRequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None
    requester: Optional[UserSnippet] = None

    class Config:
        from_attributes = True

class FollowRequestPage(BaseModel):
    items: List[FollowRequestRead]
    next_cursor: Optional[int] = None

class FollowRequestActionResult(ActionResult):
    request: Optional[FollowRequestRead] = None


# ---------- Posts ----------
class PostCreate(BaseModel):
    content: str = ""
    image_url: Optional[str] = None  # already-uploaded storage key

class PostRead(BaseModel):
    id: int
    content: str
    image_url: Optional[str] = None
    created_at: datetime
    author: UserSnippet
    like_count: int
    liked_by_viewer: bool = False

class PostActionResult(ActionResult):
    post_id: Optional[int] = None
    feed_item_id: Optional[int] = None


# ---------- Ranking Lists ----------
class RankedItemCreate(BaseModel):
    item_name: str
    item_description: Optional[str] = None
    image_url: Optional[str] = None

class RankingListCreate(BaseModel):
    subject: str
    description: Optional[str] = None
    list_image_url: Optional[str] = None
    items: List[RankedItemCreate] = []

class RankingStatusUpdate(BaseModel):
    status: ListStatus

class RankedItemSnippet(BaseModel):
    id: int
    rank: int
    item_name: str
    image_url: Optional[str] = None

class RankingListSnippet(BaseModel):
    id: int
    subject: str
    description: Optional[str] = None
    list_image_url: Optional[str] = None
    status: ListStatus
    created_at: datetime
    updated_at: datetime
    items: List[RankedItemSnippet] = []  # top entries only
    item_count: int
    like_count: int
    liked_by_viewer: bool = False

class RankingActionResult(ActionResult):
    ranking_list_id: Optional[int] = None
    status: Optional[ListStatus] = None

class RankingCommentCreate(BaseModel):
    content: str = ""

class RankingCommentRead(BaseModel):
    id: int
    ranking_list_id: int
    user_id: int
    content: str
    created_at: datetime
    user: UserSnippet

    class Config:
        from_attributes = True

class RankingCommentPage(BaseModel):
    items: List[RankingCommentRead]
    next_cursor: Optional[int] = None

class RankingCommentActionResult(ActionResult):
    comment: Optional[RankingCommentRead] = None


# ---------- Feed ----------
class NestedFeedItemRead(BaseModel):
    id: int
    type: FeedType
    created_at: datetime
    updated_at: datetime
    user_id: int
    post_id: Optional[int] = None
    ranking_list_id: Optional[int] = None
    retweet_of_feed_item_id: Optional[int] = None
    quoted_feed_item_id: Optional[int] = None
    quote_retweet_count: int
    retweet_count: int
    retweeted_by_viewer: bool = False
    user: UserSnippet
    post: Optional[PostRead] = None
    ranking_list: Optional[RankingListSnippet] = None

class FeedItemRead(NestedFeedItemRead):
    # one level only; null when the original is gone or not visible
    retweet_of_feed_item: Optional[NestedFeedItemRead] = None
    quoted_feed_item: Optional[NestedFeedItemRead] = None

class FeedPage(BaseModel):
    items: List[FeedItemRead]
    next_cursor: Optional[int] = None

class QuoteRetweetCreate(BaseModel):
    comment: str = ""
    image_url: Optional[str] = None

class FeedActionResult(ActionResult):
    feed_item_id: Optional[int] = None
    post_id: Optional[int] = None


# ---------- Likes ----------
class LikeStatus(BaseModel):
    liked: bool
    like_count: int = Field(ge=0)

class LikeActionResult(ActionResult):
    liked: Optional[bool] = None
    like_count: Optional[int] = None
