# Import every model so relationship() string targets resolve on first use.
from models.User import User
from models.Follow import Follow
from models.FollowRequest import FollowRequest, FollowRequestStatus
from models.Post import Post
from models.RankingList import RankingList, ListStatus
from models.RankedItem import RankedItem
from models.RankingListComment import RankingListComment
from models.FeedItem import FeedItem, FeedType
from models.Retweet import Retweet
from models.Like import Like, LikeTarget, LikeTargetType
from models.ImageDeletion import ImageDeletion

__all__ = [
    "User",
    "Follow",
    "FollowRequest",
    "FollowRequestStatus",
    "Post",
    "RankingList",
    "ListStatus",
    "RankedItem",
    "RankingListComment",
    "FeedItem",
    "FeedType",
    "Retweet",
    "Like",
    "LikeTarget",
    "LikeTargetType",
    "ImageDeletion",
]
