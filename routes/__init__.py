from . import users
from . import follows
from . import feed
from . import likes
from . import posts
from . import rankings

__all__ = [
    "users",
    "follows",
    "feed",
    "likes",
    "posts",
    "rankings",
]
