import copy
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from cache import MemoryCache
from config import (DEFAULT_SKIP, DEFAULT_TAKE, DEFAULT_FIRST_POSTS_COUNT,
                    FIRST_POSTS_CACHE_TTL, FIRST_POSTS_CACHE_SLIDING_TTL)

if TYPE_CHECKING:
    from comments import Comment
    from database import DatabaseManager
    from forums import Forum

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Post:
    title: str
    content: str
    forum_id: int
    created_by_user_id: str
    id: Optional[int] = None
    is_deleted: bool = False
    created_at: Optional[float] = None
    updated_at: Optional[float] = None
    forum: Optional["Forum"] = None
    comments: list["Comment"] = field(default_factory=list)

    def __str__(self) -> str:
        deleted_marker = " [DELETED]" if self.is_deleted else ""
        return f"Post {self.id}: {self.title[:50]}{deleted_marker}"


class PostManager:
    """Post operations with a read-through cache for the most recent posts.

    Only the slot for the default count is invalidated on writes; slots for
    other counts expire on their own.
    """

    def __init__(self, db: "DatabaseManager", cache: MemoryCache) -> None:
        self.db = db
        self.cache = cache

    @staticmethod
    def cache_key(count: int) -> str:
        return f"first_posts_{count}"

    async def get_posts_by_forum_id(self, forum_id: int, skip: int = DEFAULT_SKIP,
                                    take: int = DEFAULT_TAKE) -> list[Post]:
        return await self.db.get_posts_by_forum_id(forum_id, skip, take)

    async def get_post_by_id(self, post_id: int) -> Optional[Post]:
        return await self.db.get_post_by_id(post_id)

    async def create_post(self, post: Post) -> Post:
        """Persist a new post and drop the default recent-posts slot."""
        result = await self.db.create_post(post)
        self.invalidate_cache()
        logger.info(f"Created post {result.id} in forum {result.forum_id} by {result.created_by_user_id}")
        return result

    async def update_post(self, post: Post) -> Optional[Post]:
        """Write title/content changes; returns None if the post is gone."""
        result = await self.db.update_post(post)
        if result is None:
            return None
        self.invalidate_cache()
        logger.info(f"Updated post {result.id}")
        return result

    async def get_first_posts(self, count: int = DEFAULT_FIRST_POSTS_COUNT) -> list[Post]:
        key = self.cache_key(count)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return copy.deepcopy(cached)

        logger.debug(f"Cache miss for {key}")
        posts = await self.db.get_first_posts(count)
        self.cache.set(key, copy.deepcopy(posts), FIRST_POSTS_CACHE_TTL, FIRST_POSTS_CACHE_SLIDING_TTL)
        return posts

    def invalidate_cache(self):
        self.cache.remove(self.cache_key(DEFAULT_FIRST_POSTS_COUNT))

    async def is_owner(self, post_id: int, user_id: str) -> bool:
        """Check if a user created a post; always answered from storage."""
        post = await self.db.get_post_by_id(post_id)
        return post is not None and post.created_by_user_id == user_id
