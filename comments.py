import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from database import DatabaseManager
    from posts import Post

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Comment:
    content: str
    post_id: int
    created_by_user_id: str
    id: Optional[int] = None
    is_deleted: bool = False
    created_at: Optional[float] = None
    updated_at: Optional[float] = None
    post: Optional["Post"] = None

    def __str__(self) -> str:
        deleted_marker = " [DELETED]" if self.is_deleted else ""
        return f"Comment {self.id}: {self.content[:50]}{deleted_marker}"


class CommentManager:
    """Comment operations.

    A comment may be deleted only by the creator of the post it belongs to,
    whoever wrote the comment itself.
    """

    def __init__(self, db: "DatabaseManager") -> None:
        self.db = db

    async def get_comments_by_post_id(self, post_id: int) -> list[Comment]:
        return await self.db.get_comments_by_post_id(post_id)

    async def get_comment_by_id(self, comment_id: int) -> Optional[Comment]:
        return await self.db.get_comment_by_id(comment_id)

    async def create_comment(self, comment: Comment) -> Comment:
        result = await self.db.create_comment(comment)
        logger.info(f"Created comment {result.id} on post {result.post_id} by {result.created_by_user_id}")
        return result

    async def can_delete(self, comment_id: int, user_id: str) -> bool:
        comment = await self.db.get_comment_by_id(comment_id)
        return comment is not None and await self._owns_parent_post(comment, user_id)

    async def delete_comment(self, comment_id: int, user_id: str) -> bool:
        """Soft delete a comment if the user owns its parent post."""
        comment = await self.db.get_comment_by_id(comment_id)
        if comment is None:
            return False

        if not await self._owns_parent_post(comment, user_id):
            logger.warning(f"User {user_id} may not delete comment {comment_id}")
            return False

        deleted = await self.db.delete_comment(comment)
        if deleted:
            logger.info(f"Deleted comment {comment_id} by {user_id}")
        return deleted

    async def _owns_parent_post(self, comment: Comment, user_id: str) -> bool:
        post = await self.db.get_post_by_id(comment.post_id)
        return post is not None and post.created_by_user_id == user_id
