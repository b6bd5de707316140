import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

import aiosqlite

from comments import Comment
from config import DEFAULT_SKIP, DEFAULT_TAKE, DEFAULT_FIRST_POSTS_COUNT, SEED_FORUMS
from forums import Forum
from posts import Post
from users import User

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS forums (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE CHECK (length(name) BETWEEN 1 AND 200),
    description TEXT CHECK (description IS NULL OR length(description) <= 1000),
    created_at REAL NOT NULL,
    updated_at REAL
);

CREATE TABLE IF NOT EXISTS posts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL CHECK (length(title) BETWEEN 1 AND 500),
    content TEXT NOT NULL CHECK (length(content) BETWEEN 1 AND 4000),
    forum_id INTEGER NOT NULL REFERENCES forums(id) ON DELETE RESTRICT,
    created_by_user_id TEXT NOT NULL CHECK (length(created_by_user_id) BETWEEN 1 AND 450),
    is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
    created_at REAL NOT NULL,
    updated_at REAL
);
CREATE INDEX IF NOT EXISTS idx_posts_forum_id ON posts(forum_id);
CREATE INDEX IF NOT EXISTS idx_posts_created_at ON posts(created_at);

CREATE TABLE IF NOT EXISTS comments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content TEXT NOT NULL CHECK (length(content) BETWEEN 1 AND 1000),
    post_id INTEGER NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
    created_by_user_id TEXT NOT NULL CHECK (length(created_by_user_id) BETWEEN 1 AND 450),
    is_deleted BOOLEAN NOT NULL DEFAULT FALSE,
    created_at REAL NOT NULL,
    updated_at REAL
);
CREATE INDEX IF NOT EXISTS idx_comments_post_id ON comments(post_id);
CREATE INDEX IF NOT EXISTS idx_comments_created_at ON comments(created_at);
"""


def timestamp() -> float:
    return datetime.now(timezone.utc).timestamp()


def touch(entity: Union[Forum, Post, Comment]) -> float:
    """Stamp the entity's updated_at with the current UTC time"""
    entity.updated_at = timestamp()
    return entity.updated_at


def _forum_from_row(row) -> Forum:
    return Forum(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _post_from_row(row) -> Post:
    return Post(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        forum_id=row["forum_id"],
        created_by_user_id=row["created_by_user_id"],
        is_deleted=bool(row["is_deleted"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _comment_from_row(row) -> Comment:
    return Comment(
        id=row["id"],
        content=row["content"],
        post_id=row["post_id"],
        created_by_user_id=row["created_by_user_id"],
        is_deleted=bool(row["is_deleted"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _placeholders(values: Iterable) -> str:
    return ", ".join("?" for _ in values)


class DatabaseManager:
    """All storage access for forums, posts, comments and users.

    Soft-deleted posts and comments are filtered out of every read. A missing
    row is reported as None (or False), never as an exception.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    @asynccontextmanager
    async def get_connection(self):
        async with aiosqlite.connect(self.db_path) as conn:
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA foreign_keys = ON")
            yield conn

    async def initialize(self):
        """Create the schema and seed the fixed forums"""
        current_time = timestamp()
        async with self.get_connection() as conn:
            await conn.executescript(SCHEMA)
            await conn.executemany(
                "INSERT OR IGNORE INTO forums (id, name, description, created_at) VALUES (?, ?, ?, ?)",
                [(forum_id, name, description, current_time) for forum_id, name, description in SEED_FORUMS]
            )
            await conn.commit()
        logger.info(f"Database initialized at {self.db_path}")

    async def execute_query(self, query: str, params: tuple = (), fetch_one: bool = False):
        async with self.get_connection() as conn:
            cursor = await conn.execute(query, params)
            if fetch_one:
                result = await cursor.fetchone()
            else:
                result = await cursor.fetchall()
            await cursor.close()
            return result

    async def execute_insert(self, query: str, params: tuple = ()) -> int:
        async with self.get_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            lastrowid = cursor.lastrowid
            await cursor.close()
            return lastrowid  # type: ignore

    async def execute_update(self, query: str, params: tuple = ()) -> int:
        """Run an UPDATE/DELETE and return the number of affected rows"""
        async with self.get_connection() as conn:
            cursor = await conn.execute(query, params)
            await conn.commit()
            rowcount = cursor.rowcount
            await cursor.close()
            return rowcount

    # ==================== Forums ====================

    async def get_all_forums(self) -> List[Forum]:
        """Get all forums with their non-deleted posts"""
        rows = await self.execute_query("SELECT * FROM forums ORDER BY id")
        forums = [_forum_from_row(row) for row in rows]

        post_rows = await self.execute_query(
            "SELECT * FROM posts WHERE is_deleted = FALSE ORDER BY id"
        )
        by_forum = {forum.id: forum for forum in forums}
        for row in post_rows:
            forum = by_forum.get(row["forum_id"])
            if forum is not None:
                forum.posts.append(_post_from_row(row))

        return forums

    async def get_forum_by_id(self, forum_id: int) -> Optional[Forum]:
        """Get forum by ID with its non-deleted posts"""
        row = await self.execute_query(
            "SELECT * FROM forums WHERE id = ?",
            (forum_id,),
            fetch_one=True
        )
        if not row:
            return None

        forum = _forum_from_row(row)
        post_rows = await self.execute_query(
            "SELECT * FROM posts WHERE forum_id = ? AND is_deleted = FALSE ORDER BY id",
            (forum_id,)
        )
        forum.posts = [_post_from_row(post_row) for post_row in post_rows]
        return forum

    async def create_forum(self, forum: Forum) -> Forum:
        forum.created_at = timestamp()
        forum.id = await self.execute_insert(
            "INSERT INTO forums (name, description, created_at) VALUES (?, ?, ?)",
            (forum.name, forum.description, forum.created_at)
        )
        return forum

    # ==================== Posts ====================

    async def _attach_comments(self, posts: List[Post]):
        if not posts:
            return
        post_ids = [post.id for post in posts]
        rows = await self.execute_query(f"""
            SELECT * FROM comments
            WHERE post_id IN ({_placeholders(post_ids)}) AND is_deleted = FALSE
            ORDER BY created_at ASC, id ASC
        """, tuple(post_ids))

        by_post = {post.id: post for post in posts}
        for row in rows:
            by_post[row["post_id"]].comments.append(_comment_from_row(row))

    async def _attach_forums(self, posts: List[Post]):
        if not posts:
            return
        forum_ids = sorted({post.forum_id for post in posts})
        rows = await self.execute_query(
            f"SELECT * FROM forums WHERE id IN ({_placeholders(forum_ids)})",
            tuple(forum_ids)
        )
        forums = {row["id"]: row for row in rows}
        for post in posts:
            # Each post gets its own Forum instance.
            row = forums.get(post.forum_id)
            post.forum = _forum_from_row(row) if row else None

    async def get_posts_by_forum_id(self, forum_id: int, skip: int = DEFAULT_SKIP,
                                    take: int = DEFAULT_TAKE) -> List[Post]:
        """Get a page of a forum's posts, newest first"""
        rows = await self.execute_query("""
            SELECT * FROM posts
            WHERE forum_id = ? AND is_deleted = FALSE
            ORDER BY created_at DESC, id DESC
            LIMIT ? OFFSET ?
        """, (forum_id, take, skip))

        posts = [_post_from_row(row) for row in rows]
        await self._attach_comments(posts)
        return posts

    async def get_first_posts(self, count: int = DEFAULT_FIRST_POSTS_COUNT) -> List[Post]:
        """Get the most recent posts across all forums"""
        rows = await self.execute_query("""
            SELECT * FROM posts
            WHERE is_deleted = FALSE
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """, (count,))

        posts = [_post_from_row(row) for row in rows]
        await self._attach_forums(posts)
        await self._attach_comments(posts)
        return posts

    async def _get_post_row(self, post_id: int):
        return await self.execute_query(
            "SELECT * FROM posts WHERE id = ? AND is_deleted = FALSE",
            (post_id,),
            fetch_one=True
        )

    async def get_post_by_id(self, post_id: int) -> Optional[Post]:
        """Get post by ID with its forum and non-deleted comments"""
        row = await self._get_post_row(post_id)
        if not row:
            return None

        post = _post_from_row(row)
        await self._attach_forums([post])
        await self._attach_comments([post])
        return post

    async def create_post(self, post: Post) -> Post:
        post.created_at = timestamp()
        post.updated_at = None
        post.is_deleted = False
        post.id = await self.execute_insert("""
            INSERT INTO posts (title, content, forum_id, created_by_user_id, is_deleted, created_at)
            VALUES (?, ?, ?, ?, FALSE, ?)
        """, (post.title, post.content, post.forum_id, post.created_by_user_id, post.created_at))
        return post

    async def update_post(self, post: Post) -> Optional[Post]:
        """Write title and content, touching updated_at in the same statement"""
        updated_at = touch(post)
        affected = await self.execute_update("""
            UPDATE posts
            SET title = ?, content = ?, updated_at = ?
            WHERE id = ? AND is_deleted = FALSE
        """, (post.title, post.content, updated_at, post.id))
        return post if affected else None

    # ==================== Comments ====================

    async def get_comments_by_post_id(self, post_id: int) -> List[Comment]:
        """Get a post's non-deleted comments, oldest first"""
        rows = await self.execute_query("""
            SELECT * FROM comments
            WHERE post_id = ? AND is_deleted = FALSE
            ORDER BY created_at ASC, id ASC
        """, (post_id,))
        return [_comment_from_row(row) for row in rows]

    async def get_comment_by_id(self, comment_id: int) -> Optional[Comment]:
        """Get comment by ID with its parent post"""
        row = await self.execute_query(
            "SELECT * FROM comments WHERE id = ? AND is_deleted = FALSE",
            (comment_id,),
            fetch_one=True
        )
        if not row:
            return None

        comment = _comment_from_row(row)
        post_row = await self._get_post_row(comment.post_id)
        comment.post = _post_from_row(post_row) if post_row else None
        return comment

    async def create_comment(self, comment: Comment) -> Comment:
        comment.created_at = timestamp()
        comment.updated_at = None
        comment.is_deleted = False
        comment.id = await self.execute_insert("""
            INSERT INTO comments (content, post_id, created_by_user_id, is_deleted, created_at)
            VALUES (?, ?, ?, FALSE, ?)
        """, (comment.content, comment.post_id, comment.created_by_user_id, comment.created_at))
        return comment

    async def delete_comment(self, comment: Comment) -> bool:
        """Mark comment as deleted, touching updated_at in the same statement"""
        updated_at = touch(comment)
        affected = await self.execute_update(
            "UPDATE comments SET is_deleted = TRUE, updated_at = ? WHERE id = ? AND is_deleted = FALSE",
            (updated_at, comment.id)
        )
        if affected:
            comment.is_deleted = True
        return affected > 0

    # ==================== Users ====================

    async def create_user(self, user: User) -> User:
        user.created_at = timestamp()
        await self.execute_insert(
            "INSERT INTO users (id, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
            (user.id, user.email, user.password_hash, user.created_at)
        )
        return user

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        row = await self.execute_query(
            "SELECT * FROM users WHERE id = ?",
            (user_id,),
            fetch_one=True
        )
        return User(**dict(row)) if row else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        row = await self.execute_query(
            "SELECT * FROM users WHERE email = ?",
            (email,),
            fetch_one=True
        )
        return User(**dict(row)) if row else None
