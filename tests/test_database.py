"""
Unit tests for database operations.

Covers seeding, soft-delete filtering on every read path, ordering and
pagination, updated_at touching and storage-level constraints.
"""
import aiosqlite
import pytest

from comments import Comment
from database import DatabaseManager, touch
from forums import Forum
from posts import Post


async def create_post(db, forum_id=1, user_id="user-a", title="Title", content="Content"):
    return await db.create_post(Post(title=title, content=content, forum_id=forum_id, created_by_user_id=user_id))


async def create_comment(db, post_id, user_id="user-b", content="Nice post"):
    return await db.create_comment(Comment(content=content, post_id=post_id, created_by_user_id=user_id))


async def soft_delete_post(db, post_id):
    await db.execute_update("UPDATE posts SET is_deleted = TRUE WHERE id = ?", (post_id,))


class TestSeeding:

    async def test_three_forums_seeded(self, db):
        forums = await db.get_all_forums()
        assert [forum.name for forum in forums] == ["General Discussion", "Tech Talk", "Off Topic"]
        assert [forum.id for forum in forums] == [1, 2, 3]

    async def test_initialize_twice_does_not_duplicate(self, db):
        await db.initialize()
        assert len(await db.get_all_forums()) == 3

    async def test_forum_name_is_unique(self, db):
        with pytest.raises(aiosqlite.IntegrityError):
            await db.create_forum(Forum(name="Tech Talk"))

    async def test_create_forum(self, db):
        forum = await db.create_forum(Forum(name="Announcements", description="News"))
        assert forum.id == 4
        assert forum.created_at is not None

        fetched = await db.get_forum_by_id(forum.id)
        assert fetched.name == "Announcements"
        assert fetched.posts == []


class TestForums:

    async def test_missing_forum_is_none(self, db):
        assert await db.get_forum_by_id(999) is None

    async def test_forum_includes_only_active_posts(self, db):
        kept = await create_post(db, title="Kept")
        hidden = await create_post(db, title="Hidden")
        await soft_delete_post(db, hidden.id)

        forum = await db.get_forum_by_id(1)
        assert [post.id for post in forum.posts] == [kept.id]

        forums = await db.get_all_forums()
        assert [post.id for post in forums[0].posts] == [kept.id]
        assert forums[1].posts == []

    async def test_get_forum_is_idempotent(self, db):
        await create_post(db)
        assert await db.get_forum_by_id(1) == await db.get_forum_by_id(1)


class TestPosts:

    async def test_create_and_get(self, db):
        post = await create_post(db, forum_id=2, title="Hello")
        assert post.id is not None
        assert post.updated_at is None

        fetched = await db.get_post_by_id(post.id)
        assert fetched.title == "Hello"
        assert fetched.forum.name == "Tech Talk"
        assert fetched.is_deleted is False

    async def test_get_missing_post_is_none(self, db):
        assert await db.get_post_by_id(12345) is None

    async def test_soft_deleted_post_is_hidden_everywhere(self, db):
        post = await create_post(db)
        await soft_delete_post(db, post.id)

        assert await db.get_post_by_id(post.id) is None
        assert await db.get_posts_by_forum_id(1) == []
        assert await db.get_first_posts() == []

    async def test_posts_by_forum_newest_first(self, db):
        created = [await create_post(db, title=f"Post {i}") for i in range(5)]
        await create_post(db, forum_id=2, title="Elsewhere")

        posts = await db.get_posts_by_forum_id(1)
        assert [post.id for post in posts] == [post.id for post in reversed(created)]

    async def test_pagination_is_a_slice_of_the_ordered_set(self, db):
        for i in range(7):
            await create_post(db, title=f"Post {i}")

        everything = await db.get_posts_by_forum_id(1, skip=0, take=100)
        for skip, take in [(0, 3), (3, 3), (6, 3), (2, 10), (10, 5)]:
            page = await db.get_posts_by_forum_id(1, skip=skip, take=take)
            assert [post.id for post in page] == [post.id for post in everything[skip:skip + take]]

    async def test_default_page_size_is_ten(self, db):
        for i in range(12):
            await create_post(db, title=f"Post {i}")
        assert len(await db.get_posts_by_forum_id(1)) == 10

    async def test_posts_by_forum_attach_active_comments(self, db):
        post = await create_post(db)
        first = await create_comment(db, post.id, content="first")
        second = await create_comment(db, post.id, content="second")
        await db.delete_comment(second)

        posts = await db.get_posts_by_forum_id(1)
        assert [comment.id for comment in posts[0].comments] == [first.id]

    async def test_first_posts_across_forums(self, db):
        a = await create_post(db, forum_id=1)
        b = await create_post(db, forum_id=2)
        c = await create_post(db, forum_id=3)

        posts = await db.get_first_posts(2)
        assert [post.id for post in posts] == [c.id, b.id]
        assert posts[0].forum.name == "Off Topic"
        assert a.id not in [post.id for post in posts]

    async def test_update_touches_updated_at(self, db):
        post = await create_post(db)
        post.title = "Edited"
        post.content = "Edited content"

        result = await db.update_post(post)
        assert result is post
        assert post.updated_at is not None

        fetched = await db.get_post_by_id(post.id)
        assert fetched.title == "Edited"
        assert fetched.content == "Edited content"
        assert fetched.updated_at == post.updated_at

    async def test_update_deleted_post_returns_none(self, db):
        post = await create_post(db)
        await soft_delete_post(db, post.id)
        post.title = "Edited"
        assert await db.update_post(post) is None

    async def test_unknown_forum_rejected_by_storage(self, db):
        with pytest.raises(aiosqlite.IntegrityError):
            await create_post(db, forum_id=999)

    async def test_title_length_enforced_by_storage(self, db):
        with pytest.raises(aiosqlite.IntegrityError):
            await create_post(db, title="x" * 501)

    async def test_forum_with_posts_cannot_be_deleted(self, db):
        await create_post(db)
        with pytest.raises(aiosqlite.IntegrityError):
            await db.execute_update("DELETE FROM forums WHERE id = ?", (1,))


class TestComments:

    async def test_comments_oldest_first(self, db):
        post = await create_post(db)
        created = [await create_comment(db, post.id, content=f"c{i}") for i in range(3)]

        comments = await db.get_comments_by_post_id(post.id)
        assert [comment.id for comment in comments] == [comment.id for comment in created]

    async def test_get_comment_includes_post(self, db):
        post = await create_post(db, title="Parent")
        comment = await create_comment(db, post.id)

        fetched = await db.get_comment_by_id(comment.id)
        assert fetched.post.title == "Parent"
        assert fetched.post_id == post.id

    async def test_delete_is_soft_and_filtered(self, db):
        post = await create_post(db)
        comment = await create_comment(db, post.id)

        assert await db.delete_comment(comment) is True
        assert comment.is_deleted is True
        assert comment.updated_at is not None
        assert await db.get_comment_by_id(comment.id) is None
        assert await db.get_comments_by_post_id(post.id) == []

        row = await db.execute_query("SELECT is_deleted FROM comments WHERE id = ?", (comment.id,), fetch_one=True)
        assert row["is_deleted"] == 1

    async def test_delete_twice_returns_false(self, db):
        post = await create_post(db)
        comment = await create_comment(db, post.id)
        assert await db.delete_comment(comment) is True
        assert await db.delete_comment(comment) is False

    async def test_post_removal_cascades_to_comments(self, db):
        post = await create_post(db)
        comment = await create_comment(db, post.id)

        await db.execute_update("DELETE FROM posts WHERE id = ?", (post.id,))
        row = await db.execute_query("SELECT id FROM comments WHERE id = ?", (comment.id,), fetch_one=True)
        assert row is None


def test_touch_sets_updated_at():
    forum = Forum(name="General")
    assert forum.updated_at is None
    stamp = touch(forum)
    assert forum.updated_at == stamp


async def test_fresh_database_file(tmp_path):
    db = DatabaseManager(str(tmp_path / "fresh.db"))
    await db.initialize()
    assert await db.get_first_posts() == []
