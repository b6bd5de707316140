from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from database import DatabaseManager
    from posts import Post


@dataclass(slots=True)
class Forum:
    name: str
    description: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[float] = None
    updated_at: Optional[float] = None
    posts: list["Post"] = field(default_factory=list)

    def __str__(self) -> str:
        return f"Forum {self.id}: {self.name}"


class ForumManager:
    """Read access to forums; creation is only used for initialization."""

    def __init__(self, db: "DatabaseManager") -> None:
        self.db = db

    async def get_all_forums(self) -> list[Forum]:
        return await self.db.get_all_forums()

    async def get_forum_by_id(self, forum_id: int) -> Optional[Forum]:
        return await self.db.get_forum_by_id(forum_id)

    async def create_forum(self, forum: Forum) -> Forum:
        return await self.db.create_forum(forum)
