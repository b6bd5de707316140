import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import aiosqlite

from security import SecurityManager

if TYPE_CHECKING:
    from database import DatabaseManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class User:
    id: str
    email: str
    password_hash: str = ""
    created_at: Optional[float] = None

    def __str__(self) -> str:
        return f"User {self.id}: {self.email}"


class UserManager:
    """Account registration and credential checks.

    The user id is an opaque string; it is the identity stored as the
    creator of posts and comments.
    """

    def __init__(self, db: "DatabaseManager", security_manager: SecurityManager) -> None:
        self.db = db
        self.security = security_manager

    async def register(self, email: str, password: str) -> Optional[User]:
        """Create a new account, or return None if the email is taken."""
        email = email.strip().lower()
        if await self.db.get_user_by_email(email):
            return None

        user = User(uuid.uuid4().hex, email, self.security.hash_password(password))
        try:
            await self.db.create_user(user)
        except aiosqlite.IntegrityError:
            return None

        logger.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        user = await self.db.get_user_by_email(email.strip().lower())
        if not user or not self.security.verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            return None
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get_user_by_id(user_id)
