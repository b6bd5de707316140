"""
Pytest configuration and fixtures for forum API tests
"""
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app import create_app
from cache import MemoryCache
from comments import CommentManager
from database import DatabaseManager
from forums import ForumManager
from posts import PostManager
from security import SecurityManager
from users import UserManager

TEST_PASSWORD = "Passw0rd"


class FakeClock:
    """Manually advanced clock for cache expiry tests"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest_asyncio.fixture
async def db(tmp_path):
    """Create a temporary, seeded database"""
    manager = DatabaseManager(str(tmp_path / "test.db"))
    await manager.initialize()
    return manager


@pytest.fixture
def security_manager():
    return SecurityManager(secret_key="test-secret-key")


@pytest.fixture
def forum_manager(db):
    return ForumManager(db)


@pytest.fixture
def post_manager(db, cache):
    return PostManager(db, cache)


@pytest.fixture
def comment_manager(db):
    return CommentManager(db)


@pytest.fixture
def user_manager(db, security_manager):
    return UserManager(db, security_manager)


@pytest.fixture
def app(tmp_path, cache):
    return create_app(db_path=str(tmp_path / "api.db"), secret_key="test-secret-key", cache=cache)


@pytest.fixture
def client(app):
    """Test client with the app lifespan (schema + seed) running"""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register an account and return (user_id, auth headers)"""
    def _register(email: str):
        response = client.post("/api/account/register", json={
            "email": email,
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
        })
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user_id"], {"Authorization": f"Bearer {data['access_token']}"}
    return _register
