import os

SECRET_KEY = os.environ.get("FORUM_SECRET_KEY", "your-secret-key-change-this")
DB_PATH = os.environ.get("FORUM_DB_PATH", "forum.db")
ALLOWED_ORIGINS = ["http://localhost:3000", "http://localhost:8080"]
ACCESS_TOKEN_EXPIRE_MINUTES = 30

# Server Configuration
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
LOG_LEVEL = os.environ.get("FORUM_LOG_LEVEL", "INFO")

# Validation Constants
FORUM_NAME_MAX_LENGTH = 200
FORUM_DESCRIPTION_MAX_LENGTH = 1000
POST_TITLE_MAX_LENGTH = 500
POST_CONTENT_MAX_LENGTH = 4000
COMMENT_CONTENT_MIN_LENGTH = 1
COMMENT_CONTENT_MAX_LENGTH = 1000
USER_ID_MAX_LENGTH = 450
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100

# Pagination Defaults
DEFAULT_SKIP = 0
DEFAULT_TAKE = 10
MAX_TAKE = 100
DEFAULT_FIRST_POSTS_COUNT = 10

# Largest value SQLite stores in an INTEGER column
MAX_ID = 2**63 - 1

# Cache TTL Settings (in seconds)
FIRST_POSTS_CACHE_TTL = 300          # 5 minutes absolute
FIRST_POSTS_CACHE_SLIDING_TTL = 120  # 2 minutes sliding
CACHE_CLEANUP_INTERVAL = 600         # 10 minutes

# Security Settings
MAX_REQUEST_SIZE_MB = 1
GZIP_MIN_SIZE = 1000

# Seed data, inserted once on first initialization
SEED_FORUMS = [
    (1, "General Discussion", "Talk about anything"),
    (2, "Tech Talk", "Discuss technology and programming"),
    (3, "Off Topic", "Casual conversations and fun"),
]
