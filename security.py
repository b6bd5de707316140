import bcrypt
from datetime import datetime, timedelta, timezone
import jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES


class SecurityManager:
    def __init__(self, secret_key: str, access_token_expire_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES):
        self.secret_key = secret_key
        self.algorithm = "HS256"
        self.access_token_expire_minutes = access_token_expire_minutes

    def hash_password(self, password: str) -> str:
        """Generate a salted password hash"""
        return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify password against hash"""
        return bcrypt.checkpw(password.encode('utf-8'), hashed.encode('utf-8'))

    def create_access_token(self, data: dict) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.access_token_expire_minutes)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict:
        """Decode a JWT token, raising jwt.InvalidTokenError if it is bad or expired"""
        return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
