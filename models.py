from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
import re
from config import (POST_TITLE_MAX_LENGTH, POST_CONTENT_MAX_LENGTH, COMMENT_CONTENT_MIN_LENGTH,
                   COMMENT_CONTENT_MAX_LENGTH, PASSWORD_MIN_LENGTH, PASSWORD_MAX_LENGTH, MAX_ID)


def _check_text(v: str, label: str, max_length: int, min_length: int = 1) -> str:
    if not v.strip() or len(v) < min_length or len(v) > max_length:
        raise ValueError(f'{label} must be between {min_length} and {max_length} characters')
    return v.strip()


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    confirm_password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < PASSWORD_MIN_LENGTH or len(v) > PASSWORD_MAX_LENGTH:
            raise ValueError(f'Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters')
        if not re.search(r'[A-Z]', v):
            raise ValueError('Password must contain at least one uppercase letter')
        if not re.search(r'[a-z]', v):
            raise ValueError('Password must contain at least one lowercase letter')
        if not re.search(r'\d', v):
            raise ValueError('Password must contain at least one number')
        return v

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError('The password and confirmation password do not match')
        return self

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: str
    email: str

class ForumResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    created_at: float
    updated_at: Optional[float]

class PostCreate(BaseModel):
    title: str
    content: str
    forum_id: int = Field(ge=1, le=MAX_ID)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _check_text(v, 'Title', POST_TITLE_MAX_LENGTH)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return _check_text(v, 'Content', POST_CONTENT_MAX_LENGTH)

class PostUpdate(BaseModel):
    title: str
    content: str

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        return _check_text(v, 'Title', POST_TITLE_MAX_LENGTH)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return _check_text(v, 'Content', POST_CONTENT_MAX_LENGTH)

class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    forum_id: int
    created_by_user_id: str
    created_at: float
    updated_at: Optional[float]

class CommentCreate(BaseModel):
    content: str
    post_id: int = Field(ge=1, le=MAX_ID)

    @field_validator('content')
    @classmethod
    def validate_content(cls, v):
        return _check_text(v, 'Content', COMMENT_CONTENT_MAX_LENGTH, COMMENT_CONTENT_MIN_LENGTH)

class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    post_id: int
    created_by_user_id: str
    is_deleted: bool
    created_at: float
    updated_at: Optional[float]

class ErrorResponse(BaseModel):
    code: int
    error: str
    details: List[str] = []
