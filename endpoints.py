# Forum API Endpoints
# Route handlers and request dependencies for the forum system

from typing import Annotated, List, Optional

import jwt
from fastapi import APIRouter, Depends, Path, Query, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from comments import Comment, CommentManager
from config import DEFAULT_SKIP, DEFAULT_TAKE, MAX_TAKE, MAX_ID, DEFAULT_FIRST_POSTS_COUNT
from exceptions import Exceptions
from forums import ForumManager
from models import (CommentCreate, CommentResponse, ForumResponse, LoginRequest, PostCreate,
                    PostResponse, PostUpdate, RegisterRequest, TokenResponse)
from posts import Post, PostManager
from security import SecurityManager
from users import User, UserManager

# =============================================================================
# DEPENDENCY INJECTION
# =============================================================================

security = HTTPBearer(auto_error=False)

EntityId = Annotated[int, Path(ge=1, le=MAX_ID)]


def get_forum_manager(request: Request) -> ForumManager:
    return request.app.state.forum_manager


def get_post_manager(request: Request) -> PostManager:
    return request.app.state.post_manager


def get_comment_manager(request: Request) -> CommentManager:
    return request.app.state.comment_manager


def get_user_manager(request: Request) -> UserManager:
    return request.app.state.user_manager


def get_security_manager(request: Request) -> SecurityManager:
    return request.app.state.security_manager


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    security_manager: SecurityManager = Depends(get_security_manager),
    user_manager: UserManager = Depends(get_user_manager),
) -> str:
    """Validate the bearer token and return the caller's identity"""
    if credentials is None:
        raise Exceptions.UNAUTHORIZED

    try:
        payload = security_manager.verify_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise Exceptions.UNAUTHORIZED

    user_id = payload.get("sub")
    if not user_id or not await user_manager.get_user(user_id):
        raise Exceptions.UNAUTHORIZED
    return user_id


def _token_response(user: User, security_manager: SecurityManager) -> TokenResponse:
    return TokenResponse(
        access_token=security_manager.create_access_token({"sub": user.id}),
        expires_in=security_manager.access_token_expire_minutes * 60,
        user_id=user.id,
        email=user.email,
    )

# =============================================================================
# AUTHENTICATION ENDPOINTS
# =============================================================================

def create_auth_router() -> APIRouter:
    router = APIRouter(prefix="/api/account", tags=["authentication"])

    @router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
    async def register(data: RegisterRequest,
                       user_manager: UserManager = Depends(get_user_manager),
                       security_manager: SecurityManager = Depends(get_security_manager)):
        user = await user_manager.register(data.email, data.password)
        if user is None:
            raise Exceptions.EMAIL_TAKEN
        return _token_response(user, security_manager)

    @router.post("/login", response_model=TokenResponse)
    async def login(data: LoginRequest,
                    user_manager: UserManager = Depends(get_user_manager),
                    security_manager: SecurityManager = Depends(get_security_manager)):
        user = await user_manager.authenticate(data.email, data.password)
        if user is None:
            raise Exceptions.INVALID_LOGIN
        return _token_response(user, security_manager)

    return router

# =============================================================================
# FORUM ENDPOINTS
# =============================================================================

def create_forum_router() -> APIRouter:
    router = APIRouter(prefix="/api/forums", tags=["forums"])

    @router.get("", response_model=List[ForumResponse])
    async def get_forums(forum_manager: ForumManager = Depends(get_forum_manager)):
        forums = await forum_manager.get_all_forums()
        return [ForumResponse.model_validate(forum) for forum in forums]

    @router.get("/{forum_id}", response_model=ForumResponse)
    async def get_forum(forum_id: EntityId, forum_manager: ForumManager = Depends(get_forum_manager)):
        forum = await forum_manager.get_forum_by_id(forum_id)
        if forum is None:
            raise Exceptions.not_found("forum", forum_id)
        return ForumResponse.model_validate(forum)

    return router

# =============================================================================
# POST ENDPOINTS
# =============================================================================

def create_post_router() -> APIRouter:
    router = APIRouter(prefix="/api/posts", tags=["posts"])

    @router.get("/first", response_model=List[PostResponse])
    async def get_first_posts(count: int = Query(DEFAULT_FIRST_POSTS_COUNT, ge=1, le=MAX_TAKE),
                              post_manager: PostManager = Depends(get_post_manager)):
        posts = await post_manager.get_first_posts(count)
        return [PostResponse.model_validate(post) for post in posts]

    @router.get("/forum/{forum_id}", response_model=List[PostResponse])
    async def get_posts_by_forum(forum_id: EntityId,
                                 skip: int = Query(DEFAULT_SKIP, ge=0, le=MAX_ID),
                                 take: int = Query(DEFAULT_TAKE, ge=1, le=MAX_TAKE),
                                 forum_manager: ForumManager = Depends(get_forum_manager),
                                 post_manager: PostManager = Depends(get_post_manager)):
        if await forum_manager.get_forum_by_id(forum_id) is None:
            raise Exceptions.not_found("forum", forum_id)

        posts = await post_manager.get_posts_by_forum_id(forum_id, skip, take)
        return [PostResponse.model_validate(post) for post in posts]

    @router.get("/{post_id}", response_model=PostResponse)
    async def get_post(post_id: EntityId, post_manager: PostManager = Depends(get_post_manager)):
        post = await post_manager.get_post_by_id(post_id)
        if post is None:
            raise Exceptions.not_found("post", post_id)
        return PostResponse.model_validate(post)

    @router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
    async def create_post(data: PostCreate, response: Response,
                          user_id: str = Depends(get_current_user_id),
                          forum_manager: ForumManager = Depends(get_forum_manager),
                          post_manager: PostManager = Depends(get_post_manager)):
        if await forum_manager.get_forum_by_id(data.forum_id) is None:
            raise Exceptions.not_found("forum", data.forum_id, status.HTTP_400_BAD_REQUEST)

        post = await post_manager.create_post(Post(
            title=data.title,
            content=data.content,
            forum_id=data.forum_id,
            created_by_user_id=user_id,
        ))
        response.headers["Location"] = f"/api/posts/{post.id}"
        return PostResponse.model_validate(post)

    @router.put("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def update_post(post_id: EntityId, data: PostUpdate,
                          user_id: str = Depends(get_current_user_id),
                          post_manager: PostManager = Depends(get_post_manager)):
        post = await post_manager.get_post_by_id(post_id)
        if post is None:
            raise Exceptions.not_found("post", post_id)

        if not await post_manager.is_owner(post_id, user_id):
            raise Exceptions.FORBIDDEN

        post.title = data.title
        post.content = data.content
        if await post_manager.update_post(post) is None:
            raise Exceptions.not_found("post", post_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router

# =============================================================================
# COMMENT ENDPOINTS
# =============================================================================

def create_comment_router() -> APIRouter:
    router = APIRouter(prefix="/api/comments", tags=["comments"])

    @router.get("/post/{post_id}", response_model=List[CommentResponse])
    async def get_comments_by_post(post_id: EntityId,
                                   post_manager: PostManager = Depends(get_post_manager),
                                   comment_manager: CommentManager = Depends(get_comment_manager)):
        if await post_manager.get_post_by_id(post_id) is None:
            raise Exceptions.not_found("post", post_id)

        comments = await comment_manager.get_comments_by_post_id(post_id)
        return [CommentResponse.model_validate(comment) for comment in comments]

    @router.get("/{comment_id}", response_model=CommentResponse)
    async def get_comment(comment_id: EntityId, comment_manager: CommentManager = Depends(get_comment_manager)):
        comment = await comment_manager.get_comment_by_id(comment_id)
        if comment is None:
            raise Exceptions.not_found("comment", comment_id)
        return CommentResponse.model_validate(comment)

    @router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
    async def create_comment(data: CommentCreate, response: Response,
                             user_id: str = Depends(get_current_user_id),
                             post_manager: PostManager = Depends(get_post_manager),
                             comment_manager: CommentManager = Depends(get_comment_manager)):
        if await post_manager.get_post_by_id(data.post_id) is None:
            raise Exceptions.not_found("post", data.post_id, status.HTTP_400_BAD_REQUEST)

        comment = await comment_manager.create_comment(Comment(
            content=data.content,
            post_id=data.post_id,
            created_by_user_id=user_id,
        ))
        response.headers["Location"] = f"/api/comments/{comment.id}"
        return CommentResponse.model_validate(comment)

    @router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_comment(comment_id: EntityId,
                             user_id: str = Depends(get_current_user_id),
                             post_manager: PostManager = Depends(get_post_manager),
                             comment_manager: CommentManager = Depends(get_comment_manager)):
        comment = await comment_manager.get_comment_by_id(comment_id)
        if comment is None:
            raise Exceptions.not_found("comment", comment_id)

        if await post_manager.get_post_by_id(comment.post_id) is None:
            raise Exceptions.not_found("post", comment.post_id)

        if not await comment_manager.can_delete(comment_id, user_id):
            raise Exceptions.COMMENT_DELETE_FORBIDDEN

        if not await comment_manager.delete_comment(comment_id, user_id):
            raise Exceptions.not_found("comment", comment_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
