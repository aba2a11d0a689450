"""
Users Router

Member profiles.

Endpoints:
- GET /users/me - Current member's account (same as /auth/me)
- PUT /users/me - Update profile fields
- GET /users/{user_id} - Public profile with submitted books and their tallies

Business Rules:
- Members can only update their own profile
- Public profiles never expose email or account status
- Inactive members have no public profile
"""

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from booknest.config import get_settings
from booknest.dependencies import ActiveUser, DbSession
from booknest.models import Book, User
from booknest.routers.books import build_book_responses
from booknest.schemas import UserProfileResponse, UserResponse, UserUpdate
from booknest.services.rate_limiter import limiter
from booknest.services.store import atomic_write

settings = get_settings()

PROFILE_BOOK_LIMIT = 50

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "User not found"},
    },
)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
    description="The authenticated member's full account.",
)
@limiter.limit(settings.rate_limit_default)
def get_current_user_profile(
    request: Request,
    current_user: ActiveUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update current user profile",
    description="Update full_name, bio or avatar_url.",
)
@limiter.limit(settings.rate_limit_write)
def update_current_user_profile(
    request: Request,
    user_data: UserUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> UserResponse:
    """
    Email and username come from the OAuth provider and are not editable.
    """
    update_data = user_data.model_dump(exclude_unset=True)
    with atomic_write(db, f"profile update of user {current_user.id}"):
        for field, value in update_data.items():
            setattr(current_user, field, value)

    db.refresh(current_user)
    return UserResponse.model_validate(current_user)


@router.get(
    "/{user_id}",
    response_model=UserProfileResponse,
    summary="Get public user profile",
    description="Public profile with the member's most recent submitted books.",
)
@limiter.limit(settings.rate_limit_default)
def get_public_user_profile(
    request: Request,
    user_id: int,
    db: DbSession,
) -> UserProfileResponse:
    """
    Returns:
        id, username, full_name, avatar_url, bio, created_at, book_count and
        up to 50 books (newest first) with vote tallies and comment counts
    """
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found",
        )

    book_count = db.execute(
        select(func.count(Book.id)).where(Book.user_id == user.id)
    ).scalar() or 0
    books = db.execute(
        select(Book)
        .options(selectinload(Book.submitter))
        .where(Book.user_id == user.id)
        .order_by(Book.created_at.desc(), Book.id.desc())
        .limit(PROFILE_BOOK_LIMIT)
    ).scalars().all()

    return UserProfileResponse(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        avatar_url=user.avatar_url,
        bio=user.bio,
        created_at=user.created_at,
        book_count=book_count,
        books=build_book_responses(db, books),
    )
