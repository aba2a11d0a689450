"""
Comment Likes Router

Binary like toggle on comments: POST likes, POST again unlikes. One like
per identity per comment; anonymous visitors are keyed by the address hash
for that comment.
"""

from fastapi import APIRouter, Request

from booknest.config import get_settings
from booknest.dependencies import DbSession, OptionalUser
from booknest.schemas import LikeResponse
from booknest.services.identity import resolve_identity
from booknest.services.rate_limiter import limiter
from booknest.services.votes import get_like_state, toggle_comment_like

settings = get_settings()

router = APIRouter(
    prefix="/comments",
    tags=["Comment Likes"],
    responses={
        404: {"description": "Comment not found"},
    },
)


@router.get(
    "/{comment_id}/likes",
    response_model=LikeResponse,
    summary="Get like state",
)
@limiter.limit(settings.rate_limit_default)
def get_likes(
    request: Request,
    comment_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> LikeResponse:
    identity = resolve_identity(request, comment_id, current_user)
    return LikeResponse.model_validate(get_like_state(db, comment_id, identity))


@router.post(
    "/{comment_id}/likes",
    response_model=LikeResponse,
    summary="Like or unlike a comment",
)
@limiter.limit(settings.rate_limit_write)
def toggle_like(
    request: Request,
    comment_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> LikeResponse:
    """
    Raises:
        UnknownTargetError: 404 if the comment does not exist
        ConflictError: 409 if a concurrent like from the same identity won
    """
    identity = resolve_identity(request, comment_id, current_user)
    return LikeResponse.model_validate(toggle_comment_like(db, comment_id, identity))
