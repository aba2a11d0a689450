"""
Comments Router

Threaded discussion on books.

- Anyone may comment or reply; anonymous visitors may give a name,
  otherwise the configured anonymous display name is used
- Only the author (signed in) or a superuser may delete a comment; its
  replies stay and are listed as top-level comments from then on
- Reads return every comment in thread order (each followed by its
  replies, with its depth) plus the total count
"""

from collections.abc import Sequence

from fastapi import APIRouter, Request, status
from sqlalchemy.orm import Session

from booknest.config import get_settings
from booknest.dependencies import ActiveUser, BookOr404, DbSession, OptionalUser, display_name_for
from booknest.models import Comment, User
from booknest.schemas import (
    CommentCountResponse,
    CommentCreate,
    CommentResponse,
    CommentTreeResponse,
    CommentWriteResponse,
)
from booknest.services.comments import (
    CommentNode,
    build_comment_tree,
    count_comments,
    create_comment,
    delete_comment,
    flatten_tree,
    list_book_comments,
)
from booknest.services.identity import resolve_identity
from booknest.services.rate_limiter import limiter
from booknest.services.votes import get_comment_like_counts, get_liked_comment_ids

settings = get_settings()

router = APIRouter(
    tags=["Comments"],
    responses={
        404: {"description": "Book or comment not found"},
    },
)


def _comment_fields(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "book_id": comment.book_id,
        "parent_comment_id": comment.parent_comment_id,
        "user_id": comment.user_id,
        "author_name": comment.author_name,
        "content": comment.content,
        "created_at": comment.created_at,
    }


def serialize_thread(
    request: Request,
    db: Session,
    roots: Sequence[CommentNode],
    user: User | None,
) -> list[CommentResponse]:
    """
    Flatten a comment forest into response entries, parents before replies.

    Each entry carries its depth and the comment it is listed under, so the
    payload stays flat however deep a thread grows.
    """
    entries = list(flatten_tree(roots))
    ids = [node.comment.id for node, _parent, _depth in entries]
    like_counts = get_comment_like_counts(db, ids)
    liked = get_liked_comment_ids(
        db, {comment_id: resolve_identity(request, comment_id, user) for comment_id in ids}
    )

    return [
        CommentResponse(
            **_comment_fields(node.comment),
            thread_parent_id=parent.comment.id if parent is not None else None,
            depth=depth,
            like_count=like_counts[node.comment.id],
            is_liked=node.comment.id in liked,
            reply_count=len(node.children),
        )
        for node, parent, depth in entries
    ]


@router.get(
    "/books/{book_id}/comments",
    response_model=CommentTreeResponse,
    summary="List comments",
    description="All comments of a book in thread order (each followed by its replies), with the total count.",
)
@limiter.limit(settings.rate_limit_default)
def list_comments(
    request: Request,
    book: BookOr404,
    db: DbSession,
    current_user: OptionalUser,
) -> CommentTreeResponse:
    comments = list_book_comments(db, book.id)
    roots = build_comment_tree(comments)
    return CommentTreeResponse(
        book_id=book.id,
        total_count=count_comments(db, book.id),
        comments=serialize_thread(request, db, roots, current_user),
    )


@router.post(
    "/books/{book_id}/comments",
    response_model=CommentWriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a comment",
    description="Comment on a book, or reply to one of its comments with parent_comment_id.",
)
@limiter.limit(settings.rate_limit_write)
def post_comment(
    request: Request,
    book_id: int,
    body: CommentCreate,
    db: DbSession,
    current_user: OptionalUser,
) -> CommentWriteResponse:
    """
    Raises:
        UnknownTargetError: 404 if the book does not exist
        ValidationError: 400 for empty or oversized content or a bad parent
    """
    comment = create_comment(
        db,
        book_id=book_id,
        identity=resolve_identity(request, book_id, current_user),
        author_name=display_name_for(current_user, body.author_name),
        content=body.content,
        parent_comment_id=body.parent_comment_id,
    )
    thread = serialize_thread(
        request, db, build_comment_tree(list_book_comments(db, book_id)), current_user
    )
    return CommentWriteResponse(
        comment=next(entry for entry in thread if entry.id == comment.id),
        total_count=count_comments(db, book_id),
    )


@router.delete(
    "/comments/{comment_id}",
    response_model=CommentCountResponse,
    summary="Delete a comment",
    description="Delete your own comment (superusers: any comment). Replies are kept.",
)
@limiter.limit(settings.rate_limit_write)
def remove_comment(
    request: Request,
    comment_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> CommentCountResponse:
    book_id = delete_comment(db, comment_id, current_user)
    return CommentCountResponse(book_id=book_id, total_count=count_comments(db, book_id))
