"""
Reviews Router

Star reviews of books and their "helpful" marks.

Endpoints:
- GET /books/{book_id}/reviews - Paginated reviews with the rating summary
- POST /books/{book_id}/reviews - Review a book (one per identity)
- GET /books/{book_id}/rating - Rating summary only
- PUT /reviews/{review_id} - Edit your review
- DELETE /reviews/{review_id} - Delete your review (superusers: any)
- POST /reviews/{review_id}/helpful - Mark a review helpful
- DELETE /reviews/{review_id}/helpful - Remove your helpful mark

Every review write answers with the book's fresh rating summary.
"""

import math
from collections.abc import Sequence

from fastapi import APIRouter, Request, status
from sqlalchemy.orm import Session

from booknest.config import get_settings
from booknest.dependencies import (
    ActiveUser,
    BookOr404,
    DbSession,
    OptionalUser,
    Pagination,
    display_name_for,
)
from booknest.models import Review
from booknest.schemas import (
    BookRatingStats,
    HelpfulResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    ReviewWriteResponse,
)
from booknest.services.identity import resolve_identity
from booknest.services.rate_limiter import limiter
from booknest.services.ratings import BookRatingSummary, get_rating_summary
from booknest.services.reviews import (
    ReviewOutcome,
    create_review,
    delete_review,
    list_book_reviews,
    update_review,
)
from booknest.services.votes import get_helpful_counts, set_review_helpful

settings = get_settings()

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Book or review not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def rating_stats(summary: BookRatingSummary) -> BookRatingStats:
    return BookRatingStats.model_validate(summary)


def _review_responses(db: Session, reviews: Sequence[Review]) -> list[ReviewResponse]:
    helpful = get_helpful_counts(db, [review.id for review in reviews])
    items = []
    for review in reviews:
        item = ReviewResponse.model_validate(review)
        item.helpful_count = helpful[review.id]
        items.append(item)
    return items


def _write_response(db: Session, outcome: ReviewOutcome) -> ReviewWriteResponse:
    review = _review_responses(db, [outcome.review])[0] if outcome.review else None
    return ReviewWriteResponse(review=review, rating=rating_stats(outcome.rating))


# =============================================================================
# Book Reviews
# =============================================================================
@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
    description="Paginated reviews, newest first, with the book's rating summary.",
)
@limiter.limit(settings.rate_limit_default)
def list_reviews(
    request: Request,
    book: BookOr404,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    reviews, total = list_book_reviews(db, book.id, pagination.skip, pagination.per_page)
    return ReviewListResponse(
        items=_review_responses(db, reviews),
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=math.ceil(total / pagination.per_page) if total > 0 else 0,
        rating=rating_stats(get_rating_summary(db, book.id)),
    )


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewWriteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Review a book",
    description="Post a 1-5 star review. One review per reader per book.",
)
@limiter.limit(settings.rate_limit_write)
def post_review(
    request: Request,
    book_id: int,
    body: ReviewCreate,
    db: DbSession,
    current_user: OptionalUser,
) -> ReviewWriteResponse:
    """
    Raises:
        UnknownTargetError: 404 if the book does not exist
        ValidationError: 400 for a rating outside 1-5, empty content or a
            second review from the same reader
    """
    outcome = create_review(
        db,
        book_id=book_id,
        identity=resolve_identity(request, book_id, current_user),
        author_name=display_name_for(current_user, body.author_name),
        rating=body.rating,
        content=body.content,
        title=body.title,
    )
    return _write_response(db, outcome)


@router.get(
    "/books/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Rating summary",
    description="Average rating, total reviews and the 1-5 star distribution.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating(
    request: Request,
    book: BookOr404,
    db: DbSession,
) -> BookRatingStats:
    return rating_stats(get_rating_summary(db, book.id))


# =============================================================================
# Single Review
# =============================================================================
@router.put(
    "/reviews/{review_id}",
    response_model=ReviewWriteResponse,
    summary="Update a review",
    description="Edit your own review. Only provided fields change.",
)
@limiter.limit(settings.rate_limit_write)
def edit_review(
    request: Request,
    review_id: int,
    body: ReviewUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> ReviewWriteResponse:
    outcome = update_review(db, review_id, current_user, body.model_dump(exclude_unset=True))
    return _write_response(db, outcome)


@router.delete(
    "/reviews/{review_id}",
    response_model=ReviewWriteResponse,
    summary="Delete a review",
    description="Delete your own review (superusers: any review).",
)
@limiter.limit(settings.rate_limit_write)
def remove_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> ReviewWriteResponse:
    return _write_response(db, delete_review(db, review_id, current_user))


# =============================================================================
# Helpful Marks
# =============================================================================
@router.post(
    "/reviews/{review_id}/helpful",
    response_model=HelpfulResponse,
    summary="Mark a review helpful",
)
@limiter.limit(settings.rate_limit_write)
def mark_helpful(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> HelpfulResponse:
    """
    Raises:
        ValidationError: 400 if the caller already marked it
    """
    identity = resolve_identity(request, review_id, current_user)
    return HelpfulResponse.model_validate(set_review_helpful(db, review_id, identity, True))


@router.delete(
    "/reviews/{review_id}/helpful",
    response_model=HelpfulResponse,
    summary="Remove a helpful mark",
)
@limiter.limit(settings.rate_limit_write)
def unmark_helpful(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: OptionalUser,
) -> HelpfulResponse:
    """
    Raises:
        UnknownTargetError: 404 if the caller has no mark on this review
    """
    identity = resolve_identity(request, review_id, current_user)
    return HelpfulResponse.model_validate(set_review_helpful(db, review_id, identity, False))
