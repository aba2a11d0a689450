"""
Books Router

Sharing, listing and moderating book links.

- Anyone may submit a book; signed-in submitters are recorded
- Only the submitter or a superuser may edit or delete a book
- Every book in a response carries its vote tally and comment count,
  recomputed from the vote and comment rows (no stored counters)
"""

import logging
import math
from collections.abc import Sequence

from fastapi import APIRouter, Request, status
from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session, selectinload

from booknest.config import get_settings
from booknest.dependencies import (
    ActiveUser,
    BookFilters,
    BookOr404,
    BookSort,
    DbSession,
    OptionalUser,
    Pagination,
)
from booknest.exceptions import PermissionDeniedError
from booknest.models import Book, User, Vote, VoteType
from booknest.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    BookUpdate,
    SubmitterResponse,
    VoteTallyResponse,
)
from booknest.services.comments import count_comments, count_comments_by_book
from booknest.services.rate_limiter import limiter
from booknest.services.ratings import get_rating_summary
from booknest.services.store import atomic_write
from booknest.services.votes import VoteTally, get_vote_tallies, get_vote_tally

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def tally_response(tally: VoteTally) -> VoteTallyResponse:
    return VoteTallyResponse(
        upvotes=tally.upvotes,
        downvotes=tally.downvotes,
        score=tally.score,
    )


def _book_fields(book: Book) -> dict:
    return {
        "id": book.id,
        "name": book.name,
        "url": book.url,
        "poster_url": book.poster_url,
        "summary": book.summary,
        "genre": book.genre,
        "user_id": book.user_id,
        "submitter": (
            SubmitterResponse.model_validate(book.submitter) if book.submitter else None
        ),
        "created_at": book.created_at,
        "updated_at": book.updated_at,
    }


def build_book_responses(db: Session, books: Sequence[Book]) -> list[BookResponse]:
    """
    Attach derived numbers to a page of books.

    Two grouped queries for the whole page (tallies, comment counts),
    not two per book.
    """
    ids = [book.id for book in books]
    tallies = get_vote_tallies(db, ids)
    comment_counts = count_comments_by_book(db, ids)
    return [
        BookResponse(
            **_book_fields(book),
            tally=tally_response(tallies[book.id]),
            comment_count=comment_counts[book.id],
        )
        for book in books
    ]


def build_book_detail(db: Session, book: Book) -> BookDetailResponse:
    summary = get_rating_summary(db, book.id)
    return BookDetailResponse(
        **_book_fields(book),
        tally=tally_response(get_vote_tally(db, book.id)),
        comment_count=count_comments(db, book.id),
        rating={
            "book_id": summary.book_id,
            "average_rating": summary.average_rating,
            "total_reviews": summary.total_reviews,
            "rating_distribution": summary.rating_distribution,
        },
    )


def _check_can_modify(book: Book, user: User) -> None:
    if book.user_id != user.id and not user.is_superuser:
        raise PermissionDeniedError("Only the submitter or a moderator can change this book")


def apply_book_filters(stmt, filters: BookFilters):
    """
    Apply genre and text filters to a book query.

    - genre: exact match, case-insensitive
    - search: partial match on name or summary, case-insensitive
    """
    if filters.genre:
        stmt = stmt.where(func.lower(Book.genre) == filters.genre.strip().lower())

    if filters.search:
        term = f"%{filters.search.strip()}%"
        stmt = stmt.where(or_(Book.name.ilike(term), Book.summary.ilike(term)))

    return stmt


def apply_book_order(stmt, sort_by: BookSort):
    """
    Order a book query.

    most_voted ranks by score (upvotes - downvotes) from a grouped vote
    subquery; books without votes score 0. Ties fall back to newest first.
    """
    newest = (Book.created_at.desc(), Book.id.desc())

    if sort_by is BookSort.OLDEST:
        return stmt.order_by(Book.created_at.asc(), Book.id.asc())
    if sort_by is BookSort.ALPHABETICAL:
        return stmt.order_by(func.lower(Book.name).asc(), Book.id.asc())
    if sort_by is BookSort.MOST_VOTED:
        score = (
            select(
                Vote.book_id.label("book_id"),
                func.sum(
                    case((Vote.vote_type == VoteType.UPVOTE.value, 1), else_=-1)
                ).label("score"),
            )
            .group_by(Vote.book_id)
            .subquery()
        )
        return stmt.outerjoin(score, score.c.book_id == Book.id).order_by(
            func.coalesce(score.c.score, 0).desc(), *newest
        )
    return stmt.order_by(*newest)


# =============================================================================
# Endpoints
# =============================================================================
@router.get(
    "/",
    response_model=BookListResponse,
    summary="List books",
    description="Paginated list of shared books with optional genre/text filters and ordering.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: BookFilters,
) -> BookListResponse:
    """
    List books.

    Query parameters:
    - genre: Only this genre
    - search: Text in name or summary
    - sort_by: newest (default), oldest, most_voted, alphabetical
    """
    base_stmt = apply_book_filters(select(Book), filters)

    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0
    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        apply_book_order(base_stmt, filters.sort_by)
        .options(selectinload(Book.submitter))
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    books = db.execute(stmt).scalars().all()

    return BookListResponse(
        items=build_book_responses(db, books),
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book by ID",
    description="Book with its vote tally, rating summary and comment count.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book: BookOr404,
    db: DbSession,
) -> BookDetailResponse:
    return build_book_detail(db, book)


@router.post(
    "/",
    response_model=BookDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Share a book",
    description="Submit a book link. Signing in is optional; anonymous submissions have no submitter.",
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    current_user: OptionalUser,
) -> BookDetailResponse:
    """
    Create a book.

    Returns:
        The new book with zeroed aggregates
    """
    book = Book(
        **book_data.model_dump(),
        user_id=current_user.id if current_user else None,
    )
    with atomic_write(db, "book submission"):
        db.add(book)

    db.refresh(book)
    logger.info(
        f"Book {book.id} shared by "
        f"{'user ' + str(current_user.id) if current_user else 'anonymous visitor'}"
    )

    return build_book_detail(db, book)


@router.put(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Update a book",
    description="Edit a book. Only the submitter or a superuser may do this.",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book: BookOr404,
    book_data: BookUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> BookDetailResponse:
    """
    Partial update: only provided fields change.

    Raises:
        PermissionDeniedError: 403 for anyone but the submitter or a superuser
    """
    _check_can_modify(book, current_user)

    update_data = book_data.model_dump(exclude_unset=True)
    with atomic_write(db, f"update of book {book.id}"):
        for field, value in update_data.items():
            if value is None and field in ("name", "url", "genre"):
                continue
            setattr(book, field, value)

    db.refresh(book)
    logger.info(f"Book {book.id} updated by user {current_user.id}")

    return build_book_detail(db, book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book with its votes, comments and reviews.",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book: BookOr404,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    """
    Raises:
        PermissionDeniedError: 403 for anyone but the submitter or a superuser
    """
    _check_can_modify(book, current_user)

    book_id = book.id
    with atomic_write(db, f"deletion of book {book_id}"):
        db.delete(book)

    logger.info(f"Book {book_id} deleted by user {current_user.id}")
