"""
Reviews Service

Star reviews of books. One review per identity per book; signed-in members
are keyed by account, anonymous visitors by the address hash for that book.

Every write returns the review together with the book's fresh rating
summary, recomputed from the review rows.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from booknest.exceptions import PermissionDeniedError, UnknownTargetError, ValidationError
from booknest.models import Book, Review, User
from booknest.services.identity import IdentityToken
from booknest.services.ratings import BookRatingSummary, get_rating_summary
from booknest.services.store import atomic_write

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


@dataclass
class ReviewOutcome:
    review: Review | None
    rating: BookRatingSummary


def _check_rating(rating: int) -> None:
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")


def _check_content(content: str) -> str:
    content = content.strip()
    if not content:
        raise ValidationError("Review content cannot be empty")
    return content


def _require_review(db: Session, review_id: int) -> Review:
    review = db.get(Review, review_id)
    if review is None:
        raise UnknownTargetError("Review", review_id)
    return review


def _check_owner(review: Review, user: User, action: str) -> None:
    if review.user_id != user.id and not user.is_superuser:
        raise PermissionDeniedError(f"You can only {action} your own reviews")


def list_book_reviews(
    db: Session,
    book_id: int,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Review], int]:
    """Reviews of a book, newest first, with the total count."""
    if db.get(Book, book_id) is None:
        raise UnknownTargetError("Book", book_id)

    stmt = (
        select(Review)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(skip)
        .limit(limit)
    )
    reviews = list(db.execute(stmt).scalars().all())
    return reviews, get_rating_summary(db, book_id).total_reviews


def find_review(db: Session, book_id: int, identity: IdentityToken) -> Review | None:
    stmt = select(Review).where(Review.book_id == book_id, Review.identity == identity.value)
    return db.execute(stmt).scalar_one_or_none()


def create_review(
    db: Session,
    book_id: int,
    identity: IdentityToken,
    author_name: str,
    rating: int,
    content: str,
    title: str | None = None,
) -> ReviewOutcome:
    """
    Post a review.

    Raises:
        UnknownTargetError: Book does not exist
        ValidationError: Rating out of range, empty content, or the identity
            already reviewed this book
        ConflictError: A concurrent review from the same identity won the race
    """
    if db.get(Book, book_id) is None:
        raise UnknownTargetError("Book", book_id)

    _check_rating(rating)
    content = _check_content(content)

    if find_review(db, book_id, identity) is not None:
        raise ValidationError("You have already reviewed this book")

    review = Review(
        book_id=book_id,
        identity=identity.value,
        user_id=identity.user_id,
        author_name=author_name,
        rating=rating,
        title=title,
        content=content,
    )
    with atomic_write(db, f"review of book {book_id}"):
        db.add(review)

    db.refresh(review)
    logger.info(f"Review {review.id} created on book {book_id} with rating {rating}")

    return ReviewOutcome(review=review, rating=get_rating_summary(db, book_id))


def update_review(
    db: Session,
    review_id: int,
    user: User,
    changes: dict,
) -> ReviewOutcome:
    """
    Apply a partial update (rating, title, content) to a review.

    Raises:
        UnknownTargetError: Review does not exist
        PermissionDeniedError: User is neither the author nor a superuser
        ValidationError: Rating out of range or empty content
    """
    review = _require_review(db, review_id)
    _check_owner(review, user, "update")

    if changes.get("rating") is not None:
        _check_rating(changes["rating"])
    if "content" in changes:
        if changes["content"] is None:
            raise ValidationError("Review content cannot be empty")
        changes["content"] = _check_content(changes["content"])

    with atomic_write(db, f"update of review {review_id}"):
        for field_name, value in changes.items():
            if field_name == "rating" and value is None:
                continue
            setattr(review, field_name, value)

    db.refresh(review)
    logger.info(f"Review {review_id} updated by user {user.id}")

    return ReviewOutcome(review=review, rating=get_rating_summary(db, review.book_id))


def delete_review(db: Session, review_id: int, user: User) -> ReviewOutcome:
    """
    Delete a review and its helpful marks.

    Raises:
        UnknownTargetError: Review does not exist
        PermissionDeniedError: User is neither the author nor a superuser
    """
    review = _require_review(db, review_id)
    _check_owner(review, user, "delete")

    book_id = review.book_id
    with atomic_write(db, f"deletion of review {review_id}"):
        db.delete(review)

    logger.info(f"Review {review_id} deleted by user {user.id}")

    return ReviewOutcome(review=None, rating=get_rating_summary(db, book_id))
