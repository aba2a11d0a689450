"""
Ratings Service

Rating aggregation for books.

The summary is recomputed from the Review rows on every read. Nothing is
denormalized onto the Book row, so a review write can never leave a stale
average behind.

One grouped query (rating → count) is enough: the average and the total
follow from the star buckets.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from booknest.models.review import Review

STAR_VALUES = (1, 2, 3, 4, 5)


@dataclass
class BookRatingSummary:
    """Derived view of a book's reviews."""

    book_id: int
    average_rating: float = 0.0
    total_reviews: int = 0
    rating_distribution: dict[int, int] = field(
        default_factory=lambda: dict.fromkeys(STAR_VALUES, 0)
    )


def summarize_ratings(book_id: int, distribution: Mapping[int, int]) -> BookRatingSummary:
    """
    Build a rating summary from star-bucket counts.

    Args:
        book_id: Book the counts belong to
        distribution: rating value → number of reviews with that rating

    Returns:
        Summary with the mean rounded to two decimals (0.0 when empty)

    Example:
        >>> summarize_ratings(1, {5: 1, 4: 1, 3: 1}).average_rating
        4.0
    """
    buckets = dict.fromkeys(STAR_VALUES, 0)
    for rating, count in distribution.items():
        if rating in buckets:
            buckets[rating] += count

    total = sum(buckets.values())
    if total == 0:
        return BookRatingSummary(book_id=book_id, rating_distribution=buckets)

    weighted = sum(rating * count for rating, count in buckets.items())
    return BookRatingSummary(
        book_id=book_id,
        average_rating=round(weighted / total, 2),
        total_reviews=total,
        rating_distribution=buckets,
    )


def summarize_rating_values(book_id: int, ratings: Iterable[int]) -> BookRatingSummary:
    """Summary from raw rating values, e.g. [5, 3, 4]."""
    distribution: dict[int, int] = {}
    for rating in ratings:
        distribution[rating] = distribution.get(rating, 0) + 1
    return summarize_ratings(book_id, distribution)


def get_rating_summaries(db: Session, book_ids: Iterable[int]) -> dict[int, BookRatingSummary]:
    """Rating summaries for several books from one grouped query."""
    ids = list(book_ids)
    distributions: dict[int, dict[int, int]] = {book_id: {} for book_id in ids}
    if ids:
        stmt = (
            select(Review.book_id, Review.rating, func.count(Review.id))
            .where(Review.book_id.in_(ids))
            .group_by(Review.book_id, Review.rating)
        )
        for book_id, rating, count in db.execute(stmt).all():
            distributions[book_id][rating] = count

    return {
        book_id: summarize_ratings(book_id, distribution)
        for book_id, distribution in distributions.items()
    }


def get_rating_summary(db: Session, book_id: int) -> BookRatingSummary:
    """
    Recompute the rating summary of one book.

    Args:
        db: Database session
        book_id: Book to summarize

    Returns:
        BookRatingSummary (zeros when the book has no reviews)
    """
    return get_rating_summaries(db, [book_id])[book_id]
