"""
Tests for rating aggregation.

The summarizing functions are pure; get_rating_summary is checked against
the database to make sure it groups by book.
"""

from booknest.models import Book, Review
from booknest.services.ratings import (
    get_rating_summaries,
    get_rating_summary,
    summarize_rating_values,
    summarize_ratings,
)


class TestSummarizeRatings:
    def test_empty(self):
        summary = summarize_ratings(1, {})

        assert summary.average_rating == 0.0
        assert summary.total_reviews == 0
        assert summary.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    def test_average_of_five_three_four(self):
        summary = summarize_rating_values(1, [5, 3, 4])

        assert summary.average_rating == 4.0
        assert summary.total_reviews == 3
        assert summary.rating_distribution == {1: 0, 2: 0, 3: 1, 4: 1, 5: 1}

    def test_rounds_to_two_decimals(self):
        assert summarize_rating_values(1, [1, 2, 2]).average_rating == 1.67

    def test_values_outside_scale_ignored(self):
        summary = summarize_ratings(1, {5: 2, 9: 4})

        assert summary.total_reviews == 2
        assert summary.average_rating == 5.0

    def test_distribution_sums_to_total(self):
        summary = summarize_rating_values(1, [1, 1, 2, 5, 5, 5, 3])
        assert sum(summary.rating_distribution.values()) == summary.total_reviews


class TestRatingSummaryQueries:
    def test_groups_by_book(self, db_session, sample_book, anonymous_book):
        db_session.add_all([
            Review(book_id=sample_book.id, identity="a", author_name="A", rating=5, content="x"),
            Review(book_id=sample_book.id, identity="b", author_name="B", rating=2, content="x"),
            Review(book_id=anonymous_book.id, identity="a", author_name="A", rating=1, content="x"),
        ])
        db_session.commit()

        summaries = get_rating_summaries(db_session, [sample_book.id, anonymous_book.id])

        assert summaries[sample_book.id].average_rating == 3.5
        assert summaries[anonymous_book.id].total_reviews == 1

    def test_book_without_reviews(self, db_session, sample_book):
        summary = get_rating_summary(db_session, sample_book.id)

        assert summary.book_id == sample_book.id
        assert summary.total_reviews == 0

    def test_recomputed_after_change(self, db_session, sample_review):
        assert get_rating_summary(db_session, sample_review.book_id).average_rating == 4.0

        sample_review.rating = 1
        db_session.commit()

        assert get_rating_summary(db_session, sample_review.book_id).average_rating == 1.0


def test_unknown_book_ids_get_empty_summaries(db_session):
    summaries = get_rating_summaries(db_session, [123456])
    assert summaries[123456].total_reviews == 0
    assert db_session.get(Book, 123456) is None
