"""
Tests for write-path failure handling.

Two requests racing on the same (target, identity) pair must leave exactly
one row behind; the loser gets a retryable ConflictError. These tests use
a file-backed SQLite database with independent sessions, because the race
needs two connections that each commit for real.
"""

from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import Select, create_engine, func, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from booknest.database import Base
from booknest.exceptions import ConflictError, StoreUnavailable, ValidationError
from booknest.models import Book, Comment, CommentLike, Review, Vote
from booknest.services.identity import IdentityToken
from booknest.services.store import atomic_write
from booknest.services.votes import (
    cast_vote,
    get_like_state,
    get_vote_state,
    set_review_helpful,
    toggle_comment_like,
)

VOTER = IdentityToken(value="a" * 64)


@pytest.fixture
def file_sessions(tmp_path):
    """Factory for sessions on a throwaway on-disk database."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield factory

    engine.dispose()


@pytest.fixture
def race_book_id(file_sessions) -> int:
    with file_sessions() as db:
        book = Book(name="Race", url="https://example.com/race", genre="Fiction")
        db.add(book)
        db.commit()
        return book.id


class TestVoteRace:
    def test_losing_insert_raises_conflict_and_one_row_remains(
        self, file_sessions, race_book_id
    ):
        with file_sessions() as first:
            cast_vote(first, race_book_id, VOTER, "upvote")

        # The second request read "no vote yet" before the first one committed.
        with file_sessions() as second, patch(
            "booknest.services.votes._find_vote", return_value=None
        ):
            with pytest.raises(ConflictError) as exc_info:
                cast_vote(second, race_book_id, VOTER, "upvote")

        assert exc_info.value.retryable is True
        assert exc_info.value.status_code == 409

        with file_sessions() as check:
            rows = check.execute(
                select(func.count(Vote.id)).where(Vote.book_id == race_book_id)
            ).scalar()
        assert rows == 1

    def test_retry_after_conflict_sees_committed_vote(self, file_sessions, race_book_id):
        with file_sessions() as first:
            cast_vote(first, race_book_id, VOTER, "upvote")

        with file_sessions() as retry:
            outcome = cast_vote(retry, race_book_id, VOTER, "downvote")

        assert outcome.action == "changed"
        assert outcome.tally.upvotes == 0
        assert outcome.tally.downvotes == 1


class TestLikeRace:
    def test_losing_like_raises_conflict(self, file_sessions, race_book_id):
        with file_sessions() as db:
            comment = Comment(
                book_id=race_book_id, author_identity="x", author_name="A", content="hi"
            )
            db.add(comment)
            db.commit()
            comment_id = comment.id

        with file_sessions() as first:
            toggle_comment_like(first, comment_id, VOTER)

        with file_sessions() as second, patch(
            "booknest.services.votes._find_like", return_value=None
        ):
            with pytest.raises(ConflictError):
                toggle_comment_like(second, comment_id, VOTER)

        with file_sessions() as check:
            assert check.execute(select(func.count(CommentLike.id))).scalar() == 1


class TestAtomicWrite:
    def test_commits_on_success(self):
        db = MagicMock()

        with atomic_write(db, "test write"):
            pass

        db.flush.assert_called_once()
        db.commit.assert_called_once()
        db.rollback.assert_not_called()

    def test_unreachable_database_maps_to_store_unavailable(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection refused"))

        with pytest.raises(StoreUnavailable) as exc_info:
            with atomic_write(db, "test write"):
                pass

        db.rollback.assert_called_once()
        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True

    def test_other_errors_pass_through_and_roll_back(self):
        db = MagicMock()

        with pytest.raises(ValueError):
            with atomic_write(db, "test write"):
                raise ValueError("boom")

        db.commit.assert_not_called()
        db.rollback.assert_called_once()

    def test_validation_error_rolls_back(self):
        db = MagicMock()

        with pytest.raises(ValidationError):
            with atomic_write(db, "helpful mark"):
                raise ValidationError("already marked")

        db.commit.assert_not_called()
        db.rollback.assert_called_once()

    def test_rejected_helpful_mark_leaves_no_open_transaction(
        self, file_sessions, race_book_id
    ):
        with file_sessions() as db:
            review = Review(
                book_id=race_book_id, identity="r" * 64, author_name="A", rating=4, content="ok"
            )
            db.add(review)
            db.commit()

            set_review_helpful(db, review.id, VOTER, helpful=True)
            with pytest.raises(ValidationError):
                set_review_helpful(db, review.id, VOTER, helpful=True)

            assert not db.in_transaction()


def _locking_selects(db, action) -> list[str]:
    """Run `action` and return the SELECTs it issued that carry FOR UPDATE."""
    issued = []
    real_execute = db.execute

    def recording_execute(statement, *args, **kwargs):
        issued.append(statement)
        return real_execute(statement, *args, **kwargs)

    with patch.object(db, "execute", side_effect=recording_execute):
        action()

    dialect = postgresql.dialect()
    compiled = [str(stmt.compile(dialect=dialect)) for stmt in issued if isinstance(stmt, Select)]
    return [sql for sql in compiled if "FOR UPDATE" in sql]


class TestRowLocks:
    """Only the write paths lock the identity's row; reads never do."""

    def test_reading_vote_state_takes_no_lock(self, db_session, sample_book):
        locking = _locking_selects(
            db_session, lambda: get_vote_state(db_session, sample_book.id, VOTER)
        )
        assert locking == []

    def test_reading_like_state_takes_no_lock(self, db_session, sample_comment):
        locking = _locking_selects(
            db_session, lambda: get_like_state(db_session, sample_comment.id, VOTER)
        )
        assert locking == []

    def test_casting_a_vote_locks_the_existing_row(self, db_session, sample_book):
        locking = _locking_selects(
            db_session, lambda: cast_vote(db_session, sample_book.id, VOTER, "upvote")
        )
        assert len(locking) == 1
        assert "votes" in locking[0]

    def test_toggling_a_like_locks_the_existing_row(self, db_session, sample_comment):
        locking = _locking_selects(
            db_session, lambda: toggle_comment_like(db_session, sample_comment.id, VOTER)
        )
        assert len(locking) == 1
        assert "comment_likes" in locking[0]


class TestErrorResponses:
    """Domain errors reach the client with their status and retry hint."""

    def test_conflict_is_409_with_retry_after(self, client, sample_book):
        with patch(
            "booknest.routers.votes.cast_vote",
            side_effect=ConflictError("A concurrent request changed this vote. Please retry."),
        ):
            response = client.post(
                f"/api/v1/books/{sample_book.id}/votes", json={"vote_type": "upvote"}
            )

        assert response.status_code == 409
        assert response.headers["Retry-After"] == "0"
        assert response.json()["retryable"] is True

    def test_store_unavailable_is_503(self, client, sample_book):
        with patch(
            "booknest.routers.comments.create_comment",
            side_effect=StoreUnavailable("The database is temporarily unavailable."),
        ):
            response = client.post(
                f"/api/v1/books/{sample_book.id}/comments", json={"content": "hi"}
            )

        assert response.status_code == 503
        assert "Retry-After" in response.headers

    def test_validation_error_is_not_retryable(self, client, sample_book):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/votes", json={"vote_type": "meh"}
        )

        assert response.status_code == 400
        assert response.json()["retryable"] is False
        assert "Retry-After" not in response.headers
