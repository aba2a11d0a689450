"""
Tests for Votes API Endpoints

Covers the upvote/downvote state machine through /api/v1/books/{id}/votes:
- first vote is recorded
- repeating the same kind removes it
- the opposite kind switches it
- anonymous visitors are keyed by address, members by account
"""

from fastapi import status

from booknest.models import Vote


def vote(client, book_id, vote_type, headers=None):
    return client.post(
        f"/api/v1/books/{book_id}/votes",
        json={"vote_type": vote_type},
        headers=headers or {},
    )


class TestCastVote:
    """Tests for POST /api/v1/books/{book_id}/votes."""

    def test_first_upvote_is_created(self, client, sample_book):
        response = vote(client, sample_book.id, "upvote")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["action"] == "created"
        assert data["vote_type"] == "upvote"
        assert data["upvotes"] == 1
        assert data["downvotes"] == 0
        assert data["score"] == 1

    def test_same_vote_twice_toggles_off(self, client, sample_book):
        vote(client, sample_book.id, "upvote")

        response = vote(client, sample_book.id, "upvote")

        data = response.json()
        assert data["action"] == "removed"
        assert data["vote_type"] is None
        assert data["upvotes"] == 0
        assert data["score"] == 0

    def test_opposite_vote_switches(self, client, db_session, sample_book):
        vote(client, sample_book.id, "upvote")

        response = vote(client, sample_book.id, "downvote")

        data = response.json()
        assert data["action"] == "changed"
        assert data["vote_type"] == "downvote"
        assert (data["upvotes"], data["downvotes"], data["score"]) == (0, 1, -1)
        assert db_session.query(Vote).filter_by(book_id=sample_book.id).count() == 1

    def test_distinct_addresses_vote_independently(self, client, sample_book):
        vote(client, sample_book.id, "upvote", {"X-Forwarded-For": "203.0.113.1"})
        vote(client, sample_book.id, "upvote", {"X-Forwarded-For": "203.0.113.2"})

        response = vote(
            client, sample_book.id, "downvote", {"X-Forwarded-For": "203.0.113.3, 10.0.0.1"}
        )

        data = response.json()
        assert (data["upvotes"], data["downvotes"], data["score"]) == (2, 1, 1)

    def test_member_vote_follows_account_not_address(
        self, client, db_session, sample_book, sample_user, auth_headers
    ):
        vote(client, sample_book.id, "upvote", {**auth_headers, "X-Forwarded-For": "198.51.100.1"})

        response = vote(
            client, sample_book.id, "upvote", {**auth_headers, "X-Forwarded-For": "198.51.100.2"}
        )

        assert response.json()["action"] == "removed"
        assert db_session.query(Vote).filter_by(book_id=sample_book.id).count() == 0

    def test_member_and_anonymous_votes_are_separate(
        self, client, db_session, sample_book, sample_user, auth_headers
    ):
        vote(client, sample_book.id, "upvote", auth_headers)
        vote(client, sample_book.id, "upvote")

        rows = db_session.query(Vote).filter_by(book_id=sample_book.id).all()
        assert len(rows) == 2
        assert {row.user_id for row in rows} == {sample_user.id, None}
        assert f"user:{sample_user.id}" in {row.identity for row in rows}

    def test_invalid_vote_type(self, client, sample_book):
        response = vote(client, sample_book.id, "sidevote")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "upvote" in response.json()["detail"]

    def test_vote_on_missing_book(self, client):
        response = vote(client, 99999, "upvote")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Book with id 99999 not found"


class TestGetVotes:
    """Tests for GET /api/v1/books/{book_id}/votes."""

    def test_no_vote_yet(self, client, sample_book):
        response = client.get(f"/api/v1/books/{sample_book.id}/votes")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["vote_type"] is None
        assert data["action"] is None
        assert data["score"] == 0

    def test_reports_callers_vote(self, client, sample_book):
        vote(client, sample_book.id, "downvote")

        response = client.get(f"/api/v1/books/{sample_book.id}/votes")

        assert response.json()["vote_type"] == "downvote"

    def test_other_address_sees_tally_but_not_vote(self, client, sample_book):
        vote(client, sample_book.id, "downvote")

        response = client.get(
            f"/api/v1/books/{sample_book.id}/votes",
            headers={"X-Real-IP": "192.0.2.44"},
        )

        data = response.json()
        assert data["vote_type"] is None
        assert data["downvotes"] == 1

    def test_missing_book(self, client):
        response = client.get("/api/v1/books/99999/votes")
        assert response.status_code == status.HTTP_404_NOT_FOUND
