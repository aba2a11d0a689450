"""
Tests for Reviews API Endpoints

Tests cover:
- Posting reviews (member and anonymous, one per reader per book)
- Rating validation
- Rating summaries (average, total, distribution)
- Editing and deleting reviews (ownership)
- Helpful marks
"""

from fastapi import status

from booknest.models import ReviewHelpful


def post_review(client, book_id, rating, content="Worth reading.", headers=None, **extra):
    return client.post(
        f"/api/v1/books/{book_id}/reviews",
        json={"rating": rating, "content": content, **extra},
        headers=headers or {},
    )


def address(n: int) -> dict[str, str]:
    return {"X-Forwarded-For": f"203.0.113.{n}"}


class TestCreateReview:
    """Tests for POST /api/v1/books/{book_id}/reviews."""

    def test_member_review(self, client, sample_book, sample_user, auth_headers):
        response = post_review(
            client, sample_book.id, 5, "A classic.", auth_headers, title="  Superb  "
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["review"]["rating"] == 5
        assert data["review"]["title"] == "Superb"
        assert data["review"]["user_id"] == sample_user.id
        assert data["review"]["author_name"] == "Test User"
        assert data["review"]["helpful_count"] == 0
        assert data["rating"]["average_rating"] == 5.0
        assert data["rating"]["total_reviews"] == 1

    def test_anonymous_review(self, client, sample_book):
        response = post_review(client, sample_book.id, 3)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()["review"]
        assert data["user_id"] is None
        assert data["author_name"] == "Anonymous"

    def test_anonymous_review_with_chosen_name(self, client, sample_book):
        response = post_review(client, sample_book.id, 4, author_name="  Book Lover ")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["review"]["author_name"] == "Book Lover"

    def test_member_cannot_post_under_another_name(self, client, sample_book, auth_headers):
        response = post_review(
            client, sample_book.id, 4, headers=auth_headers, author_name="Someone Else"
        )

        assert response.json()["review"]["author_name"] == "Test User"

    def test_second_review_from_same_member_rejected(
        self, client, sample_book, sample_review, auth_headers
    ):
        response = post_review(client, sample_book.id, 1, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "already reviewed" in response.json()["detail"]

    def test_second_anonymous_review_from_same_address_rejected(
        self, client, sample_book, anonymous_review
    ):
        response = post_review(client, sample_book.id, 5)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_rating_out_of_range(self, client, sample_book):
        for rating in (0, 6):
            response = post_review(client, sample_book.id, rating)
            assert response.status_code == status.HTTP_400_BAD_REQUEST
            assert "between 1 and 5" in response.json()["detail"]

    def test_blank_content_rejected(self, client, sample_book):
        response = post_review(client, sample_book.id, 4, "   ")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_missing_book(self, client):
        response = post_review(client, 99999, 4)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestRatingSummary:
    """Tests for GET /api/v1/books/{book_id}/rating."""

    def test_no_reviews(self, client, sample_book):
        response = client.get(f"/api/v1/books/{sample_book.id}/rating")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "book_id": sample_book.id,
            "average_rating": 0.0,
            "total_reviews": 0,
            "rating_distribution": {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
        }

    def test_average_of_three(self, client, sample_book):
        for n, rating in enumerate([5, 3, 4]):
            post_review(client, sample_book.id, rating, headers=address(n))

        response = client.get(f"/api/v1/books/{sample_book.id}/rating")

        data = response.json()
        assert data["average_rating"] == 4.0
        assert data["total_reviews"] == 3
        assert data["rating_distribution"] == {"1": 0, "2": 0, "3": 1, "4": 1, "5": 1}

    def test_average_rounded_to_two_decimals(self, client, sample_book):
        for n, rating in enumerate([5, 4, 4]):
            post_review(client, sample_book.id, rating, headers=address(n))

        response = client.get(f"/api/v1/books/{sample_book.id}/rating")

        assert response.json()["average_rating"] == 4.33

    def test_book_detail_includes_rating(self, client, sample_book, sample_review):
        response = client.get(f"/api/v1/books/{sample_book.id}")

        rating = response.json()["rating"]
        assert rating["average_rating"] == 4.0
        assert rating["total_reviews"] == 1


class TestListReviews:
    """Tests for GET /api/v1/books/{book_id}/reviews."""

    def test_list_with_summary(self, client, sample_book, sample_review, anonymous_review):
        response = client.get(f"/api/v1/books/{sample_book.id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 2
        assert data["pages"] == 1
        assert {item["id"] for item in data["items"]} == {
            sample_review.id,
            anonymous_review.id,
        }
        assert data["rating"]["average_rating"] == 3.0

    def test_pagination(self, client, sample_book):
        for n in range(5):
            post_review(client, sample_book.id, 4, headers=address(n))

        response = client.get(f"/api/v1/books/{sample_book.id}/reviews?per_page=2&page=3")

        data = response.json()
        assert len(data["items"]) == 1
        assert data["total"] == 5
        assert data["pages"] == 3

    def test_missing_book(self, client):
        response = client.get("/api/v1/books/99999/reviews")
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestUpdateReview:
    """Tests for PUT /api/v1/reviews/{review_id}."""

    def test_author_updates_rating(self, client, sample_review, auth_headers):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 2},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["review"]["rating"] == 2
        assert data["review"]["content"] == "I really enjoyed reading this book."
        assert data["rating"]["average_rating"] == 2.0

    def test_invalid_rating_rejected(self, client, sample_review, auth_headers):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 9},
            headers=auth_headers,
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_other_member_forbidden(self, client, sample_review, second_user_headers):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"content": "Edited by someone else"},
            headers=second_user_headers,
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_requires_auth(self, client, sample_review):
        response = client.put(f"/api/v1/reviews/{sample_review.id}", json={"rating": 1})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_missing_review(self, client, auth_headers):
        response = client.put("/api/v1/reviews/99999", json={"rating": 1}, headers=auth_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDeleteReview:
    """Tests for DELETE /api/v1/reviews/{review_id}."""

    def test_author_deletes(self, client, sample_review, auth_headers):
        response = client.delete(f"/api/v1/reviews/{sample_review.id}", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["review"] is None
        assert data["rating"]["total_reviews"] == 0

    def test_superuser_deletes_anonymous_review(
        self, client, anonymous_review, superuser_headers
    ):
        response = client.delete(
            f"/api/v1/reviews/{anonymous_review.id}", headers=superuser_headers
        )
        assert response.status_code == status.HTTP_200_OK

    def test_member_cannot_delete_anonymous_review(
        self, client, anonymous_review, auth_headers
    ):
        response = client.delete(
            f"/api/v1/reviews/{anonymous_review.id}", headers=auth_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestHelpfulMarks:
    """Tests for POST/DELETE /api/v1/reviews/{review_id}/helpful."""

    def test_mark_helpful(self, client, sample_review):
        response = client.post(f"/api/v1/reviews/{sample_review.id}/helpful")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "review_id": sample_review.id,
            "marked": True,
            "helpful_count": 1,
        }

    def test_mark_twice_rejected(self, client, sample_review):
        client.post(f"/api/v1/reviews/{sample_review.id}/helpful")

        response = client.post(f"/api/v1/reviews/{sample_review.id}/helpful")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unmark(self, client, db_session, sample_review):
        client.post(f"/api/v1/reviews/{sample_review.id}/helpful")

        response = client.delete(f"/api/v1/reviews/{sample_review.id}/helpful")

        assert response.json()["marked"] is False
        assert response.json()["helpful_count"] == 0
        assert db_session.query(ReviewHelpful).count() == 0

    def test_unmark_without_mark(self, client, sample_review):
        response = client.delete(f"/api/v1/reviews/{sample_review.id}/helpful")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_helpful_count_in_listing(self, client, sample_book, sample_review, auth_headers):
        client.post(f"/api/v1/reviews/{sample_review.id}/helpful")
        client.post(f"/api/v1/reviews/{sample_review.id}/helpful", headers=auth_headers)

        response = client.get(f"/api/v1/books/{sample_book.id}/reviews")

        assert response.json()["items"][0]["helpful_count"] == 2

    def test_missing_review(self, client):
        response = client.post("/api/v1/reviews/99999/helpful")
        assert response.status_code == status.HTTP_404_NOT_FOUND
