"""
Tests for Comment Likes API Endpoints

Covers the like toggle on /api/v1/comments/{id}/likes.
"""

from fastapi import status

from booknest.models import CommentLike


class TestToggleLike:
    """Tests for POST /api/v1/comments/{comment_id}/likes."""

    def test_first_post_likes(self, client, sample_comment):
        response = client.post(f"/api/v1/comments/{sample_comment.id}/likes")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "comment_id": sample_comment.id,
            "liked": True,
            "like_count": 1,
        }

    def test_second_post_unlikes(self, client, db_session, sample_comment):
        client.post(f"/api/v1/comments/{sample_comment.id}/likes")

        response = client.post(f"/api/v1/comments/{sample_comment.id}/likes")

        data = response.json()
        assert data["liked"] is False
        assert data["like_count"] == 0
        assert db_session.query(CommentLike).count() == 0

    def test_likes_from_different_identities_add_up(
        self, client, sample_comment, auth_headers
    ):
        client.post(f"/api/v1/comments/{sample_comment.id}/likes")
        client.post(
            f"/api/v1/comments/{sample_comment.id}/likes",
            headers={"X-Forwarded-For": "203.0.113.20"},
        )

        response = client.post(
            f"/api/v1/comments/{sample_comment.id}/likes", headers=auth_headers
        )

        assert response.json()["like_count"] == 3

    def test_missing_comment(self, client):
        response = client.post("/api/v1/comments/99999/likes")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Comment with id 99999 not found"


class TestGetLikes:
    """Tests for GET /api/v1/comments/{comment_id}/likes."""

    def test_not_liked(self, client, sample_comment):
        response = client.get(f"/api/v1/comments/{sample_comment.id}/likes")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["liked"] is False
        assert response.json()["like_count"] == 0

    def test_liked_by_member(self, client, sample_comment, auth_headers):
        client.post(f"/api/v1/comments/{sample_comment.id}/likes", headers=auth_headers)

        member = client.get(
            f"/api/v1/comments/{sample_comment.id}/likes", headers=auth_headers
        )
        anonymous = client.get(f"/api/v1/comments/{sample_comment.id}/likes")

        assert member.json()["liked"] is True
        assert anonymous.json()["liked"] is False
        assert anonymous.json()["like_count"] == 1

    def test_missing_comment(self, client):
        response = client.get("/api/v1/comments/99999/likes")
        assert response.status_code == status.HTTP_404_NOT_FOUND
