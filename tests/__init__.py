"""
Test Suite for BookNest

Test Organization:
- conftest.py: Shared fixtures (test database, client, members, books)
- test_books.py, test_votes.py, test_comments.py, test_comment_likes.py,
  test_reviews.py, test_users.py, test_genres.py: API endpoints
- test_auth.py, test_auth_social.py: JWT sessions and OAuth sign-in
- test_identity.py, test_ratings.py, test_comment_tree.py: Service units
- test_concurrency.py: Write races and error mapping

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=booknest --cov-report=html

    # Run specific file
    pytest tests/test_votes.py

    # Run with verbose output
    pytest -v
"""
