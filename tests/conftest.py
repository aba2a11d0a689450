"""
pytest Fixtures for BookNest Tests

This file contains shared fixtures used across all test files.

FIXTURE SCOPES:
- session scope for the engine (expensive to create)
- function scope for sessions (isolation between tests)

Every test runs inside a transaction that is rolled back afterwards, so
tests never see each other's books, votes or comments.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting, points the app at SQLite and configures
# fake OAuth credentials so the callback endpoints are reachable.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["GOOGLE_CLIENT_ID"] = "test-google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-google-client-secret"
os.environ["GITHUB_CLIENT_ID"] = "test-github-client-id"
os.environ["GITHUB_CLIENT_SECRET"] = "test-github-client-secret"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from booknest.database import Base, get_db
from booknest.main import app
from booknest.models import Book, Comment, Review, User
from booknest.services.identity import hash_identity
from booknest.services.security import create_access_token

# Address the TestClient requests are attributed to when no proxy header
# is sent. Anonymous identities in fixtures use the same placeholder.
ANONYMOUS_ADDRESS = "127.0.0.1"

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the suite fast and self-contained.
# IMPORTANT: SQLite ignores SELECT ... FOR UPDATE; race handling is covered
# through the unique constraints in test_concurrency.py.


@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, SQLite in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session is wrapped in a transaction that's rolled back,
    ensuring test isolation without needing to recreate tables.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    We override the get_db dependency to use our test session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# USER FIXTURES
# =============================================================================


def _make_user(db_session: Session, **fields) -> User:
    user = User(is_active=True, auth_provider="github", **fields)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def sample_user(db_session: Session) -> User:
    return _make_user(
        db_session,
        email="testuser@example.com",
        username="testuser",
        full_name="Test User",
        provider_user_id="gh-1001",
    )


@pytest.fixture
def second_user(db_session: Session) -> User:
    """A second member for ownership scenarios."""
    return _make_user(
        db_session,
        email="seconduser@example.com",
        username="seconduser",
        provider_user_id="gh-1002",
    )


@pytest.fixture
def superuser(db_session: Session) -> User:
    return _make_user(
        db_session,
        email="admin@example.com",
        username="admin",
        full_name="Admin User",
        provider_user_id="gh-1003",
        is_superuser=True,
    )


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    return auth_headers_for(sample_user)


@pytest.fixture
def second_user_headers(second_user: User) -> dict[str, str]:
    return auth_headers_for(second_user)


@pytest.fixture
def superuser_headers(superuser: User) -> dict[str, str]:
    return auth_headers_for(superuser)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_book(db_session: Session, sample_user: User) -> Book:
    """A book shared by sample_user."""
    book = Book(
        name="Dune",
        url="https://example.com/dune.pdf",
        summary="Spice, sand and politics on Arrakis.",
        genre="Fiction",
        user_id=sample_user.id,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def anonymous_book(db_session: Session) -> Book:
    """A book shared without signing in."""
    book = Book(
        name="Structure and Interpretation of Computer Programs",
        url="https://example.com/sicp.pdf",
        genre="Programming",
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Fifteen anonymous books for pagination and filtering."""
    books = []
    for i in range(15):
        book = Book(
            name=f"Test Book {i + 1}",
            url=f"https://example.com/book-{i + 1}.pdf",
            summary=f"Summary for book {i + 1}",
            genre="Science" if i % 3 == 0 else "History",
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books


@pytest.fixture
def sample_comment(db_session: Session, sample_book: Book, sample_user: User) -> Comment:
    comment = Comment(
        book_id=sample_book.id,
        author_identity=f"user:{sample_user.id}",
        user_id=sample_user.id,
        author_name=sample_user.display_name,
        content="What a world.",
    )
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)
    return comment


@pytest.fixture
def sample_review(db_session: Session, sample_book: Book, sample_user: User) -> Review:
    review = Review(
        book_id=sample_book.id,
        identity=f"user:{sample_user.id}",
        user_id=sample_user.id,
        author_name=sample_user.display_name,
        rating=4,
        title="Great book!",
        content="I really enjoyed reading this book.",
    )
    db_session.add(review)
    db_session.commit()
    db_session.refresh(review)
    return review


@pytest.fixture
def anonymous_review(db_session: Session, sample_book: Book) -> Review:
    """A review left by the TestClient's own (anonymous) address."""
    review = Review(
        book_id=sample_book.id,
        identity=hash_identity(ANONYMOUS_ADDRESS, sample_book.id),
        author_name="Anonymous",
        rating=2,
        content="Not for me.",
    )
    db_session.add(review)
    db_session.commit()
    db_session.refresh(review)
    return review
