#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample data for development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

This script:
1. Connects to the database using app settings
2. Clears existing data (optional)
3. Creates a few members, shared books, votes, comments and reviews
"""

import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from booknest.database import SessionLocal, create_tables
from booknest.models import (
    AuthProvider,
    Book,
    Comment,
    CommentLike,
    Review,
    ReviewHelpful,
    User,
    Vote,
    VoteType,
)
from booknest.services.identity import account_identity, hash_identity


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    for model in (ReviewHelpful, Review, CommentLike, Comment, Vote, Book, User):
        db.execute(delete(model))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> dict[str, User]:
    """Create sample members as if they had signed in through OAuth."""
    print("Creating users...")
    users_data = [
        {
            "email": "ada@example.com",
            "username": "ada",
            "full_name": "Ada Lovelace",
            "auth_provider": AuthProvider.GITHUB.value,
            "provider_user_id": "1815",
            "is_superuser": True,
        },
        {
            "email": "alan@example.com",
            "username": "alan",
            "full_name": "Alan Turing",
            "auth_provider": AuthProvider.GOOGLE.value,
            "provider_user_id": "google-1912",
        },
        {
            "email": "grace@example.com",
            "username": "grace",
            "auth_provider": AuthProvider.GITHUB.value,
            "provider_user_id": "1906",
        },
    ]

    users = {}
    for data in users_data:
        user = User(is_active=True, **data)
        db.add(user)
        users[data["username"]] = user

    db.commit()
    for user in users.values():
        db.refresh(user)

    print(f"Created {len(users)} users.")
    return users


def create_books(db: Session, users: dict[str, User]) -> list[Book]:
    """Create sample books; one of them shared anonymously."""
    print("Creating books...")

    books_data = [
        {
            "name": "Structure and Interpretation of Computer Programs",
            "url": "https://mitpress.mit.edu/sites/default/files/sicp/index.html",
            "summary": "Abstraction, recursion and interpreters, in Scheme.",
            "genre": "Programming",
            "submitter": "ada",
        },
        {
            "name": "Pride and Prejudice",
            "url": "https://www.gutenberg.org/ebooks/1342",
            "summary": "Elizabeth Bennet and Mr. Darcy.",
            "genre": "Fiction",
            "submitter": "alan",
        },
        {
            "name": "On Computable Numbers",
            "url": "https://www.cs.virginia.edu/~robins/Turing_Paper_1936.pdf",
            "summary": "The paper that introduced the Turing machine.",
            "genre": "Science",
            "submitter": "alan",
        },
        {
            "name": "Meditations",
            "url": "https://www.gutenberg.org/ebooks/2680",
            "summary": "Notes to himself by a Roman emperor.",
            "genre": "Philosophy",
            "submitter": None,
        },
    ]

    books = []
    for data in books_data:
        submitter = data.pop("submitter")
        book = Book(**data, user_id=users[submitter].id if submitter else None)
        db.add(book)
        books.append(book)

    db.commit()
    for book in books:
        db.refresh(book)

    print(f"Created {len(books)} books.")
    return books


def create_activity(db: Session, users: dict[str, User], books: list[Book]) -> None:
    """Votes, a comment thread, likes, reviews and helpful marks."""
    print("Creating votes, comments and reviews...")
    sicp, pride, computable, meditations = books

    for user in users.values():
        identity = account_identity(user)
        db.add(Vote(book_id=sicp.id, identity=identity.value, user_id=user.id,
                    vote_type=VoteType.UPVOTE.value))
    db.add(Vote(book_id=pride.id, identity=hash_identity("203.0.113.10", pride.id),
                vote_type=VoteType.DOWNVOTE.value))
    db.add(Vote(book_id=meditations.id, identity=hash_identity("203.0.113.11", meditations.id),
                vote_type=VoteType.UPVOTE.value))

    ada, alan = users["ada"], users["alan"]
    question = Comment(book_id=sicp.id, author_identity=account_identity(alan).value,
                       user_id=alan.id, author_name=alan.display_name,
                       content="Is the JavaScript edition worth reading?")
    db.add(question)
    db.commit()
    db.refresh(question)

    answer = Comment(book_id=sicp.id, parent_comment_id=question.id,
                     author_identity=account_identity(ada).value, user_id=ada.id,
                     author_name=ada.display_name,
                     content="Yes, the exercises carry over well.")
    db.add(answer)
    db.add(Comment(book_id=computable.id, author_identity=hash_identity("203.0.113.12", computable.id),
                   author_name="Anonymous", content="Still readable after all these years."))
    db.commit()
    db.refresh(answer)

    db.add(CommentLike(comment_id=answer.id, identity=account_identity(alan).value,
                       user_id=alan.id))

    review = Review(book_id=pride.id, identity=account_identity(ada).value, user_id=ada.id,
                    author_name=ada.display_name, rating=5, title="Witty",
                    content="Every sentence earns its place.")
    db.add(review)
    db.add(Review(book_id=pride.id, identity=hash_identity("203.0.113.10", pride.id),
                  author_name="Anonymous", rating=3, content="Slow start."))
    db.commit()
    db.refresh(review)

    db.add(ReviewHelpful(review_id=review.id, identity=account_identity(alan).value,
                         user_id=alan.id))
    db.commit()


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        books = create_books(db, users)
        create_activity(db, users, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)}")
        print(f"  - Books: {len(books)}")
        print("\nYou can now access the API at http://localhost:8001")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
