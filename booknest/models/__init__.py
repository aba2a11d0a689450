"""
SQLAlchemy Models Package

This package contains all database models for BookNest.

Model Relationships:
- User -> Book: One-to-Many (submitter, nullable for anonymous submissions)
- Book -> Vote / Comment / Review: One-to-Many, deleted with the book
- Comment -> CommentLike: One-to-Many, deleted with the comment
- Comment -> Comment: weak parent reference (no cascade)
- Review -> ReviewHelpful: One-to-Many, deleted with the review

Import all models here to:
1. Make them available as: from booknest.models import Book, Vote
2. Ensure Alembic discovers them for migrations
"""

from booknest.models.user import AuthProvider, User
from booknest.models.book import GENRES, Book
from booknest.models.vote import Vote, VoteType
from booknest.models.comment import Comment, CommentLike
from booknest.models.review import Review, ReviewHelpful

__all__ = [
    "AuthProvider",
    "User",
    "GENRES",
    "Book",
    "Vote",
    "VoteType",
    "Comment",
    "CommentLike",
    "Review",
    "ReviewHelpful",
]
