"""
Book Model

The central model of BookNest: a link to a book shared by a member or an
anonymous visitor.

Votes, comments and reviews hang off a book and are deleted with it.
Derived numbers (vote tally, rating summary, comment count) are NOT stored
on the book; they are computed from those rows on every read.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booknest.database import Base

if TYPE_CHECKING:
    from booknest.models.comment import Comment
    from booknest.models.review import Review
    from booknest.models.user import User
    from booknest.models.vote import Vote


# Fixed list of genres a book can be filed under.
GENRES: tuple[str, ...] = (
    "Fiction",
    "Non-Fiction",
    "Science",
    "Technology",
    "Programming",
    "Business",
    "Self-Help",
    "Biography",
    "History",
    "Philosophy",
    "Art",
    "Design",
    "Health",
    "Education",
    "Reference",
    "Other",
)


class Book(Base):
    """
    Book model representing shared book links.

    Table: books

    Fields:
    - name: Book title (required)
    - url: Where the book can be read or downloaded (required)
    - poster_url: Cover image
    - summary: Short description
    - genre: One of GENRES
    - user_id: Submitter (null for anonymous submissions)

    Relationships:
    - submitter: Many-to-One with User
    - votes / comments / reviews: One-to-Many, cascade on delete

    Example:
        book = Book(
            name="Dune",
            url="https://example.com/dune.pdf",
            genre="Fiction",
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    url: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Link to the book"
    )

    poster_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Cover image URL"
    )

    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book summary"
    )

    genre: Mapped[str] = mapped_column(
        String(50),
        index=True,
        nullable=False,
        comment="Genre (one of the fixed genre list)"
    )

    # Nullable: anonymous visitors can share books too
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    submitter: Mapped[Optional["User"]] = relationship(
        "User",
        back_populates="books",
    )

    votes: Mapped[list["Vote"]] = relationship(
        "Vote",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    comments: Mapped[list["Comment"]] = relationship(
        "Comment",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, name='{self.name}', genre='{self.genre}')"
