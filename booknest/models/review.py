"""
Review Model

Represents a star review of a book, plus the "helpful" marks other readers
leave on it.

Business Rules:
- One review per identity per book (unique constraint)
- Rating must be 1-5
- Only signed-in authors can edit their review; superusers can delete any
- helpful_count is derived from ReviewHelpful rows, never stored
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booknest.database import Base


class Review(Base):
    """
    Review model for book reviews.

    Attributes:
        id: Primary key
        book_id: Foreign key to books table
        identity: Account token or anonymous address hash
        user_id: Author account when signed in
        author_name: Display name at the time of posting
        rating: 1-5 star rating
        title: Optional review title
        content: Review text content
        created_at: When the review was created
        updated_at: When the review was last updated
    """

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identity: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        comment="Account token or anonymous address hash",
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)

    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )
    title: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
        comment="Optional review title",
    )
    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Review text content",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    book = relationship("Book", back_populates="reviews")
    helpful_marks: Mapped[list["ReviewHelpful"]] = relationship(
        "ReviewHelpful",
        back_populates="review",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("book_id", "identity", name="uq_review_book_identity"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, book_id={self.book_id}, rating={self.rating})>"


class ReviewHelpful(Base):
    """One "this review was helpful" mark by one identity."""

    __tablename__ = "review_helpful"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identity: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    review = relationship("Review", back_populates="helpful_marks")

    __table_args__ = (
        UniqueConstraint("review_id", "identity", name="uq_review_helpful_identity"),
    )
