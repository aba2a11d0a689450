"""
Vote Model

One upvote or downvote on a book by one identity.

The identity column holds either "user:<id>" for signed-in members or the
SHA-256 fingerprint of the visitor's address and the book id. The unique
constraint on (book_id, identity) is what keeps a racing double-submit from
ever producing two rows.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booknest.database import Base


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Vote(Base):
    """
    Vote model.

    Attributes:
        id: Primary key
        book_id: Voted book
        identity: Dedup key (account token or anonymous hash)
        user_id: Voter account when signed in, else null
        vote_type: "upvote" or "downvote"
    """

    __tablename__ = "votes"

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
    vote_type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="upvote or downvote",
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

    book = relationship("Book", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("book_id", "identity", name="uq_vote_book_identity"),
        CheckConstraint(
            "vote_type IN ('upvote', 'downvote')",
            name="ck_vote_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<Vote(id={self.id}, book_id={self.book_id}, vote_type={self.vote_type})>"
