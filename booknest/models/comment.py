"""
Comment Models

Comments on a book, optionally replying to another comment, and the likes
they receive.

parent_comment_id is a plain indexed integer with no foreign key. It is a
lookup hint for the tree builder, not an ownership edge: deleting a comment
never takes its replies with it. Replies whose parent is gone are shown as
top-level comments.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booknest.database import Base


class Comment(Base):
    """
    Comment model.

    Attributes:
        id: Primary key
        book_id: Book being discussed (replies carry it too)
        parent_comment_id: Comment this one replies to, if any
        author_identity: Account token or anonymous address hash
        user_id: Author account when signed in
        author_name: Display name at the time of posting
        content: Comment text
        created_at: Ordering key for threads
    """

    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_comment_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        index=True,
        comment="Weak reference to the parent comment",
    )

    author_identity: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    author_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    book = relationship("Book", back_populates="comments")
    likes: Mapped[list["CommentLike"]] = relationship(
        "CommentLike",
        back_populates="comment",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<Comment(id={self.id}, book_id={self.book_id}, "
            f"parent_comment_id={self.parent_comment_id})>"
        )


class CommentLike(Base):
    """One like on a comment by one identity."""

    __tablename__ = "comment_likes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("comments.id", ondelete="CASCADE"),
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

    comment = relationship("Comment", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("comment_id", "identity", name="uq_comment_like_identity"),
    )

    def __repr__(self) -> str:
        return f"<CommentLike(id={self.id}, comment_id={self.comment_id})>"
