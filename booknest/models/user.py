"""
User Model

Represents a member who signed in through an OAuth provider.

A user is the "session account" behind authenticated actions: votes,
likes, comments and reviews made while signed in carry the user's id as
their identity instead of an anonymous hash.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from booknest.database import Base

if TYPE_CHECKING:
    from booknest.models.book import Book


class AuthProvider(str, Enum):
    """
    Authentication providers supported by the system.

    - GOOGLE: Google OAuth
    - GITHUB: GitHub OAuth
    """
    GOOGLE = "google"
    GITHUB = "github"


class User(Base):
    """
    User model representing members of the community.

    Table: users

    Relationships:
    - books: One-to-Many with Book (books this user submitted)

    Indexes:
    - email: Unique index for account linking
    - username: Unique index for profile URLs
    - provider_user_id: For OAuth account lookups

    Example:
        user = User(
            email="jane@gmail.com",
            username="janedoe",
            auth_provider=AuthProvider.GOOGLE,
            provider_user_id="google-123456",
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Identity Fields
    # -------------------------------------------------------------------------
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address (from the OAuth provider)"
    )

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique username for profile URLs"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    full_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="User's full display name"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL to user's avatar image"
    )

    bio: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="User biography"
    )

    # -------------------------------------------------------------------------
    # Account Status
    # -------------------------------------------------------------------------
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the account is active"
    )

    is_superuser: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Whether user can moderate any content"
    )

    # -------------------------------------------------------------------------
    # OAuth Fields
    # -------------------------------------------------------------------------
    auth_provider: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Authentication provider (google, github)"
    )

    provider_user_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="User ID from OAuth provider"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user first signed in"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the user last logged in"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="submitter",
    )

    @property
    def display_name(self) -> str:
        """Name shown next to comments and reviews."""
        return self.full_name or self.username

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}', username='{self.username}')"
