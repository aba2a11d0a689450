"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

WHY Separate Schemas from SQLAlchemy Models?
============================================
1. Security: Control exactly what data is exposed in API responses
2. Validation: Different rules for create vs update vs response
3. Derived data: Tallies, ratings and counts exist only in responses
4. Documentation: Schemas generate OpenAPI documentation

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (usually all optional)
- XxxResponse: Fields returned in API responses
"""

from booknest.schemas.book import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    BookUpdate,
    GenreListResponse,
    SubmitterResponse,
    VoteTallyResponse,
)
from booknest.schemas.comment import (
    CommentCountResponse,
    CommentCreate,
    CommentResponse,
    CommentTreeResponse,
    CommentWriteResponse,
    LikeResponse,
)
from booknest.schemas.review import (
    BookRatingStats,
    HelpfulResponse,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
    ReviewWriteResponse,
)
from booknest.schemas.user import (
    RefreshTokenRequest,
    TokenResponse,
    UserProfileResponse,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)
from booknest.schemas.vote import VoteRequest, VoteResponse

__all__ = [
    # Book
    "BookCreate",
    "BookDetailResponse",
    "BookListResponse",
    "BookResponse",
    "BookUpdate",
    "GenreListResponse",
    "SubmitterResponse",
    "VoteTallyResponse",
    # Comment
    "CommentCountResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentTreeResponse",
    "CommentWriteResponse",
    "LikeResponse",
    # Review
    "BookRatingStats",
    "HelpfulResponse",
    "ReviewCreate",
    "ReviewListResponse",
    "ReviewResponse",
    "ReviewUpdate",
    "ReviewWriteResponse",
    # User
    "RefreshTokenRequest",
    "TokenResponse",
    "UserProfileResponse",
    "UserPublicResponse",
    "UserResponse",
    "UserUpdate",
    # Vote
    "VoteRequest",
    "VoteResponse",
]
