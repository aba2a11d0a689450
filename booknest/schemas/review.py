"""
Review Pydantic Schemas

Schemas for star reviews and their rating summary.

Schemas:
- ReviewCreate: Post a review
- ReviewUpdate: Edit an existing review
- ReviewResponse: Review with its helpful-mark count
- BookRatingStats: Derived average, total and star buckets
- ReviewListResponse: Paginated reviews plus the book's rating summary
- ReviewWriteResponse: Result of a review write (review + fresh summary)
- HelpfulResponse: Result of adding/removing a helpful mark

Business Rules:
- Rating must be 1-5 and content is required; both are checked by the
  reviews service so a violation is a 400, not a schema error
- One review per identity per book (enforced at database level)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReviewCreate(BaseModel):
    """
    Example request body:
    {
        "rating": 5,
        "title": "Amazing book!",
        "content": "One of the best books I've ever read..."
    }
    """

    rating: int = Field(..., description="Rating from 1 to 5 stars", examples=[4, 5])

    title: str | None = Field(
        default=None,
        max_length=200,
        description="Optional review title/headline",
        examples=["A masterpiece!", "Disappointing read"],
    )

    content: str = Field(
        ...,
        max_length=5000,
        description="Review text content",
        examples=["This book changed my perspective on..."],
    )

    author_name: str | None = Field(
        default=None,
        max_length=100,
        description="Name shown on an anonymous review (ignored for members)",
        examples=["Book Lover"],
    )

    @field_validator("title")
    @classmethod
    def blank_title_means_none(cls, v: str | None) -> str | None:
        """Whitespace-only titles are dropped."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ReviewUpdate(BaseModel):
    """All fields optional for partial updates."""

    rating: int | None = Field(default=None, description="Rating from 1 to 5 stars")
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=5000)

    @field_validator("title")
    @classmethod
    def blank_title_means_none(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ReviewResponse(BaseModel):
    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int | None = Field(default=None, description="Author account (null when anonymous)")
    author_name: str = Field(..., description="Author display name")
    rating: int = Field(..., ge=1, le=5)
    title: str | None = Field(default=None)
    content: str = Field(...)
    helpful_count: int = Field(default=0, ge=0, description="Number of helpful marks")
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "author_name": "Jane Doe",
                "rating": 5,
                "title": "A must-read classic!",
                "content": "This book completely changed my perspective on...",
                "helpful_count": 12,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


# =============================================================================
# Aggregation Schemas
# =============================================================================


class BookRatingStats(BaseModel):
    """
    Aggregated rating statistics for a book.

    Recomputed from the review rows on every request.
    """

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)"
    )
    total_reviews: int = Field(
        ...,
        ge=0,
        description="Total number of reviews"
    )
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "book_id": 42,
                "average_rating": 4.2,
                "total_reviews": 125,
                "rating_distribution": {
                    "1": 5,
                    "2": 10,
                    "3": 20,
                    "4": 40,
                    "5": 50
                }
            }
        },
    )


class ReviewListResponse(BaseModel):
    """Paginated reviews (newest first) with the book's rating summary."""

    items: list[ReviewResponse] = Field(..., description="Reviews for this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
    rating: BookRatingStats = Field(..., description="Rating summary")


class ReviewWriteResponse(BaseModel):
    """Review after the write (null after deletion) and the fresh summary."""

    review: ReviewResponse | None = Field(default=None)
    rating: BookRatingStats


class HelpfulResponse(BaseModel):
    review_id: int
    marked: bool = Field(..., description="Whether the caller's mark is present now")
    helpful_count: int = Field(..., ge=0)

    model_config = ConfigDict(from_attributes=True)
