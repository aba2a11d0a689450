"""
Book Pydantic Schemas

Schemas:
- BookCreate / BookUpdate: Submitting and editing a shared book link
- VoteTallyResponse: Derived upvote/downvote counts
- BookResponse: Book with vote tally and comment count (list view)
- BookDetailResponse: BookResponse plus the rating summary
- BookListResponse: Paginated list
- GenreListResponse: The fixed genre list

Tallies, ratings and comment counts are never stored on the book row;
routers fill them in from the aggregation services on every read.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from booknest.models.book import GENRES
from booknest.schemas.review import BookRatingStats


def _check_http_url(v: str) -> str:
    v = v.strip()
    if not v.lower().startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v


def _check_genre(v: str) -> str:
    for genre in GENRES:
        if genre.lower() == v.strip().lower():
            return genre
    raise ValueError(f"Genre must be one of: {', '.join(GENRES)}")


class BookBase(BaseModel):
    """
    Shared book fields.

    Contains validation for:
    - name (non-blank)
    - url and poster_url (http/https only)
    - genre (one of the fixed genres, case-insensitive)
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["Dune", "Structure and Interpretation of Computer Programs"],
    )

    url: str = Field(
        ...,
        max_length=2000,
        description="Where the book can be read or downloaded",
        examples=["https://example.com/dune.pdf"],
    )

    poster_url: str | None = Field(
        default=None,
        max_length=2000,
        description="Cover image URL",
    )

    summary: str | None = Field(
        default=None,
        max_length=5000,
        description="Short description",
    )

    genre: str = Field(
        ...,
        description="One of the fixed genres",
        examples=["Fiction"],
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_http_url(v)

    @field_validator("poster_url")
    @classmethod
    def validate_poster_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return _check_http_url(v)

    @field_validator("genre")
    @classmethod
    def validate_genre(cls, v: str) -> str:
        return _check_genre(v)


class BookCreate(BookBase):
    """
    Schema for submitting a book.

    Example request body:
    {
        "name": "Dune",
        "url": "https://example.com/dune.pdf",
        "genre": "Fiction",
        "summary": "Spice, sand and politics."
    }
    """

    pass


class BookUpdate(BaseModel):
    """All fields optional for partial updates."""

    name: str | None = Field(default=None, min_length=1, max_length=500)
    url: str | None = Field(default=None, max_length=2000)
    poster_url: str | None = Field(default=None, max_length=2000)
    summary: str | None = Field(default=None, max_length=5000)
    genre: str | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip() if v else v

    @field_validator("url", "poster_url")
    @classmethod
    def validate_urls(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_http_url(v)

    @field_validator("genre")
    @classmethod
    def validate_genre(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_genre(v)


# =============================================================================
# Response Schemas
# =============================================================================


class VoteTallyResponse(BaseModel):
    """Derived vote counts; score = upvotes - downvotes."""

    upvotes: int = Field(default=0, ge=0)
    downvotes: int = Field(default=0, ge=0)
    score: int = Field(default=0)

    model_config = ConfigDict(from_attributes=True)


class SubmitterResponse(BaseModel):
    id: int
    username: str
    full_name: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BookBase):
    """
    Book with its derived numbers.

    Response fields are not re-validated against the genre list so that a
    genre retired later still renders.
    """

    id: int = Field(..., description="Unique identifier")
    genre: str = Field(..., description="Genre")
    user_id: int | None = Field(default=None, description="Submitter (null when anonymous)")
    submitter: SubmitterResponse | None = Field(default=None)
    created_at: datetime = Field(..., description="When the book was shared")
    updated_at: datetime = Field(..., description="When the book was last edited")

    tally: VoteTallyResponse = Field(default_factory=VoteTallyResponse)
    comment_count: int = Field(default=0, ge=0, description="Comments including replies")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "name": "Dune",
                "url": "https://example.com/dune.pdf",
                "poster_url": None,
                "summary": "Spice, sand and politics.",
                "genre": "Fiction",
                "user_id": 3,
                "submitter": {"id": 3, "username": "paul", "full_name": None, "avatar_url": None},
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "tally": {"upvotes": 12, "downvotes": 2, "score": 10},
                "comment_count": 4,
            }
        },
    )

    @field_validator("genre")
    @classmethod
    def validate_genre(cls, v: str) -> str:
        return v


class BookDetailResponse(BookResponse):
    rating: BookRatingStats = Field(..., description="Rating summary from reviews")


class BookListResponse(BaseModel):
    """
    Paginated book list.

    - total: Books matching the filters
    - page / per_page / pages: Pagination metadata
    """

    items: list[BookResponse] = Field(..., description="Books for this page")
    total: int = Field(..., ge=0, description="Total number of books")
    page: int = Field(..., ge=1, description="Current page number")
    per_page: int = Field(..., ge=1, le=100, description="Number of items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 100,
                "page": 1,
                "per_page": 10,
                "pages": 10,
            }
        },
    )


class GenreListResponse(BaseModel):
    genres: list[str] = Field(..., description="Genres a book can be filed under")
