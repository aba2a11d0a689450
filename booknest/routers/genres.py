"""
Genres Router

The genre list is fixed (see booknest.models.book.GENRES); books are
filtered by genre through GET /books/?genre=...
"""

from fastapi import APIRouter, Request

from booknest.config import get_settings
from booknest.models import GENRES
from booknest.schemas import GenreListResponse
from booknest.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/genres",
    tags=["Genres"],
)


@router.get(
    "/",
    response_model=GenreListResponse,
    summary="List all genres",
    description="Genres a book can be filed under.",
)
@limiter.limit(settings.rate_limit_default)
def list_genres(request: Request) -> GenreListResponse:
    return GenreListResponse(genres=list(GENRES))
