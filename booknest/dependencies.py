"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- Database sessions (per-request)
- Pagination and book listing parameters
- JWT authentication (required or optional)
- Target lookups that turn a missing id into a 404
"""

from enum import Enum
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, HTTPException, Path, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from booknest.config import get_settings
from booknest.database import get_db

if TYPE_CHECKING:
    from booknest.models.book import Book
    from booknest.models.user import User

settings = get_settings()

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def list_books(db: Session = Depends(get_db)):
#
# You can write:
#   def list_books(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Pagination Parameters
# =============================================================================
class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    - page: Which page to return (1-indexed)
    - per_page: How many items per page
    - skip: Calculated offset for database query
    """

    def __init__(
        self,
        page: int = Query(
            default=1,
            ge=1,
            description="Page number (1-indexed)",
            examples=[1, 2, 3],
        ),
        per_page: int = Query(
            default=10,
            ge=1,
            le=100,
            description="Number of items per page (max 100)",
            examples=[10, 25, 50],
        ),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        """
        Number of records to skip.

        Page 1 → skip 0 items
        Page 2 → skip per_page items
        """
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Book Listing Filters
# =============================================================================
class BookSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_VOTED = "most_voted"
    ALPHABETICAL = "alphabetical"


class BookSearchParams:
    """
    Filter and ordering parameters for the book list.

    Usage:
        GET /api/v1/books/?genre=Fiction&search=dune&sort_by=most_voted
    """

    def __init__(
        self,
        genre: str | None = Query(
            default=None,
            description="Only books of this genre",
            examples=["Fiction", "Programming"],
        ),
        search: str | None = Query(
            default=None,
            min_length=1,
            max_length=100,
            description="Case-insensitive match on name or summary",
            examples=["dune"],
        ),
        sort_by: BookSort = Query(
            default=BookSort.NEWEST,
            description="newest, oldest, most_voted or alphabetical",
        ),
    ) -> None:
        self.genre = genre
        self.search = search
        self.sort_by = sort_by


BookFilters = Annotated[BookSearchParams, Depends()]


# =============================================================================
# JWT Authentication
# =============================================================================
# HTTPBearer extracts "Authorization: Bearer <token>" and adds the
# "Authorize" button to Swagger UI. auto_error is off so a missing header
# can fall through to anonymous access where that is allowed.

bearer_scheme = HTTPBearer(auto_error=False)


def _user_from_token(db: Session, token: str) -> "User | None":
    from booknest.models.user import User
    from booknest.services.security import ACCESS_TOKEN, verify_token_type

    payload = verify_token_type(token, ACCESS_TOKEN)
    if payload is None:
        return None

    user_id = payload.get("sub")
    if user_id is None or not str(user_id).isdigit():
        return None

    return db.execute(select(User).where(User.id == int(user_id))).scalar_one_or_none()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Resolve the member behind the access token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired, or
            the member no longer exists
    """
    user = _user_from_token(db, credentials.credentials) if credentials else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_active_user(
    current_user=Depends(get_current_user),
):
    """
    Verify the current user is active.

    Raises:
        HTTPException: 403 if user is inactive
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return current_user


def get_optional_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
):
    """
    Current member if a valid token was sent, None otherwise.

    Community endpoints (vote, like, comment, review) accept anonymous
    visitors; an invalid token or an inactive account simply means the
    request is treated as anonymous.
    """
    if not credentials:
        return None

    user = _user_from_token(db, credentials.credentials)
    if user is None or not user.is_active:
        return None
    return user


ActiveUser = Annotated["User", Depends(get_current_active_user)]
OptionalUser = Annotated["User | None", Depends(get_optional_current_user)]


# =============================================================================
# Target Lookups
# =============================================================================
def get_book_or_404(
    db: DbSession,
    book_id: int = Path(..., ge=1, description="Book ID"),
) -> "Book":
    """Load a book by path id or fail with 404."""
    from booknest.models.book import Book

    book = db.get(Book, book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with id {book_id} not found",
        )
    return book


BookOr404 = Annotated["Book", Depends(get_book_or_404)]


def display_name_for(user: "User | None", requested: str | None = None) -> str:
    """
    Author name recorded on comments and reviews.

    Members always post under their own display name; anonymous visitors
    may pick one, otherwise the configured anonymous name is used.
    """
    if user is not None:
        return user.display_name
    if requested and requested.strip():
        return requested.strip()
    return settings.anonymous_display_name
