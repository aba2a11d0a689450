"""
User Pydantic Schemas

Members only exist through OAuth sign-in, so there are no create or
password schemas: the provider profile is the source of the account.

Schemas:
- UserResponse: The signed-in member's own account (includes email)
- UserPublicResponse: What other visitors see next to books and reviews
- UserUpdate: Profile fields a member may edit
- UserProfileResponse: Public profile with submitted books
- TokenResponse / RefreshTokenRequest: JWT session exchange
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from booknest.schemas.book import BookResponse


class UserResponse(BaseModel):
    """
    The authenticated member's own account.

    Never includes provider secrets or tokens.
    """

    id: int = Field(..., description="Unique user identifier")
    email: EmailStr = Field(..., description="Email address from the OAuth provider")
    username: str = Field(..., description="Unique username")
    full_name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="URL to avatar image")
    bio: str | None = Field(default=None, description="User biography")
    is_active: bool = Field(..., description="Whether the account is active")
    is_superuser: bool = Field(default=False, description="Moderator privileges")
    auth_provider: str = Field(..., description="google or github")
    created_at: datetime = Field(..., description="When the user first signed in")
    last_login_at: datetime | None = Field(default=None, description="Most recent sign-in")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "email": "jane@example.com",
                "username": "janedoe",
                "full_name": "Jane Doe",
                "avatar_url": None,
                "bio": "Reads everything twice",
                "is_active": True,
                "is_superuser": False,
                "auth_provider": "github",
                "created_at": "2024-01-15T10:30:00Z",
                "last_login_at": "2024-02-01T08:00:00Z",
            }
        },
    )


class UserPublicResponse(BaseModel):
    """Public user info (no email or account status)."""

    id: int = Field(..., description="Unique user identifier")
    username: str = Field(..., description="Unique username")
    full_name: str | None = Field(default=None, description="User's display name")
    avatar_url: str | None = Field(default=None, description="URL to avatar image")
    bio: str | None = Field(default=None, description="User biography")
    created_at: datetime = Field(..., description="When the user joined")

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Profile fields; all optional."""

    full_name: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=2000)
    avatar_url: str | None = Field(default=None, max_length=2000)

    @field_validator("full_name", "bio")
    @classmethod
    def blank_means_unset(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class UserProfileResponse(UserPublicResponse):
    """Public profile with the member's submitted books."""

    book_count: int = Field(..., ge=0, description="Number of books submitted")
    books: list[BookResponse] = Field(default=[], description="Submitted books, newest first")


# =============================================================================
# Token Schemas
# =============================================================================


class TokenResponse(BaseModel):
    """
    Access token returned after sign-in or refresh.

    The refresh token is set as an httpOnly cookie; it is echoed in the body
    only on sign-in so non-browser clients can store it.
    """

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Seconds until the access token expires")
    refresh_token: str | None = Field(default=None, description="JWT refresh token")


class RefreshTokenRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="Refresh token (or use the cookie)")
