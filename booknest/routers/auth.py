"""
Authentication Router

Social sign-in and JWT session endpoints:
- GET /auth/{provider} - Redirect to the Google/GitHub consent page
- GET /auth/{provider}/callback - Exchange the code, sign the member in
- POST /auth/refresh - Refresh token → new access token
- POST /auth/logout - Clear the refresh token cookie
- GET /auth/me - The signed-in member

Security:
=========
- No passwords: the OAuth provider vouches for the member's email
- Access tokens are short-lived (15 min default)
- Refresh tokens are longer-lived (7 days default) and set as an httpOnly
  cookie
- Signing in is optional everywhere except editing and deleting content
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status
from sqlalchemy import select
from starlette.responses import RedirectResponse

from booknest.config import get_settings
from booknest.dependencies import ActiveUser, DbSession
from booknest.models.user import AuthProvider, User
from booknest.schemas.user import RefreshTokenRequest, TokenResponse, UserResponse
from booknest.services.oauth import (
    OAuthError,
    exchange_code,
    get_authorization_url,
    is_configured,
    sign_in_user,
)
from booknest.services.rate_limiter import limiter
from booknest.services.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_token_pair,
    verify_token_type,
)

logger = logging.getLogger(__name__)
settings = get_settings()

REFRESH_COOKIE = "refresh_token"

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
    },
)


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# Session Endpoints
# =============================================================================


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="""
    Get a new access token using a refresh token, taken from the request
    body or, failing that, from the httpOnly cookie.
    """,
)
@limiter.limit(settings.rate_limit_default)
def refresh_token(
    request: Request,
    db: DbSession,
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    token = body.refresh_token if body and body.refresh_token else request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise _unauthorized("Refresh token required")

    payload = verify_token_type(token, REFRESH_TOKEN)
    if payload is None:
        raise _unauthorized("Invalid or expired refresh token")

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise _unauthorized("Invalid token payload")

    user = db.execute(select(User).where(User.id == int(user_id))).scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )

    logger.info(f"Token refreshed for user {user.id}")

    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Sign out",
    description="""
    Clear the refresh token cookie. The access token stays valid until it
    expires (15 min default).
    """,
)
def logout(
    response: Response,
    current_user: ActiveUser,
) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info(f"User {current_user.id} signed out")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
    description="The signed-in member. Requires `Authorization: Bearer <access_token>`.",
)
def get_me(current_user: ActiveUser) -> UserResponse:
    return UserResponse.model_validate(current_user)


# =============================================================================
# OAuth Endpoints (Social Login)
# =============================================================================
# Declared after /me so that path is not captured by /{provider}.


@router.get(
    "/{provider}",
    summary="Sign in with Google or GitHub",
    description="""
    Redirect to the provider's consent page.

    After the member agrees, the provider redirects back to
    `/api/v1/auth/{provider}/callback` with an authorization code.
    """,
    responses={
        302: {"description": "Redirect to the provider"},
        400: {"description": "Provider not configured"},
    },
)
@limiter.limit(settings.rate_limit_default)
def oauth_login(request: Request, provider: AuthProvider) -> RedirectResponse:
    try:
        url = get_authorization_url(provider)
    except OAuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None
    return RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/{provider}/callback",
    response_model=TokenResponse,
    summary="OAuth callback",
    description="""
    Handle the provider's redirect:

    1. Exchange the authorization code for the member's profile
    2. Find, link or create the account
    3. Return an access token and set the refresh token cookie
    """,
)
@limiter.limit(settings.rate_limit_default)
async def oauth_callback(
    request: Request,
    response: Response,
    provider: AuthProvider,
    db: DbSession,
    code: str | None = None,
    error: str | None = None,
) -> TokenResponse:
    if not is_configured(provider):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{provider.value.title()} OAuth is not configured",
        )

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"OAuth error: {error}",
        )

    if not code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Authorization code required",
        )

    try:
        profile = await exchange_code(provider, code)
    except OAuthError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from None

    user = sign_in_user(db, profile)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    tokens = create_token_pair(user.id)
    _set_refresh_cookie(response, tokens["refresh_token"])

    logger.info(f"{provider.value} sign-in: user {user.id}")

    return TokenResponse(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
        expires_in=settings.access_token_expire_minutes * 60,
    )
