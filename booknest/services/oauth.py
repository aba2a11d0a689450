"""
OAuth Service

Social sign-in for members through Google and GitHub.

Flow:
=====
1. /auth/{provider} redirects the browser to the provider's consent page
2. The provider redirects back to /auth/{provider}/callback?code=...
3. exchange_code() trades the code for a provider access token and reads
   the member's profile
4. sign_in_user() finds or creates the matching User row

Visitors who never sign in keep using the site anonymously; signing in only
changes the identity their votes, likes, comments and reviews are recorded
under.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx
from sqlalchemy import select
from sqlalchemy.orm import Session

from booknest.config import get_settings
from booknest.models.user import AuthProvider, User
from booknest.services.store import atomic_write

logger = logging.getLogger(__name__)
settings = get_settings()

GITHUB_API_HEADERS = {"Accept": "application/vnd.github.v3+json"}


class OAuthError(Exception):
    """The provider refused the exchange or returned an unusable profile."""


@dataclass(frozen=True)
class ProviderConfig:
    name: AuthProvider
    client_id: str | None
    client_secret: str | None
    redirect_uri: str
    authorize_url: str
    token_url: str
    scope: str
    extra_params: dict[str, str] = field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


@dataclass
class OAuthUserData:
    """
    Profile returned by a provider, normalized.

    Google never provides a username; GitHub provides its login.
    """

    email: str
    provider: AuthProvider
    provider_user_id: str
    full_name: str | None = None
    avatar_url: str | None = None
    username: str | None = None


def get_provider(name: AuthProvider | str) -> ProviderConfig:
    """Provider settings, read fresh so tests can patch settings."""
    provider = AuthProvider(name)
    if provider is AuthProvider.GOOGLE:
        return ProviderConfig(
            name=provider,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
            token_url="https://oauth2.googleapis.com/token",
            scope="openid email profile",
            extra_params={"access_type": "offline", "prompt": "consent"},
        )
    return ProviderConfig(
        name=provider,
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        redirect_uri=settings.github_redirect_uri,
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        scope="user:email",
    )


def is_configured(name: AuthProvider | str) -> bool:
    return get_provider(name).configured


# =============================================================================
# Authorization URL
# =============================================================================


def get_authorization_url(name: AuthProvider | str) -> str:
    """
    Consent page URL for a provider.

    Raises:
        OAuthError: Provider has no client credentials configured
    """
    provider = get_provider(name)
    if not provider.configured:
        raise OAuthError(f"{provider.name.value.title()} OAuth is not configured")

    params = {
        "client_id": provider.client_id,
        "redirect_uri": provider.redirect_uri,
        "response_type": "code",
        "scope": provider.scope,
        **provider.extra_params,
    }
    return str(httpx.URL(provider.authorize_url, params=params))


# =============================================================================
# Code Exchange
# =============================================================================


async def exchange_code(name: AuthProvider | str, code: str) -> OAuthUserData:
    """
    Trade an authorization code for the member's profile.

    Args:
        name: "google" or "github"
        code: Authorization code from the callback query string

    Returns:
        OAuthUserData with the member's email and provider id

    Raises:
        OAuthError: Exchange failed or the profile has no usable email
    """
    provider = get_provider(name)
    if not provider.configured:
        raise OAuthError(f"{provider.name.value.title()} OAuth is not configured")

    async with httpx.AsyncClient(timeout=10.0) as client:
        token_response = await client.post(
            provider.token_url,
            data={
                "client_id": provider.client_id,
                "client_secret": provider.client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": provider.redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        if token_response.status_code != 200:
            logger.error(f"{provider.name.value} token exchange failed: {token_response.text}")
            raise OAuthError("Failed to exchange code for token")

        token_data = token_response.json()
        if "error" in token_data or "access_token" not in token_data:
            logger.error(f"{provider.name.value} OAuth error: {token_data}")
            raise OAuthError(token_data.get("error_description", "OAuth failed"))

        access_token = token_data["access_token"]
        if provider.name is AuthProvider.GOOGLE:
            data = await _fetch_google_profile(client, access_token)
        else:
            data = await _fetch_github_profile(client, access_token)

    logger.info(f"{provider.name.value} OAuth successful for: {data.email}")
    return data


async def _fetch_google_profile(client: httpx.AsyncClient, access_token: str) -> OAuthUserData:
    response = await client.get(
        "https://www.googleapis.com/oauth2/v2/userinfo",
        headers={"Authorization": f"Bearer {access_token}"},
    )
    if response.status_code != 200:
        logger.error(f"Google user info failed: {response.text}")
        raise OAuthError("Failed to fetch user info")

    profile = response.json()
    if not profile.get("email"):
        raise OAuthError("Could not get email from Google")

    return OAuthUserData(
        email=profile["email"],
        provider=AuthProvider.GOOGLE,
        provider_user_id=str(profile["id"]),
        full_name=profile.get("name"),
        avatar_url=profile.get("picture"),
    )


async def _fetch_github_profile(client: httpx.AsyncClient, access_token: str) -> OAuthUserData:
    headers = {"Authorization": f"Bearer {access_token}", **GITHUB_API_HEADERS}

    response = await client.get("https://api.github.com/user", headers=headers)
    if response.status_code != 200:
        logger.error(f"GitHub user info failed: {response.text}")
        raise OAuthError("Failed to fetch user info")
    profile = response.json()

    # Private addresses only show up on the emails endpoint
    email = profile.get("email")
    if not email:
        emails_response = await client.get("https://api.github.com/user/emails", headers=headers)
        if emails_response.status_code == 200:
            email = _pick_github_email(emails_response.json())

    if not email:
        raise OAuthError("Could not get email from GitHub")

    return OAuthUserData(
        email=email,
        provider=AuthProvider.GITHUB,
        provider_user_id=str(profile["id"]),
        full_name=profile.get("name"),
        avatar_url=profile.get("avatar_url"),
        username=profile.get("login"),
    )


def _pick_github_email(emails: list[dict]) -> str | None:
    """Primary verified address, else any verified address."""
    verified = [entry for entry in emails if entry.get("verified")]
    for entry in verified:
        if entry.get("primary"):
            return entry["email"]
    return verified[0]["email"] if verified else None


# =============================================================================
# Account Linking
# =============================================================================


def _unique_username(db: Session, base: str) -> str:
    candidate = base.lower()[:50] or "reader"
    counter = 1
    while db.execute(select(User.id).where(User.username == candidate)).first() is not None:
        candidate = f"{base.lower()[:45]}{counter}"
        counter += 1
    return candidate


def sign_in_user(db: Session, data: OAuthUserData) -> User:
    """
    Find or create the member behind an OAuth profile.

    Linking rules:
    1. Same provider and provider user id → that member
    2. Same email → link the provider to that member
    3. Otherwise → new member with a unique username

    The member's last_login_at is stamped in every case.
    """
    stmt = select(User).where(
        User.auth_provider == data.provider.value,
        User.provider_user_id == data.provider_user_id,
    )
    user = db.execute(stmt).scalar_one_or_none()

    if user is None:
        user = db.execute(select(User).where(User.email == data.email)).scalar_one_or_none()
        if user is not None:
            logger.info(f"Linking {data.provider.value} to existing user: {user.email}")
            user.auth_provider = data.provider.value
            user.provider_user_id = data.provider_user_id
            if data.avatar_url and not user.avatar_url:
                user.avatar_url = data.avatar_url

    with atomic_write(db, f"sign-in of {data.email}"):
        if user is None:
            user = User(
                email=data.email,
                username=_unique_username(db, data.username or data.email.split("@")[0]),
                full_name=data.full_name,
                avatar_url=data.avatar_url,
                auth_provider=data.provider.value,
                provider_user_id=data.provider_user_id,
                is_active=True,
            )
            db.add(user)
            logger.info(f"Created new OAuth user: {data.email}")

        user.last_login_at = datetime.now(UTC)

    db.refresh(user)
    return user
