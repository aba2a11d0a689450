"""
Identity Service

Decides WHO an action (vote, like, comment, review, helpful mark) is
attributed to, so that each identity gets at most one action per target.

Two kinds of identity token:
=============================
1. Signed-in member  → "user:<account id>"
2. Anonymous visitor → sha256("<client address>-<target id>") as hex

The anonymous token mixes in the target id, so the same visitor gets a
different token on every book or comment and tokens cannot be correlated
across targets. Tokens carry no salt: the same address and target always
hash to the same value, across restarts and across server instances.

Visitors behind one NAT share an address and therefore share an identity.
Resolution never fails; with no address information at all it falls back to
the loopback placeholder.
"""

import hashlib
from dataclasses import dataclass
from typing import TYPE_CHECKING

from starlette.datastructures import Headers
from starlette.requests import Request

if TYPE_CHECKING:
    from booknest.models.user import User

LOOPBACK_PLACEHOLDER = "127.0.0.1"
ACCOUNT_PREFIX = "user:"


@dataclass(frozen=True)
class IdentityToken:
    """
    Dedup key for one action on one target.

    Attributes:
        value: The string stored in the action row's identity column
        user_id: Account id for signed-in members, None for visitors
    """

    value: str
    user_id: int | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None


def hash_identity(identifier: str, target_id: str | int) -> str:
    """
    One-way digest of an identifier and a target id.

    Example:
        >>> hash_identity("203.0.113.7", 42) == hash_identity("203.0.113.7", "42")
        True
        >>> len(hash_identity("203.0.113.7", 42))
        64
    """
    payload = f"{identifier}-{target_id}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def forwarded_client_address(headers: Headers) -> str | None:
    """
    Client address announced by a proxy, if any.

    X-Forwarded-For may hold a chain ("client, proxy1, proxy2"); the first
    entry is the client. X-Real-IP (nginx) is the fallback.
    """
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("X-Real-IP")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return None


def client_network_identifier(request: Request) -> str:
    """Address used for anonymous identities; loopback when nothing is known."""
    return forwarded_client_address(request.headers) or LOOPBACK_PLACEHOLDER


def account_identity(user: "User") -> IdentityToken:
    return IdentityToken(value=f"{ACCOUNT_PREFIX}{user.id}", user_id=user.id)


def resolve_identity(
    request: Request,
    target_id: str | int,
    user: "User | None" = None,
) -> IdentityToken:
    """
    Map a request to the identity token used for a target.

    Args:
        request: Incoming request (only its headers are read)
        target_id: Book, comment or review id the action applies to
        user: Authenticated member, or None for anonymous visitors

    Returns:
        IdentityToken; never raises
    """
    if user is not None:
        return account_identity(user)

    address = client_network_identifier(request)
    return IdentityToken(value=hash_identity(address, target_id))
