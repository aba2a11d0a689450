"""
Tests for the identity service.

These are plain unit tests: requests are built directly from an ASGI
scope, no client or database involved.
"""

import hashlib

from starlette.requests import Request

from booknest.models import User
from booknest.services.identity import (
    LOOPBACK_PLACEHOLDER,
    client_network_identifier,
    hash_identity,
    resolve_identity,
)


def make_request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


class TestHashIdentity:
    def test_matches_sha256_of_joined_values(self):
        expected = hashlib.sha256(b"203.0.113.7-42").hexdigest()
        assert hash_identity("203.0.113.7", 42) == expected

    def test_stable_across_calls(self):
        assert hash_identity("203.0.113.7", 42) == hash_identity("203.0.113.7", "42")

    def test_differs_per_target(self):
        assert hash_identity("203.0.113.7", 1) != hash_identity("203.0.113.7", 2)


class TestClientNetworkIdentifier:
    def test_first_forwarded_address_wins(self):
        request = make_request({"X-Forwarded-For": " 203.0.113.7 , 10.0.0.1"})
        assert client_network_identifier(request) == "203.0.113.7"

    def test_real_ip_fallback(self):
        request = make_request({"X-Real-IP": "198.51.100.4"})
        assert client_network_identifier(request) == "198.51.100.4"

    def test_forwarded_for_preferred_over_real_ip(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7", "X-Real-IP": "198.51.100.4"})
        assert client_network_identifier(request) == "203.0.113.7"

    def test_empty_forwarded_header_falls_through(self):
        request = make_request({"X-Forwarded-For": " , ", "X-Real-IP": "198.51.100.4"})
        assert client_network_identifier(request) == "198.51.100.4"

    def test_no_headers_uses_placeholder(self):
        assert client_network_identifier(make_request()) == LOOPBACK_PLACEHOLDER


class TestResolveIdentity:
    def test_member_identity_is_account_token(self):
        user = User(id=17, email="a@example.com", username="a")

        token = resolve_identity(make_request({"X-Forwarded-For": "203.0.113.7"}), 5, user)

        assert token.value == "user:17"
        assert token.user_id == 17
        assert not token.is_anonymous

    def test_member_identity_same_on_every_target(self):
        user = User(id=17, email="a@example.com", username="a")
        request = make_request()

        assert resolve_identity(request, 1, user) == resolve_identity(request, 2, user)

    def test_anonymous_identity_is_address_hash(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"})

        token = resolve_identity(request, 5)

        assert token.value == hash_identity("203.0.113.7", 5)
        assert token.is_anonymous

    def test_anonymous_identity_without_address(self):
        token = resolve_identity(make_request(), 5)
        assert token.value == hash_identity(LOOPBACK_PLACEHOLDER, 5)

    def test_anonymous_and_member_tokens_never_collide(self):
        user = User(id=5, email="a@example.com", username="a")
        request = make_request()

        assert resolve_identity(request, 5, user).value != resolve_identity(request, 5).value
