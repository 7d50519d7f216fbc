"""
Tests for the rate limiter's budget keys and 429 response.

Rate limiting is disabled for the rest of the suite, so these exercise the
key function and handler directly on hand-built requests.
"""

import json
from datetime import timedelta
from types import SimpleNamespace

from limits import parse
from starlette.requests import Request

from bookcatalog.services.rate_limiter import (
    get_client_ip,
    get_rate_limit_key,
    rate_limit_exceeded_handler,
)
from bookcatalog.services.security import create_access_token


def make_request(headers: dict | None = None, path: str = "/api/v1/books") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": b"",
        "headers": [
            (name.lower().encode(), value.encode()) for name, value in (headers or {}).items()
        ],
        "client": ("203.0.113.7", 52114),
        "server": ("testserver", 80),
        "scheme": "http",
    }
    return Request(scope)


class TestClientIp:
    def test_socket_peer(self):
        assert get_client_ip(make_request()) == "203.0.113.7"

    def test_forwarded_for_first_hop(self):
        request = make_request({"X-Forwarded-For": "198.51.100.4, 10.0.0.2"})

        assert get_client_ip(request) == "198.51.100.4"

    def test_real_ip(self):
        assert get_client_ip(make_request({"X-Real-IP": " 198.51.100.9 "})) == "198.51.100.9"


class TestRateLimitKey:
    def test_anonymous_uses_address(self):
        assert get_rate_limit_key(make_request()) == "ip:203.0.113.7"

    def test_access_token_uses_user(self):
        token = create_access_token({"sub": "42"})

        key = get_rate_limit_key(make_request({"Authorization": f"Bearer {token}"}))

        assert key == "user:42"

    def test_same_user_shares_budget_across_addresses(self):
        token = create_access_token({"sub": "42"})
        first = make_request({"Authorization": f"Bearer {token}"})
        second = make_request(
            {"Authorization": f"bearer {token}", "X-Forwarded-For": "198.51.100.4"}
        )

        assert get_rate_limit_key(first) == get_rate_limit_key(second)

    def test_invalid_token_falls_back_to_address(self):
        request = make_request({"Authorization": "Bearer not-a-jwt"})

        assert get_rate_limit_key(request) == "ip:203.0.113.7"

    def test_expired_token_falls_back_to_address(self):
        token = create_access_token({"sub": "42"}, expires_delta=timedelta(minutes=-5))

        key = get_rate_limit_key(make_request({"Authorization": f"Bearer {token}"}))

        assert key == "ip:203.0.113.7"

    def test_non_bearer_scheme_ignored(self):
        request = make_request({"Authorization": "Basic dXNlcjpwYXNz"})

        assert get_rate_limit_key(request) == "ip:203.0.113.7"


class TestRateLimitExceeded:
    def test_response_shape_and_retry_after(self):
        exc = SimpleNamespace(detail="5 per 1 minute", limit=SimpleNamespace(limit=parse("5/minute")))

        response = rate_limit_exceeded_handler(make_request(), exc)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        body = json.loads(response.body)
        assert list(body) == ["detail"]
        assert "5 per 1 minute" in body["detail"]

    def test_retry_after_follows_window(self):
        exc = SimpleNamespace(detail="20 per 1 hour", limit=SimpleNamespace(limit=parse("20/hour")))

        response = rate_limit_exceeded_handler(make_request(), exc)

        assert response.headers["Retry-After"] == "3600"
