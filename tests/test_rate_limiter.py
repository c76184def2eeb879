"""
Tests for the rate limiter helpers.

Rate limiting is disabled for the test-suite, so the 429 handler and the
client IP lookup are called directly with mocked requests.
"""

import json
from unittest.mock import MagicMock

from fastapi import status

from bookshelf.services.rate_limiter import get_client_ip, limiter, rate_limit_exceeded_handler


def make_request(headers=None, client_host="10.0.0.1", path="/api/v1/books/"):
    request = MagicMock()
    request.headers = headers or {}
    request.client.host = client_host
    request.url.path = path
    return request


class TestClientIp:
    def test_forwarded_for_first_entry(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.2"})

        assert get_client_ip(request) == "203.0.113.7"

    def test_real_ip(self):
        request = make_request({"X-Real-IP": " 198.51.100.4 "})

        assert get_client_ip(request) == "198.51.100.4"

    def test_direct_connection(self):
        assert get_client_ip(make_request()) == "10.0.0.1"


class TestRateLimitExceededHandler:
    def test_envelope_and_headers(self):
        exc = MagicMock()
        exc.detail = "30 per 1 minute"

        response = rate_limit_exceeded_handler(make_request(), exc)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Limit"] == "30 per 1 minute"
        body = json.loads(response.body)
        assert body["error"] == "RATE_LIMIT_EXCEEDED"
        assert body["path"] == "/api/v1/books/"


def test_limiter_disabled_in_tests():
    assert limiter.enabled is False
