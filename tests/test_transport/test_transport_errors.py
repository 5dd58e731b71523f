"""Tests for TransportError classification."""

from __future__ import annotations

import pytest

from scraper.transport.errors import TransportError


class TestFromStatus:
    @pytest.mark.parametrize("status", [500, 502, 503, 504, 429])
    def test_retryable_statuses(self, status):
        assert TransportError.from_status("u", status).retryable

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 410])
    def test_client_errors_are_final(self, status):
        assert not TransportError.from_status("u", status).retryable

    def test_code_and_message(self):
        error = TransportError.from_status("https://rr.test/fiction/1", 404, "Not Found")
        assert error.code == "HTTP_404"
        assert str(error) == "HTTP 404: Not Found"
        assert error.is_not_found

    def test_message_without_reason(self):
        assert str(TransportError.from_status("u", 503)) == "HTTP 503"


class TestFromException:
    def test_timeout(self):
        error = TransportError.from_exception("u", RuntimeError("slow"), timeout=True)
        assert error.code == "TIMEOUT"
        assert error.retryable
        assert "slow" in str(error)
        assert not error.is_not_found

    def test_network(self):
        error = TransportError.from_exception("u", OSError("reset"))
        assert error.code == "NETWORK"
        assert error.retryable


def test_to_dict_carries_attempts():
    error = TransportError.from_status("https://rr.test/fiction/7", 502, "Bad Gateway")
    error.attempts = 4
    assert error.to_dict() == {
        "code": "HTTP_502",
        "url": "https://rr.test/fiction/7",
        "status_code": 502,
        "status_text": "Bad Gateway",
        "retryable": True,
        "attempts": 4,
        "message": "HTTP 502: Bad Gateway",
    }
