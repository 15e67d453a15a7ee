"""Tests for feed URL validation and the remote GET client."""

from unittest.mock import MagicMock

import pytest
import requests

from rrr import fetch
from rrr.errors import FetchError, UrlParseError


class TestParseUrl:
    @pytest.mark.parametrize(
        "text",
        [
            "https://example.com/feed.xml",
            "http://localhost:8080/atom",
            "https://example.com/feed?format=rss&x=1",
        ],
    )
    def test_accepts_absolute_urls(self, text):
        assert fetch.parse_url(text) == text

    def test_strips_surrounding_whitespace(self):
        assert fetch.parse_url("  https://example.com/ \n") == "https://example.com/"

    def test_keeps_url_as_written(self):
        assert fetch.parse_url("https://example.com") == "https://example.com"
        assert fetch.parse_url("HTTPS://Example.com/a/../b") == "HTTPS://Example.com/a/../b"

    @pytest.mark.parametrize(
        "text",
        ["", "   ", "not a url", "/relative/path", "example", "http://", "https://exa mple.com/", "http://example.com:port/"],
    )
    def test_rejects(self, text):
        with pytest.raises(UrlParseError):
            fetch.parse_url(text)


class TestGet:
    def test_returns_body_bytes(self, monkeypatch):
        response = MagicMock()
        response.content = b"<feed/>"
        get = MagicMock(return_value=response)
        monkeypatch.setattr(fetch._session, "get", get)

        assert fetch.get("https://example.com/feed", timeout=5) == b"<feed/>"
        get.assert_called_once_with("https://example.com/feed", timeout=5)
        response.raise_for_status.assert_called_once_with()

    def test_transport_error_becomes_fetch_error(self, monkeypatch):
        monkeypatch.setattr(fetch._session, "get", MagicMock(side_effect=requests.ConnectionError("refused")))
        with pytest.raises(FetchError, match="refused"):
            fetch.get("https://example.com/feed")

    def test_http_error_status_becomes_fetch_error(self, monkeypatch):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
        monkeypatch.setattr(fetch._session, "get", MagicMock(return_value=response))
        with pytest.raises(FetchError, match="404"):
            fetch.get("https://example.com/missing")

    def test_sends_user_agent(self):
        assert fetch._session.headers["User-Agent"] == fetch.USER_AGENT
