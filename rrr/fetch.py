"""Remote feed retrieval and feed URL validation."""
from __future__ import annotations

import logging
import re
from typing import Callable, Optional
from urllib.parse import urlparse

import requests

from .errors import FetchError, UrlParseError

LOGGER = logging.getLogger(__name__)

USER_AGENT = "rrr/0.1"

Fetcher = Callable[[str], bytes]

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*$")
_HOSTED_SCHEMES = {"http", "https", "ftp", "ws", "wss"}

_session = requests.Session()
_session.headers.update({"User-Agent": USER_AGENT})


def parse_url(text: str) -> str:
    """Return ``text`` as an absolute URL or raise UrlParseError.

    Only surrounding whitespace is removed; the URL is otherwise kept exactly
    as written (``https://example.com`` does not gain a trailing slash), so
    that is also the form appended to remote-feeds.
    """
    candidate = text.strip()
    if not candidate:
        raise UrlParseError("empty string is not a URL")
    if any(ch.isspace() for ch in candidate):
        raise UrlParseError(f"invalid character in URL: {candidate!r}")
    try:
        parsed = urlparse(candidate)
    except ValueError as exc:
        raise UrlParseError(f"{exc}: {candidate!r}") from exc
    if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
        raise UrlParseError(f"relative URL without a base: {candidate!r}")
    if parsed.scheme.lower() in _HOSTED_SCHEMES and not parsed.hostname:
        raise UrlParseError(f"empty host: {candidate!r}")
    try:
        parsed.port
    except ValueError as exc:
        raise UrlParseError(f"invalid port number: {candidate!r}") from exc
    return candidate


def get(url: str, timeout: Optional[float] = None) -> bytes:
    try:
        response = _session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        LOGGER.warning("Fetching %s failed: %s", url, exc)
        raise FetchError(f"{url}: {exc}") from exc
    return response.content
