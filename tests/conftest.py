"""Shared fixtures and feed documents for the rrr tests."""

from pathlib import Path
from typing import List

import pytest

from rrr.errors import FetchError
from rrr.state import State
from rrr.timestamp import UTC

ATOM_TWO = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example</title>
  <id>urn:example:feed</id>
  <updated>2024-01-01T00:00:00Z</updated>
  <entry>
    <title>First</title>
    <id>urn:example:1</id>
    <updated>2024-01-01T00:00:00Z</updated>
    <summary>One</summary>
    <link href="https://example.com/1"/>
    <link rel="related" href="https://example.com/1/related"/>
  </entry>
  <entry>
    <title>Second</title>
    <id>urn:example:2</id>
    <updated>2024-01-02T00:00:00Z</updated>
    <content>Two</content>
    <link href="https://example.com/2"/>
  </entry>
</feed>
"""

ATOM_EMPTY = b"""<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Notes</title>
  <id>urn:example:notes</id>
  <updated>2024-01-01T00:00:00Z</updated>
</feed>
"""

RSS_TWO = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
  <channel>
    <title>RSS Example</title>
    <link>https://rss.example.com/</link>
    <description>An RSS feed</description>
    <item>
      <title>Item one</title>
      <link>https://rss.example.com/1</link>
      <description>First item</description>
    </item>
    <item>
      <title>Item two</title>
      <link>https://rss.example.com/2</link>
    </item>
  </channel>
</rss>
"""


GB2312_RSS = """<?xml version="1.0" encoding="gb2312"?>
<rss version="2.0">
  <channel>
    <title>新闻</title>
    <link>https://cn.example.com/</link>
    <description>中文</description>
    <item>
      <title>第一条</title>
      <link>https://cn.example.com/1</link>
      <description>你好</description>
    </item>
  </channel>
</rss>
""".encode("gb2312")

SHIFT_JIS_ATOM = """<?xml version="1.0" encoding="shift_jis"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>日記</title>
  <id>urn:example:jp</id>
  <updated>2024-01-01T00:00:00Z</updated>
  <entry>
    <title>日本語</title>
    <id>urn:example:jp:1</id>
    <updated>2024-01-01T00:00:00Z</updated>
    <link href="https://jp.example.com/1"/>
  </entry>
</feed>
""".encode("shift_jis")

RSS_CONTENT = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Content</title>
    <link>https://content.example.com/</link>
    <description>Items with full bodies</description>
    <item>
      <title>Body only</title>
      <content:encoded><![CDATA[<p>body</p>]]></content:encoded>
    </item>
    <item>
      <title>Both</title>
      <description>Teaser</description>
      <content:encoded><![CDATA[<p>Full</p>]]></content:encoded>
    </item>
  </channel>
</rss>
"""


class FakeFetcher:
    """Serves canned documents by URL and records what was asked for."""

    def __init__(self, documents=None):
        self.documents = dict(documents or {})
        self.calls: List[str] = []

    def __call__(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.documents:
            raise FetchError(f"{url}: connection refused")
        return self.documents[url]


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def root(tmp_path) -> Path:
    path = tmp_path / "data"
    (path / "local-feeds").mkdir(parents=True)
    return path


@pytest.fixture
def notes_file(root) -> Path:
    path = root / "local-feeds" / "notes.xml"
    path.write_bytes(ATOM_EMPTY)
    return path


@pytest.fixture
def state(root, notes_file, fetcher) -> State:
    return State.create(root, fetch=fetcher, utc_offset=UTC)
