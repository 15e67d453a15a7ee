"""Reading posts out of Atom/RSS documents and appending posts to Atom files."""
from __future__ import annotations

import hashlib
import io
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field, replace
from typing import BinaryIO, List, Optional, Union

import feedparser

from .errors import FeedFormatError
from .timestamp import Timestamp, UtcOffset

LOGGER = logging.getLogger(__name__)

ATOM_NS = "http://www.w3.org/2005/Atom"

_DECLARED_ENCODING = re.compile(rb"""^\s*<\?xml[^>]*?\bencoding\s*=\s*["']([A-Za-z0-9._:-]+)["']""")


def _q(tag: str) -> str:
    return f"{{{ATOM_NS}}}{tag}"


@dataclass
class Post:
    title: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    links: List[str] = field(default_factory=list)

    def clone(self) -> "Post":
        return replace(self, links=list(self.links))


def _fromstring(document: Union[bytes, str]) -> ET.Element:
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
    try:
        return ET.fromstring(document, parser=parser)
    except (ET.ParseError, LookupError) as exc:
        raise FeedFormatError(f"Not well-formed XML: {exc}") from exc


def _decode_declared(data: bytes) -> str:
    match = _DECLARED_ENCODING.match(data)
    if match is None:
        raise FeedFormatError("No encoding declared")
    encoding = match.group(1).decode("ascii")
    try:
        return data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as exc:
        raise FeedFormatError(f"Cannot decode as {encoding}: {exc}") from exc


def _read_atom(data: bytes) -> ET.Element:
    try:
        root = _fromstring(data)
    except ValueError:
        # expat only decodes single-byte charsets itself; text input is read as UTF-8
        try:
            root = _fromstring(_decode_declared(data))
        except ValueError as exc:
            raise FeedFormatError(f"Not well-formed XML: {exc}") from exc
    if root.tag != _q("feed"):
        raise FeedFormatError(f"Expected an Atom feed element, found {root.tag}")
    return root


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(_q(tag))
    if child is None:
        return None
    return "".join(child.itertext())


def _post_from_atom_entry(entry: ET.Element) -> Post:
    content = entry.find(_q("content"))
    return Post(
        title=_text(entry, "title") or "",
        summary=_text(entry, "summary"),
        content=None if content is None or "src" in content.attrib else "".join(content.itertext()),
        links=[link.get("href", "") for link in entry.findall(_q("link"))],
    )


def _post_from_rss_item(item: dict) -> Post:
    content = item.get("content")
    body = content[0].get("value") if content else None
    summary = item.get("summary")
    if body is not None and summary == body:
        # feedparser fills summary from content:encoded when there is no description
        summary = None
    link = item.get("link")
    return Post(
        title=item.get("title"),
        summary=summary,
        content=body,
        links=[link] if link else [],
    )


def parse_items(data: bytes, output: List[Post]) -> None:
    """Append the posts in ``data`` to ``output``.

    Atom is tried first, then RSS. A document that is neither adds nothing.
    """
    try:
        root = _read_atom(data)
    except FeedFormatError as exc:
        LOGGER.debug("Not Atom (%s), trying RSS", exc)
    else:
        output.extend(_post_from_atom_entry(entry) for entry in root.findall(_q("entry")))
        return

    parsed = feedparser.parse(io.BytesIO(data))
    version = parsed.get("version") or ""
    if not version.startswith("rss"):
        LOGGER.debug("Not RSS either (version=%r); no posts", version)
        return
    output.extend(_post_from_rss_item(item) for item in parsed.entries)


def _hash_str(digest: "hashlib._Hash", text: str) -> None:
    digest.update(text.encode("utf-8"))
    digest.update(b"\xff")


def post_id(post: Post, now: Timestamp) -> str:
    """Content-derived entry id; distribution matters here, not secrecy."""
    digest = hashlib.blake2b(digest_size=16)
    seconds = int(now.value.timestamp())
    digest.update(seconds.to_bytes(8, "little", signed=True))
    digest.update((now.value.microsecond * 1000).to_bytes(4, "little"))
    _hash_str(digest, post.title if post.title is not None else now.rfc3339())
    if post.content is not None:
        _hash_str(digest, post.content)
    if post.summary is not None:
        _hash_str(digest, post.summary)
    for link in post.links:
        _hash_str(digest, link)
    return f"mh:{digest.hexdigest()}"


def _sub(parent: ET.Element, tag: str, text: str) -> ET.Element:
    child = ET.SubElement(parent, _q(tag))
    child.text = text
    return child


def _unprefix_atom(element: ET.Element, in_scope: str = "") -> None:
    """Move Atom elements into the default namespace in place.

    ``xmlns`` is declared wherever the default namespace has to change, so
    elements in no namespace keep meaning what they meant in the source.
    """
    tag = element.tag
    if isinstance(tag, str):
        if tag.startswith(_q("")):
            element.tag, wanted = tag[len(_q("")):], ATOM_NS
        elif tag.startswith("{"):
            wanted = in_scope
        else:
            wanted = ""
        if wanted != in_scope:
            element.set("xmlns", wanted)
        in_scope = wanted
    for child in element:
        _unprefix_atom(child, in_scope)


def add_post(file: BinaryIO, source: bytes, post: Post, utc_offset: UtcOffset) -> None:
    """Write ``source`` plus one new entry for ``post`` to ``file``.

    ``source`` must already be an Atom document; nothing is written otherwise.
    """
    root = _read_atom(source)

    now = Timestamp.now_at_offset(utc_offset)
    stamp = now.rfc3339()

    entry = ET.SubElement(root, _q("entry"))
    _sub(entry, "id", post_id(post, now))
    _sub(entry, "title", post.title if post.title is not None else stamp)
    _sub(entry, "updated", stamp)
    _sub(entry, "published", stamp)
    if post.summary is not None:
        _sub(entry, "summary", post.summary)
    if post.content is not None:
        _sub(entry, "content", post.content)
    for link in post.links:
        ET.SubElement(entry, _q("link"), href=link)
    entry.tail = "\n"

    _unprefix_atom(root)
    file.write(ET.tostring(root, encoding="utf-8", xml_declaration=True))
