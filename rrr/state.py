"""The in-memory aggregation state and the operations that refresh and mutate it.

Every refresh follows the same shape: clear the destination, stamp
``fetched_at``, then fetch and parse into it. The stamp comes first so a
failing source still advances the clock. A refresh that fails partway leaves
the destination cleared or partially filled; it is not rolled back.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from . import fetch as fetch_module
from . import render
from .atomic import write_atomically
from .errors import FormError, MissingLocalFileError, RrrError, UrlParseError
from .fetch import Fetcher, parse_url
from .paths import (
    REMOTE_FEEDS,
    LocalFeedPath,
    LocalFeedsDir,
    PathLike,
    Root,
    ensure_directory,
)
from .syndicated import Post, add_post, parse_items
from .tasks import (
    LocalAddForm,
    RefreshFlags,
    RemoteFeedAddForm,
    ShowHomePage,
    ShowLocalAddForm,
    ShowRemoteFeedAddForm,
    SubmitLocalAddForm,
    SubmitRemoteFeedAddForm,
    Task,
)
from .timestamp import Timestamp, UtcOffset, earliest

LOGGER = logging.getLogger(__name__)


@dataclass
class RemoteFeeds:
    feeds: List[str] = field(default_factory=list)
    fetched_at: Timestamp = Timestamp.DEFAULT


@dataclass
class Posts:
    posts: List[Post] = field(default_factory=list)
    fetched_at: Timestamp = Timestamp.DEFAULT


LocalPosts = Dict[LocalFeedPath, Posts]


def _open_remote_feeds(root: Root) -> BinaryIO:
    # Append mode creates the file and never truncates it.
    handle = open(root.path_to(REMOTE_FEEDS), "a+b")
    handle.seek(0)
    return handle


def load_remote_feed_urls(handle: BinaryIO, remote_feeds: RemoteFeeds, utc_offset: UtcOffset) -> None:
    """Replace ``remote_feeds`` with the URLs in ``handle``, one per line."""
    raw = handle.read()
    remote_feeds.fetched_at = Timestamp.now_at_offset(utc_offset)
    remote_feeds.feeds.clear()

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UrlParseError(f"{REMOTE_FEEDS} is not valid UTF-8: {exc}") from exc

    for line in text.splitlines():
        if not line.strip():
            continue
        remote_feeds.feeds.append(parse_url(line))
    LOGGER.info("Loaded %d remote feed urls", len(remote_feeds.feeds))


def fetch_remote_feeds(
    output: Posts,
    remote_feeds: RemoteFeeds,
    utc_offset: UtcOffset,
    fetch: Fetcher,
) -> None:
    output.posts.clear()
    output.fetched_at = Timestamp.now_at_offset(utc_offset)

    for url in remote_feeds.feeds:
        before = len(output.posts)
        parse_items(fetch(url), output.posts)
        LOGGER.debug("%s: %d posts", url, len(output.posts) - before)
    LOGGER.info("Fetched %d remote posts from %d feeds", len(output.posts), len(remote_feeds.feeds))


def load_local_post_from_buffer(output: Posts, data: bytes, utc_offset: UtcOffset) -> None:
    output.posts.clear()
    output.fetched_at = Timestamp.now_at_offset(utc_offset)
    parse_items(data, output.posts)


def load_local_feed_paths(output: LocalPosts, local_feeds_dir: LocalFeedsDir) -> None:
    """Rebuild the key set of ``output`` from the directory listing.

    Posts already held for a path that still exists are kept as they are;
    new paths get an empty batch and vanished paths are dropped. Dot files
    (including temp files left by an interrupted write) are not feeds.
    """
    paths = sorted(
        LocalFeedPath(entry, local_feeds_dir)
        for entry in local_feeds_dir.path.iterdir()
        if not entry.name.startswith(".")
    )
    previous = dict(output)
    output.clear()
    for path in paths:
        posts = previous.get(path)
        output[path] = posts if posts is not None else Posts()
    LOGGER.debug("Found %d local feed files", len(output))


def load_local_posts(output: LocalPosts, local_feeds_dir: LocalFeedsDir, utc_offset: UtcOffset) -> None:
    """Rediscover local feed files and reload every one of them from disk."""
    load_local_feed_paths(output, local_feeds_dir)
    for path, posts in output.items():
        load_local_post_from_buffer(posts, path.path.read_bytes(), utc_offset)
    LOGGER.info(
        "Loaded %d local posts from %d files",
        sum(len(posts.posts) for posts in output.values()),
        len(output),
    )


def add_local_post(posts: Posts, form: LocalAddForm, utc_offset: UtcOffset) -> None:
    """Append ``form.post`` to its file, then reload that file's posts.

    Failures raise FormError carrying ``form`` so it can be shown again.
    """
    try:
        source = form.path.path.read_bytes()
        write_atomically(form.path, lambda handle: add_post(handle, source, form.post.clone(), utc_offset))
        data = form.path.path.read_bytes()
    except (RrrError, OSError) as exc:
        LOGGER.warning("Adding a post to %s failed: %s", form.path, exc)
        raise FormError(form, exc) from exc

    load_local_post_from_buffer(posts, data, utc_offset)
    LOGGER.info("Added a post to %s", form.path)


def add_remote_feed(
    remote_feeds: RemoteFeeds,
    form: RemoteFeedAddForm,
    root: Root,
    utc_offset: UtcOffset,
) -> None:
    """Append ``form.url`` to the remote-feeds file and reload the url list."""
    try:
        url = parse_url(form.url)
        with _open_remote_feeds(root) as handle:
            end = handle.seek(0, 2)
            if end != 0:
                handle.seek(end - 1)
                if handle.read(1) != b"\n":
                    handle.write(b"\n")
            handle.write(url.encode("utf-8") + b"\n")
            handle.flush()
            handle.seek(0)
            load_remote_feed_urls(handle, remote_feeds, utc_offset)
    except (RrrError, OSError) as exc:
        LOGGER.warning("Adding remote feed %r failed: %s", form.url, exc)
        raise FormError(form, exc) from exc
    LOGGER.info("Added remote feed %s", url)


class State:
    """Everything the server knows; one per process, mutated only by ``perform``."""

    def __init__(
        self,
        root: Root,
        remote_feeds: RemoteFeeds,
        remote_posts: Posts,
        local_posts: LocalPosts,
        local_feeds_dir: LocalFeedsDir,
        utc_offset: UtcOffset,
        fetch: Fetcher = fetch_module.get,
    ) -> None:
        self.root = root
        self.remote_feeds = remote_feeds
        self.remote_posts = remote_posts
        self.local_posts = local_posts
        self.local_feeds_dir = local_feeds_dir
        self.utc_offset = utc_offset
        self.fetch = fetch

    @classmethod
    def create(
        cls,
        root: PathLike,
        fetch: Fetcher = fetch_module.get,
        utc_offset: Optional[UtcOffset] = None,
    ) -> "State":
        """Set up the data directory and load everything from disk and network."""
        root = Root(ensure_directory(root))
        utc_offset = utc_offset or UtcOffset.current_local_or_utc()

        remote_feeds = RemoteFeeds()
        with _open_remote_feeds(root) as handle:
            load_remote_feed_urls(handle, remote_feeds, utc_offset)

        local_feeds_dir = LocalFeedsDir(root)
        local_posts: LocalPosts = {}
        load_local_posts(local_posts, local_feeds_dir, utc_offset)

        remote_posts = Posts()
        fetch_remote_feeds(remote_posts, remote_feeds, utc_offset, fetch)

        LOGGER.info("State ready at %s", root)
        return cls(root, remote_feeds, remote_posts, local_posts, local_feeds_dir, utc_offset, fetch)

    def root_display(self) -> str:
        return str(self.root)

    def refresh_local(self) -> None:
        load_local_posts(self.local_posts, self.local_feeds_dir, self.utc_offset)

    def refresh_remote(self) -> None:
        fetch_remote_feeds(self.remote_posts, self.remote_feeds, self.utc_offset, self.fetch)

    def refresh_remote_urls(self) -> None:
        with _open_remote_feeds(self.root) as handle:
            load_remote_feed_urls(handle, self.remote_feeds, self.utc_offset)

    def data(self) -> render.Data:
        """Read-only view handed to the renderer."""
        sections = [
            render.Section(
                kind=render.SectionKind.LOCAL,
                posts=tuple(posts.posts),
                timestamp=posts.fetched_at,
                label=self._label(path.path),
            )
            for path, posts in self.local_posts.items()
        ]
        sections.append(
            render.Section(
                kind=render.SectionKind.REMOTE,
                posts=tuple(self.remote_posts.posts),
                timestamp=self.remote_posts.fetched_at,
            )
        )
        return render.Data(
            root_display=self.root_display(),
            sections=sections,
            refresh_timestamps=[
                render.RefreshTimestamp(
                    render.RefreshKind.LOCAL,
                    earliest(posts.fetched_at for posts in self.local_posts.values()),
                ),
                render.RefreshTimestamp(render.RefreshKind.REMOTE, self.remote_posts.fetched_at),
                render.RefreshTimestamp(render.RefreshKind.REMOTE_URLS, self.remote_feeds.fetched_at),
            ],
            remote_feeds=list(self.remote_feeds.feeds),
        )

    def _label(self, path: Path) -> str:
        try:
            return str(path.relative_to(self.root.path))
        except ValueError:
            return str(path)

    def _targets(self) -> List[render.Target]:
        return [render.Target(label=self._label(path.path), value=str(path)) for path in self.local_posts]

    def perform(self, task: Task) -> str:
        """Carry out ``task`` and return the HTML to send back."""
        if isinstance(task, ShowHomePage):
            if task.flags & RefreshFlags.LOCAL:
                self.refresh_local()
            if task.flags & RefreshFlags.REMOTE_URLS:
                self.refresh_remote_urls()
            if task.flags & RefreshFlags.REMOTE:
                self.refresh_remote()
            return render.home_page(self.data())

        if isinstance(task, ShowLocalAddForm):
            load_local_feed_paths(self.local_posts, self.local_feeds_dir)
            return render.local_add_form(self._targets(), self.data())

        if isinstance(task, SubmitLocalAddForm):
            form = task.form
            posts = self.local_posts.get(form.path)
            if posts is None:
                raise MissingLocalFileError()
            try:
                add_local_post(posts, form, self.utc_offset)
            except FormError as exc:
                redisplay = render.LocalAddForm(
                    target=str(form.path),
                    title=form.post.title or "",
                    summary=form.post.summary or "",
                    content=form.post.content or "",
                    links=tuple(form.post.links),
                )
                return render.local_add_form(self._targets(), self.data(), (redisplay, str(exc)))
            return render.local_add_form_success(self.data())

        if isinstance(task, ShowRemoteFeedAddForm):
            return render.remote_feed_add_form(self.data())

        if isinstance(task, SubmitRemoteFeedAddForm):
            form = task.form
            try:
                add_remote_feed(self.remote_feeds, form, self.root, self.utc_offset)
            except FormError as exc:
                redisplay = render.RemoteFeedAddForm(url=form.url)
                return render.remote_feed_add_form(self.data(), (redisplay, str(exc)))
            return render.remote_feed_add_form_success(self.data())

        raise TypeError(f"Unknown task {task!r}")
