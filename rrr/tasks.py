"""Decoding inbound requests into the closed set of tasks the state can perform."""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol, Tuple, Union

from . import render
from .errors import RrrError, TaskError
from .paths import LocalFeedPath
from .syndicated import Post

if TYPE_CHECKING:
    from .state import State

LOGGER = logging.getLogger(__name__)


class Method(enum.Enum):
    GET = "GET"
    POST = "POST"
    OTHER = "???"

    @classmethod
    def from_name(cls, name: str) -> "Method":
        try:
            return cls(name.upper())
        except ValueError:
            return cls.OTHER

    def __str__(self) -> str:
        return self.value


class RefreshFlags(enum.Flag):
    NONE = 0
    LOCAL = 0b001
    REMOTE = 0b010
    REMOTE_URLS = 0b100


@dataclass
class LocalAddForm:
    path: LocalFeedPath
    post: Post


@dataclass
class RemoteFeedAddForm:
    url: str


@dataclass
class ShowHomePage:
    flags: RefreshFlags = RefreshFlags.NONE


@dataclass
class ShowLocalAddForm:
    pass


@dataclass
class SubmitLocalAddForm:
    form: LocalAddForm


@dataclass
class ShowRemoteFeedAddForm:
    pass


@dataclass
class SubmitRemoteFeedAddForm:
    form: RemoteFeedAddForm


Task = Union[
    ShowHomePage,
    ShowLocalAddForm,
    SubmitLocalAddForm,
    ShowRemoteFeedAddForm,
    SubmitRemoteFeedAddForm,
]

FormPairs = List[Tuple[str, str]]


class TaskSpec(Protocol):
    """What the dispatcher needs to know about an inbound request."""

    def method(self) -> Method: ...

    def url_suffix(self) -> str: ...

    def query_param(self, key: str) -> Optional[str]: ...

    def local_add_form(self) -> FormPairs: ...

    def remote_feed_add_form(self) -> FormPairs: ...


_QUERY_FLAGS = (
    (render.REFRESH_LOCAL, RefreshFlags.LOCAL),
    (render.REFRESH_REMOTE, RefreshFlags.REMOTE),
    (render.REFRESH_REMOTE_URLS, RefreshFlags.REMOTE_URLS),
)


def _home_page_flags(spec: TaskSpec) -> RefreshFlags:
    flags = RefreshFlags.NONE
    for key, flag in _QUERY_FLAGS:
        if spec.query_param(key) is not None:
            flags |= flag
    return flags


def _decode_local_add_form(pairs: FormPairs, state: "State") -> LocalAddForm:
    target = ""
    post = Post()
    for key, value in pairs:
        if not value:
            continue
        if key == render.TARGET:
            target = value
        elif key == render.TITLE:
            post.title = value
        elif key == render.SUMMARY:
            post.summary = value
        elif key == render.CONTENT:
            post.content = value
        elif key == render.LINK:
            post.links.append(value)
        else:
            raise TaskError(f"Unhandled Form pair ({key}, {value})")

    try:
        path = LocalFeedPath(target, state.local_feeds_dir)
    except RrrError as exc:
        raise TaskError(str(exc)) from exc
    if path not in state.local_posts:
        raise TaskError(f"Not a known local feed: {path}")
    return LocalAddForm(path=path, post=post)


def _decode_remote_feed_add_form(pairs: FormPairs) -> RemoteFeedAddForm:
    url = ""
    for key, value in pairs:
        if not value:
            continue
        if key == render.FEED_URL:
            url = value
        else:
            raise TaskError(f"Unhandled Form pair ({key}, {value})")
    return RemoteFeedAddForm(url=url)


def extract_task(spec: TaskSpec, state: "State") -> Task:
    method = spec.method()
    url = spec.url_suffix()

    if method is Method.GET and url == "/":
        return ShowHomePage(_home_page_flags(spec))
    if method is Method.GET and url == render.LOCAL_ADD:
        return ShowLocalAddForm()
    if method is Method.POST and url == render.LOCAL_ADD:
        return SubmitLocalAddForm(_decode_local_add_form(spec.local_add_form(), state))
    if method is Method.GET and url == render.REMOTE_ADD:
        return ShowRemoteFeedAddForm()
    if method is Method.POST and url == render.REMOTE_ADD:
        return SubmitRemoteFeedAddForm(_decode_remote_feed_add_form(spec.remote_feed_add_form()))

    LOGGER.debug("No task for %s %s", method, url)
    raise TaskError(f"No known task for HTTP {method} method at url {url}")
