"""HTML rendering of a read-only view of the aggregation state."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from .errors import RenderError
from .syndicated import Post
from .timestamp import Timestamp

LOCAL_ADD = "/local-add"
REMOTE_ADD = "/remote-add"

REFRESH_LOCAL = "refresh-local"
REFRESH_REMOTE = "refresh-remote"
REFRESH_REMOTE_URLS = "refresh-remote-urls"

TARGET = "target"
TITLE = "title"
SUMMARY = "summary"
CONTENT = "content"
LINK = "link"
FEED_URL = "feed-url"

LINK_INPUTS = 2


class SectionKind(enum.Enum):
    LOCAL = "local"
    REMOTE = "remote"


class RefreshKind(enum.Enum):
    LOCAL = ("Local posts", REFRESH_LOCAL)
    REMOTE = ("Remote posts", REFRESH_REMOTE)
    REMOTE_URLS = ("Remote feed list", REFRESH_REMOTE_URLS)

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def param(self) -> str:
        return self.value[1]


@dataclass(frozen=True)
class Section:
    kind: SectionKind
    posts: Sequence[Post]
    timestamp: Timestamp
    label: str = ""


@dataclass(frozen=True)
class RefreshTimestamp:
    kind: RefreshKind
    timestamp: Timestamp


@dataclass(frozen=True)
class Data:
    root_display: str
    sections: List[Section] = field(default_factory=list)
    refresh_timestamps: List[RefreshTimestamp] = field(default_factory=list)
    remote_feeds: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Target:
    label: str
    value: str


@dataclass(frozen=True)
class LocalAddForm:
    target: str = ""
    title: str = ""
    summary: str = ""
    content: str = ""
    links: Sequence[str] = ()

    def link_inputs(self) -> List[str]:
        links = list(self.links)
        return links + [""] * max(0, LINK_INPUTS - len(links))


@dataclass(frozen=True)
class RemoteFeedAddForm:
    url: str = ""


_env = Environment(
    loader=PackageLoader("rrr", "templates"),
    autoescape=select_autoescape(default=True),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.globals.update(
    LOCAL_ADD=LOCAL_ADD,
    REMOTE_ADD=REMOTE_ADD,
    TARGET=TARGET,
    TITLE=TITLE,
    SUMMARY=SUMMARY,
    CONTENT=CONTENT,
    LINK=LINK,
    FEED_URL=FEED_URL,
    SectionKind=SectionKind,
)


def _render(template: str, **context: object) -> str:
    try:
        return _env.get_template(template).render(**context)
    except TemplateError as exc:
        raise RenderError(f"{template}: {exc}") from exc


def home_page(data: Data) -> str:
    return _render("home.html", data=data)


def local_add_form(
    targets: Iterable[Target],
    data: Data,
    redisplay: Optional[Tuple[LocalAddForm, str]] = None,
) -> str:
    form, error = redisplay if redisplay is not None else (LocalAddForm(), None)
    return _render("local_add.html", data=data, targets=list(targets), form=form, error=error)


def local_add_form_success(data: Data) -> str:
    return _render("success.html", data=data, message="Post added.", again=LOCAL_ADD)


def remote_feed_add_form(
    data: Data,
    redisplay: Optional[Tuple[RemoteFeedAddForm, str]] = None,
) -> str:
    form, error = redisplay if redisplay is not None else (RemoteFeedAddForm(), None)
    return _render("remote_add.html", data=data, form=form, error=error)


def remote_feed_add_form_success(data: Data) -> str:
    return _render("success.html", data=data, message="Feed added.", again=REMOTE_ADD)
