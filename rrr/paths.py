"""Validated filesystem locations under the data root."""
from __future__ import annotations

import os
from functools import total_ordering
from pathlib import Path
from typing import Union

from .errors import BadPrefixError, MustBeDirError

REMOTE_FEEDS = "remote-feeds"
LOCAL_FEEDS = "local-feeds"

PathLike = Union[str, "os.PathLike[str]"]


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` if needed and return its canonical form."""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")
    return directory.resolve()


class Root:
    def __init__(self, path: PathLike) -> None:
        path = Path(path)
        if not path.is_dir():
            raise MustBeDirError()
        self.path = path

    def path_to(self, file_name: PathLike) -> Path:
        return self.path / file_name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Root):
            return NotImplemented
        return self.path.resolve() == other.path.resolve()

    def __hash__(self) -> int:
        return hash(self.path.resolve())

    def __str__(self) -> str:
        return str(self.path)


class LocalFeedsDir:
    def __init__(self, root: Root) -> None:
        self.path = ensure_directory(root.path_to(LOCAL_FEEDS))

    def __fspath__(self) -> str:
        return str(self.path)


@total_ordering
class LocalFeedPath:
    """A path known to sit inside a LocalFeedsDir.

    The constructor is the only way to get one, and it checks the prefix.
    """

    __slots__ = ("_path",)

    def __init__(self, path: PathLike, local_feeds_dir: LocalFeedsDir) -> None:
        candidate = Path(os.path.normpath(os.fspath(path)))
        parent = local_feeds_dir.path
        if candidate == parent or parent not in candidate.parents:
            raise BadPrefixError()
        self._path = candidate

    @property
    def path(self) -> Path:
        return self._path

    def __fspath__(self) -> str:
        return str(self._path)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalFeedPath):
            return NotImplemented
        return self._path == other._path

    def __lt__(self, other: "LocalFeedPath") -> bool:
        if not isinstance(other, LocalFeedPath):
            return NotImplemented
        return self._path < other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"LocalFeedPath({str(self._path)!r})"

    def __str__(self) -> str:
        return str(self._path)
