"""All-or-nothing file replacement."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable, TypeVar, Union

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def write_atomically(path: Union[str, os.PathLike], write: Callable[[BinaryIO], T]) -> T:
    """Call ``write`` with a temp file beside ``path``, then rename it into place.

    If ``write`` raises, or anything before the rename fails, ``path`` is left
    untouched and the temp file is removed.
    """
    target = Path(path)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            result = write(handle)
            handle.flush()
            os.fsync(handle.fileno())
        if target.exists():
            os.chmod(tmp, target.stat().st_mode & 0o7777)
        os.replace(tmp, target)
    except BaseException:
        try:
            os.remove(tmp)
        except FileNotFoundError:
            pass
        raise
    LOGGER.debug("Atomically replaced %s", target)
    return result
