"""Exceptions raised by the aggregation core.

I/O failures are left as the built-in OSError family.
"""
from __future__ import annotations

from typing import Any


class RrrError(Exception):
    pass


class MustBeDirError(RrrError):
    def __init__(self, message: str = "Root dir must be a dir") -> None:
        super().__init__(message)


class BadPrefixError(RrrError):
    def __init__(self, message: str = "Bad local path prefix") -> None:
        super().__init__(message)


class UrlParseError(RrrError):
    pass


class FetchError(RrrError):
    pass


class FeedFormatError(RrrError):
    pass


class MissingLocalFileError(RrrError):
    def __init__(self, message: str = "Local file did not exist") -> None:
        super().__init__(message)


class TaskError(RrrError):
    pass


class LockUnavailableError(RrrError):
    def __init__(self, message: str = "State is unavailable after a failed task") -> None:
        super().__init__(message)


class FormError(RrrError):
    """A mutation failed; ``form`` holds what the user submitted."""

    def __init__(self, form: Any, error: BaseException) -> None:
        super().__init__(str(error))
        self.form = form
        self.error = error


class RenderError(RrrError):
    pass
