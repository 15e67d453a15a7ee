"""Serialized access to the single State instance."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from .errors import LockUnavailableError, RrrError
from .state import State

LOGGER = logging.getLogger(__name__)


class StateGuard:
    """One lock around one State.

    An unexpected exception while the lock is held poisons the guard; every
    later ``locked()`` raises LockUnavailableError instead of handing out a
    State that may be half-updated. Expected failures (RrrError, OSError) do not.
    """

    def __init__(self, state: State) -> None:
        self._state = state
        self._lock = threading.Lock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    @contextmanager
    def locked(self) -> Iterator[State]:
        with self._lock:
            if self._poisoned:
                raise LockUnavailableError()
            try:
                yield self._state
            except (RrrError, OSError):
                raise
            except Exception:
                self._poisoned = True
                LOGGER.exception("Task failed while holding the state lock; refusing further tasks")
                raise
