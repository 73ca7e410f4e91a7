"""Once-initialized, thread-safe cache cell.

Used to share a single Release Store lookup across every caller of one
store: the first caller runs the initializer, concurrent callers block
on the lock and then read the stored value.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from .result import Ok, Result

__all__ = ["OnceCell"]


class OnceCell[T]:
    """A cell written at most once.

    `get_or_init` stores a plain value; `get_or_try_init` stores only Ok
    values so a failed lookup (e.g. a network blip) is retried on the next
    call instead of being cached forever.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._set = False
        self._value: T | None = None

    @property
    def is_set(self) -> bool:
        return self._set

    def get(self) -> T | None:
        """Return the stored value, or None if not initialized."""
        return self._value if self._set else None

    def get_or_init(self, init: Callable[[], T]) -> T:
        if self._set:
            return self._value  # type: ignore[return-value]
        with self._lock:
            if not self._set:
                self._value = init()
                self._set = True
        return self._value  # type: ignore[return-value]

    def get_or_try_init[E](self, init: Callable[[], Result[T, E]]) -> Result[T, E]:
        if self._set:
            return Ok(self._value)  # type: ignore[arg-type]
        with self._lock:
            if self._set:
                return Ok(self._value)  # type: ignore[arg-type]
            result = init()
            if isinstance(result, Ok):
                self._value = result.value
                self._set = True
            return result

    def reset(self) -> None:
        """Forget the stored value (tests, long-lived hosts)."""
        with self._lock:
            self._value = None
            self._set = False
