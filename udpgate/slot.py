"""A thread-safe, swappable value holder with change notification."""

from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class Slot(Generic[T]):
    """A mutable location holding an optional value, with an optional watcher.

    When empty, `load` returns a fresh value from `default_factory`
    (or None when no factory was given).
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(
        self,
        value: Optional[T] = None,
        default_factory: Optional[Callable[[], T]] = None,
    ) -> None:
        self._value = value
        self._default_factory = default_factory
        self._watcher: Optional[Callable[[T], Any]] = None
        self._lock = threading.RLock()

    @classmethod
    def empty(cls, default_factory: Optional[Callable[[], T]] = None) -> Slot[T]:
        """Create a slot holding no value."""
        return cls(None, default_factory)

    @classmethod
    def with_default(cls, default_factory: Callable[[], T]) -> Slot[T]:
        """Create a slot holding the default value."""
        return cls(default_factory(), default_factory)

    def watch(self, watcher: Callable[[T], Any]) -> None:
        """Set the function called with the new value whenever it changes."""
        with self._lock:
            self._watcher = watcher

    def is_some(self) -> bool:
        """Whether the slot holds a value."""
        with self._lock:
            return self._value is not None

    def _default(self) -> Optional[T]:
        return None if self._default_factory is None else self._default_factory()

    def load(self) -> Optional[T]:
        """The current value, or the default when empty."""
        with self._lock:
            value = self._value
        return self._default() if value is None else value

    def _call_watcher(self) -> None:
        with self._lock:
            watcher = self._watcher
        if watcher is not None:
            watcher(self.load())

    def _store_opt(self, value: Optional[T]) -> None:
        with self._lock:
            self._value = value
        self._call_watcher()

    def store(self, value: T) -> None:
        """Replace the value in the slot."""
        self._store_opt(value)

    def remove(self) -> None:
        """Empty the slot."""
        self._store_opt(None)

    def store_if_unset(self, value: T) -> None:
        """Store `value` only if the slot is empty."""
        with self._lock:
            if self._value is not None:
                return
            self._value = value
        self._call_watcher()

    def try_replace(self, other: Slot[T]) -> None:
        """Take `other`'s value, if it has one that differs from ours."""
        with other._lock:
            value = other._value
        if value is not None and self.load() != value:
            self.store(value)

    def modify(self, modify: Callable[[T], Optional[T]]) -> None:
        """Apply `modify` to a copy of the current value and store the result.

        `modify` may change its argument in place or return a replacement.
        """
        with self._lock:
            current = self._value
            current = self._default() if current is None else copy.deepcopy(current)
            result = modify(current)
            self._value = current if result is None else result
        self._call_watcher()

    def read(self, ctx: Any) -> Any:
        """Run the held filter's `read` on `ctx`."""
        return self.load().read(ctx)

    def write(self, ctx: Any) -> Any:
        """Run the held filter's `write` on `ctx`."""
        return self.load().write(ctx)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Slot):
            return NotImplemented
        with self._lock:
            mine = self._value
        with other._lock:
            theirs = other._value
        return mine == theirs

    def __repr__(self) -> str:
        return f"Slot({self._value!r})"