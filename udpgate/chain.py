"""A chain of filters executed in order."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from udpgate.filters import Filter, FilterConfig

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FilterInstance:
    """A created filter together with the JSON configuration it came from."""

    config: Any
    filter: Filter


class FilterChain(Filter):
    """Runs filters in order on `read` and in reverse order on `write`.

    If any filter drops the packet the chain stops and drops it too.
    Drops are counted per filter name in `dropped_reads` and `dropped_writes`.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, filters: Iterable[tuple[str, FilterInstance]] = ()) -> None:
        self._filters: list[tuple[str, FilterInstance]] = [
            (name, instance) for name, instance in filters
        ]
        self.dropped_reads: Counter[str] = Counter()
        self.dropped_writes: Counter[str] = Counter()

    def __len__(self) -> int:
        return len(self._filters)

    def __getitem__(self, index: int) -> tuple[str, FilterInstance]:
        return self._filters[index]

    def configs(self) -> Iterator[FilterConfig]:
        """Each filter's name and config; a null config is given as None."""
        for name, instance in self._filters:
            yield FilterConfig(name, instance.config)

    def to_list(self) -> list[dict[str, Any]]:
        """Serialise as a list of `{"name": ..., "config": ...}` mappings."""
        return [{"name": name, "config": instance.config} for name, instance in self._filters]

    def read(self, ctx: Any) -> bool:
        for name, instance in self._filters:
            if not instance.filter.read(ctx):
                _log.debug("read dropping packet", extra={"filter": name})
                self.dropped_reads[name] += 1
                return False
        return True

    def write(self, ctx: Any) -> bool:
        for name, instance in reversed(self._filters):
            if not instance.filter.write(ctx):
                _log.debug("write dropping packet", extra={"filter": name})
                self.dropped_writes[name] += 1
                return False
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterChain):
            return NotImplemented
        # Pairwise comparison over the shorter of the two chains.
        return all(
            lhs_name == rhs_name and lhs.config == rhs.config
            for (lhs_name, lhs), (rhs_name, rhs) in zip(self._filters, other._filters)
        )

    def __repr__(self) -> str:
        inner = ", ".join(f"{name}={instance.config!r}" for name, instance in self._filters)
        return f"FilterChain({inner})"