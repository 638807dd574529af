"""Strategies for capturing bytes out of a packet."""

from __future__ import annotations

import abc
import logging
import re
from dataclasses import dataclass
from typing import Union

CapturedValue = Union[bytes, "list[bytes]"]

_log = logging.getLogger(__name__)
_MAX_SIZE = 0xFFFFFFFF
_WARN_EVERY = 1000


@dataclass
class CaptureMetrics:
    """Counters kept while capturing packet data."""

    packets_dropped_total: int = 0


def _validate_size(size: object) -> None:
    if isinstance(size, bool) or not isinstance(size, int):
        raise TypeError(f"capture size must be an integer, got {type(size).__name__}")
    if not 0 <= size <= _MAX_SIZE:
        raise ValueError(f"capture size out of range: {size}")


def _is_valid_size(contents: bytearray, size: int, metrics: CaptureMetrics) -> bool:
    """Check the packet is long enough, counting and sometimes logging a drop."""
    if len(contents) >= size:
        return True
    if metrics.packets_dropped_total % _WARN_EVERY == 0:
        _log.warning(
            "Packets are being dropped due to their length being less than %d bytes (count: %d)",
            size,
            metrics.packets_dropped_total,
        )
    metrics.packets_dropped_total += 1
    return False


class CaptureStrategy(abc.ABC):
    """A way of capturing data from a packet's contents."""

    @abc.abstractmethod
    def capture(self, contents: bytearray, metrics: CaptureMetrics) -> CapturedValue | None:
        """Capture data from `contents`, returning None if nothing was captured."""


@dataclass
class Prefix(CaptureStrategy):
    """Capture `size` bytes from the start of the packet."""

    size: int
    remove: bool = False

    def __post_init__(self) -> None:
        _validate_size(self.size)

    def capture(self, contents: bytearray, metrics: CaptureMetrics) -> bytes | None:
        if not _is_valid_size(contents, self.size, metrics):
            return None
        captured = bytes(contents[: self.size])
        if self.remove:
            del contents[: self.size]
        return captured


@dataclass
class Suffix(CaptureStrategy):
    """Capture `size` bytes from the end of the packet."""

    size: int
    remove: bool = False

    def __post_init__(self) -> None:
        _validate_size(self.size)

    def capture(self, contents: bytearray, metrics: CaptureMetrics) -> bytes | None:
        if not _is_valid_size(contents, self.size, metrics):
            return None
        index = len(contents) - self.size
        captured = bytes(contents[index:])
        if self.remove:
            del contents[index:]
        return captured


@dataclass(eq=False)
class Regex(CaptureStrategy):
    """Capture every match of a regular expression in the packet.

    A single match is returned as bytes, several as a list of bytes.
    """

    pattern: re.Pattern

    def __post_init__(self) -> None:
        source = self.pattern
        if isinstance(source, re.Pattern):
            source = source.pattern
        if isinstance(source, str):
            source = source.encode("utf-8")
        if not isinstance(source, (bytes, bytearray)):
            raise TypeError(f"regex pattern must be text or bytes, got {type(source).__name__}")
        try:
            self.pattern = re.compile(bytes(source))
        except re.error as error:
            raise ValueError(f"invalid regex {source!r}: {error}") from error

    def capture(self, contents: bytearray, metrics: CaptureMetrics) -> CapturedValue | None:
        matches = [match.group(0) for match in self.pattern.finditer(bytes(contents))]
        if len(matches) > 1:
            return matches
        return matches[0] if matches else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Regex):
            return NotImplemented
        return self.pattern.pattern == other.pattern.pattern

    def __hash__(self) -> int:
        return hash(self.pattern.pattern)