"""Configuration of the capture filter and its conversions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from udpgate.capture_strategies import CaptureStrategy, Prefix, Regex, Suffix
from udpgate.filters import FilterError

CAPTURED_BYTES = "quilkin.dev/captured"
"""Metadata key used when a configuration names none."""

_KIND_TO_CLASS = {"PREFIX": Prefix, "SUFFIX": Suffix, "REGEX": Regex}
_CLASS_TO_KIND = {cls: kind for kind, cls in _KIND_TO_CLASS.items()}
_FIELD_TO_CLASS = {"prefix": Prefix, "suffix": Suffix, "regex": Regex}
_CLASS_TO_FIELD = {cls: name for name, cls in _FIELD_TO_CLASS.items()}


class ConvertProtoConfigError(FilterError):
    """A binary configuration could not be converted."""

    def __init__(self, reason: str, field: Optional[str] = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(reason if field is None else f"{field}: {reason}")


def _pattern_text(regex: Regex) -> str:
    return regex.pattern.pattern.decode("utf-8")


def _affix_from_dict(cls: type, data: Any) -> CaptureStrategy:
    if not isinstance(data, Mapping):
        raise ValueError(f"{cls.__name__.lower()} strategy must be a mapping")
    if "size" not in data:
        raise ValueError("missing field `size`")
    size = data["size"]
    if isinstance(size, bool) or not isinstance(size, int):
        raise ValueError(f"invalid type for `size`: expected an unsigned integer, got {size!r}")
    remove = data.get("remove", False)
    if not isinstance(remove, bool):
        raise ValueError(f"invalid type for `remove`: expected a boolean, got {remove!r}")
    return cls(size=size, remove=remove)


def _regex_from_dict(data: Any) -> Regex:
    if not isinstance(data, Mapping):
        raise ValueError("regex strategy must be a mapping")
    if "pattern" not in data:
        raise ValueError("missing field `pattern`")
    pattern = data["pattern"]
    if not isinstance(pattern, str):
        raise ValueError(f"invalid type for `pattern`: expected a string, got {pattern!r}")
    return Regex(pattern)


def _body_from_dict(cls: type, data: Any) -> CaptureStrategy:
    if cls is Regex:
        return _regex_from_dict(data)
    return _affix_from_dict(cls, data)


def _body_to_dict(strategy: CaptureStrategy) -> dict[str, Any]:
    if isinstance(strategy, Prefix):
        return {"remove": strategy.remove, "size": strategy.size}
    if isinstance(strategy, Suffix):
        return {"size": strategy.size, "remove": strategy.remove}
    if isinstance(strategy, Regex):
        return {"pattern": _pattern_text(strategy)}
    raise TypeError(f"unsupported capture strategy: {type(strategy).__name__}")


def strategy_from_dict(data: Any) -> CaptureStrategy:
    """Build a strategy from a mapping tagged by `kind` (PREFIX, SUFFIX or REGEX)."""
    if not isinstance(data, Mapping):
        raise ValueError("strategy must be a mapping")
    if "kind" not in data:
        raise ValueError("missing field `kind`")
    kind = data["kind"]
    cls = _KIND_TO_CLASS.get(kind) if isinstance(kind, str) else None
    if cls is None:
        raise ValueError(f"unknown variant `{kind}`, expected one of PREFIX, SUFFIX, REGEX")
    return _body_from_dict(cls, {key: value for key, value in data.items() if key != "kind"})


def strategy_to_dict(strategy: CaptureStrategy) -> dict[str, Any]:
    """Serialise a strategy as a mapping tagged by `kind`."""
    kind = _CLASS_TO_KIND.get(type(strategy))
    if kind is None:
        raise TypeError(f"unsupported capture strategy: {type(strategy).__name__}")
    return {"kind": kind, **_body_to_dict(strategy)}


def _strategy_from_proto(message: Any) -> CaptureStrategy:
    if not isinstance(message, Mapping) or len(message) != 1:
        raise ConvertProtoConfigError("Invalid", "strategy")
    ((name, body),) = message.items()
    if name in ("prefix", "suffix"):
        body = body or {}
        cls = Prefix if name == "prefix" else Suffix
        remove = body.get("remove")
        try:
            return cls(size=body.get("size", 0), remove=bool(remove) if remove is not None else False)
        except (TypeError, ValueError) as error:
            raise ConvertProtoConfigError(str(error), f"{cls.__name__}.size") from error
    if name == "regex":
        pattern = (body or {}).get("regex")
        if pattern is None:
            raise ConvertProtoConfigError("Missing", "Regex.regex")
        try:
            return Regex(pattern)
        except (TypeError, ValueError) as error:
            raise ConvertProtoConfigError(str(error), "Regex.regex") from error
    raise ConvertProtoConfigError(f"Unknown strategy `{name}`", "strategy")


def _strategy_to_proto(strategy: CaptureStrategy) -> dict[str, Any]:
    if isinstance(strategy, Prefix):
        return {"prefix": {"size": strategy.size, "remove": strategy.remove}}
    if isinstance(strategy, Suffix):
        return {"suffix": {"size": strategy.size, "remove": strategy.remove}}
    if isinstance(strategy, Regex):
        return {"regex": {"regex": _pattern_text(strategy)}}
    raise TypeError(f"unsupported capture strategy: {type(strategy).__name__}")


@dataclass
class Config:
    """Where captured bytes are stored and how they are captured.

    Whether a value was captured is stored under `<metadata_key>/is_present`.
    """

    metadata_key: str
    strategy: CaptureStrategy

    def __post_init__(self) -> None:
        if not isinstance(self.metadata_key, str):
            raise TypeError("metadata_key must be a string")
        if not isinstance(self.strategy, CaptureStrategy):
            raise TypeError("strategy must be a CaptureStrategy")

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build from `{"metadataKey": ..., "prefix"|"suffix"|"regex": {...}}`."""
        if not isinstance(data, Mapping):
            raise ValueError("Capture config must be a mapping")
        metadata_key: Optional[str] = None
        strategy: Optional[CaptureStrategy] = None
        for key, value in data.items():
            if key == "metadataKey":
                if not isinstance(value, str):
                    raise ValueError("invalid type for `metadataKey`: expected a string")
                metadata_key = value
            elif key in _FIELD_TO_CLASS:
                if strategy is not None:
                    raise ValueError(
                        "Multiple strategies found, only one capture strategy is permitted"
                    )
                strategy = _body_from_dict(_FIELD_TO_CLASS[key], value)
            else:
                raise ValueError(
                    f"unknown field `{key}`, expected one of metadataKey, prefix, suffix, regex"
                )
        if strategy is None:
            raise ValueError("Capture strategy of `regex`, `suffix`, or `prefix` is required")
        return cls(CAPTURED_BYTES if metadata_key is None else metadata_key, strategy)

    def to_dict(self) -> dict[str, Any]:
        field = _CLASS_TO_FIELD.get(type(self.strategy))
        if field is None:
            raise TypeError(f"unsupported capture strategy: {type(self.strategy).__name__}")
        return {"metadataKey": self.metadata_key, field: _body_to_dict(self.strategy)}

    @classmethod
    def from_proto(cls, message: Mapping[str, Any]) -> Config:
        """Build from a binary message `{"metadata_key": ..., "strategy": {...}}`."""
        strategy = message.get("strategy")
        if strategy is None:
            raise ConvertProtoConfigError("Missing", "strategy")
        metadata_key = message.get("metadata_key")
        if metadata_key is None:
            raise ConvertProtoConfigError("Missing", "metadata_key")
        return cls(str(metadata_key), _strategy_from_proto(strategy))

    def to_proto(self) -> dict[str, Any]:
        return {"metadata_key": self.metadata_key, "strategy": _strategy_to_proto(self.strategy)}