"""Core filter types for processing packets."""

from __future__ import annotations

import abc
import json
from dataclasses import dataclass
from typing import Any, ClassVar, Optional


class FilterError(Exception):
    """A filter could not be created or configured."""


class MissingConfigError(FilterError):
    """A filter that needs a configuration was given none."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"filter `{name}` requires a configuration")


@dataclass(frozen=True)
class FilterConfig:
    """The name of a filter with its optional JSON configuration."""

    name: str
    config: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "config": self.config}


class Filter:
    """Routes and manipulates packets.

    `read` runs on packets travelling from a downstream client towards an
    upstream endpoint, `write` on packets going the other way. Each returns
    True if processing should go on and False if the packet is dropped.
    By default the context passes through unchanged.
    """

    def read(self, ctx: Any) -> bool:
        """Process a packet received from downstream."""
        return True

    def write(self, ctx: Any) -> bool:
        """Process a packet about to be sent downstream."""
        return True


def _to_json_value(name: str, config: Any) -> Any:
    value = config.to_dict() if hasattr(config, "to_dict") else config
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as error:
        raise FilterError(f"filter `{name}`: failed to serialize config to json: {error}") from error


class StaticFilter(Filter, abc.ABC):
    """A filter with a globally unique name built from a configuration."""

    NAME: ClassVar[str]

    @classmethod
    @abc.abstractmethod
    def try_from_config(cls, config: Optional[Any]) -> StaticFilter:
        """Create the filter from `config`, raising FilterError if it is invalid."""

    @classmethod
    def from_config(cls, config: Optional[Any]) -> StaticFilter:
        """Create the filter from `config`; an invalid config raises."""
        return cls.try_from_config(config)

    @classmethod
    def ensure_config_exists(cls, config: Optional[Any]) -> Any:
        """Return `config`, raising MissingConfigError if there is none."""
        if config is None:
            raise MissingConfigError(cls.NAME)
        return config

    @classmethod
    def as_filter_config(cls, config: Optional[Any]) -> FilterConfig:
        """Describe this filter with `config` as a named JSON configuration."""
        value = None if config is None else _to_json_value(cls.NAME, config)
        return FilterConfig(cls.NAME, value)