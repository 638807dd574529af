"""Filter configuration from a static (text) or dynamic (binary) source."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

import yaml

from udpgate.filters import FilterError


def _plain_value(config: Any) -> Any:
    to_dict = getattr(config, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(config) and not isinstance(config, type):
        return dataclasses.asdict(config)
    return config


def get_json_config(filter_name: str, config: Any) -> Any:
    """Return the JSON value equivalent to `config`."""
    try:
        return json.loads(json.dumps(_plain_value(config)))
    except (TypeError, ValueError) as error:
        raise FilterError(
            f"filter `{filter_name}`: failed to serialize config to json: {error}"
        ) from error


@dataclass(frozen=True)
class ConfigType:
    """A filter configuration: a JSON value, or encoded bytes when `dynamic`."""

    value: Any
    dynamic: bool = False

    def deserialize(
        self,
        filter_name: str,
        parse_static: Callable[[Any], Any],
        decode_dynamic: Optional[Callable[[bytes], Any]] = None,
    ) -> tuple[Any, Any]:
        """Build the text configuration, returning `(json_value, config)`.

        A static value goes through YAML and `parse_static`; dynamic bytes are
        turned into the text configuration by `decode_dynamic`.
        """
        if self.dynamic:
            if decode_dynamic is None:
                raise FilterError(
                    f"filter `{filter_name}`: config decode error: no decoder available"
                )
            try:
                config = decode_dynamic(bytes(self.value))
            except FilterError:
                raise
            except Exception as error:
                raise FilterError(
                    f"filter `{filter_name}`: config decode error: {error}"
                ) from error
        else:
            try:
                raw = yaml.safe_dump(self.value)
                config = parse_static(yaml.safe_load(raw))
            except (yaml.YAMLError, TypeError, ValueError, KeyError) as error:
                raise FilterError(
                    f"filter `{filter_name}`: failed to YAML deserialize config: {error}"
                ) from error
        return get_json_config(filter_name, config), config

    def to_json(self) -> Any:
        """The static JSON value; binary configurations cannot be serialised."""
        if self.dynamic:
            raise ValueError("Protobuf configs can't be serialized.")
        return self.value