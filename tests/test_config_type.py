import json
from dataclasses import dataclass

import pytest

from udpgate.capture_config import Config
from udpgate.capture_strategies import Suffix
from udpgate.config_type import ConfigType, get_json_config
from udpgate.filters import FilterError


@dataclass
class SampleConfig:
    name: str
    value: int


def _decode(raw: bytes) -> Config:
    return Config.from_proto(json.loads(raw))


def test_get_json_config():
    config = SampleConfig("bebop", 98)
    assert get_json_config("my-filter", config) == {"name": "bebop", "value": 98}


def test_get_json_config_uses_to_dict():
    config = Config("key", Suffix(size=3, remove=True))
    assert get_json_config("f", config) == {
        "metadataKey": "key",
        "suffix": {"size": 3, "remove": True},
    }


def test_get_json_config_failure():
    with pytest.raises(FilterError, match="filter `f`: failed to serialize config to json"):
        get_json_config("f", {"a": object()})


def test_static_deserialize():
    data = {"metadataKey": "key", "suffix": {"size": 3}}
    json_value, config = ConfigType(data).deserialize("capture", Config.from_dict)
    assert config == Config("key", Suffix(size=3, remove=False))
    assert json_value == {"metadataKey": "key", "suffix": {"size": 3, "remove": False}}


def test_static_deserialize_failure():
    data = {"suffix": {"size": "WRONG"}}
    with pytest.raises(FilterError, match="filter `capture`: failed to YAML deserialize config"):
        ConfigType(data).deserialize("capture", Config.from_dict)


def test_dynamic_deserialize():
    raw = json.dumps(
        {"metadata_key": "foobar", "strategy": {"suffix": {"size": 42, "remove": True}}}
    ).encode()
    json_value, config = ConfigType(raw, dynamic=True).deserialize(
        "capture", Config.from_dict, _decode
    )
    assert config == Config("foobar", Suffix(size=42, remove=True))
    assert json_value["metadataKey"] == "foobar"


def test_dynamic_decode_error():
    with pytest.raises(FilterError, match="filter `capture`: config decode error"):
        ConfigType(b"not json", dynamic=True).deserialize("capture", Config.from_dict, _decode)


def test_dynamic_conversion_error_passes_through():
    raw = json.dumps({"metadata_key": "foobar"}).encode()
    with pytest.raises(FilterError, match="strategy"):
        ConfigType(raw, dynamic=True).deserialize("capture", Config.from_dict, _decode)


def test_dynamic_without_decoder():
    with pytest.raises(FilterError, match="config decode error"):
        ConfigType(b"{}", dynamic=True).deserialize("capture", Config.from_dict)


def test_to_json_static():
    assert ConfigType({"k1": "v1", "k2": 2}).to_json() == {"k1": "v1", "k2": 2}


def test_to_json_dynamic_fails():
    with pytest.raises(ValueError, match="Protobuf configs can't be serialized."):
        ConfigType(b"", dynamic=True).to_json()