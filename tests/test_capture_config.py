import pytest

from udpgate.capture_config import (
    CAPTURED_BYTES,
    Config,
    ConvertProtoConfigError,
    strategy_from_dict,
    strategy_to_dict,
)
from udpgate.capture_strategies import Prefix, Regex, Suffix
from udpgate.filters import FilterError

TOKEN_KEY = "TOKEN"


def test_convert_proto_config():
    message = {
        "strategy": {"suffix": {"size": 42, "remove": True}},
        "metadata_key": "foobar",
    }
    assert Config.from_proto(message) == Config("foobar", Suffix(size=42, remove=True))


def test_factory_valid_config_all():
    config = Config.from_dict({"metadataKey": TOKEN_KEY, "suffix": {"size": 3, "remove": True}})
    assert config == Config(TOKEN_KEY, Suffix(size=3, remove=True))


def test_factory_valid_config_defaults():
    config = Config.from_dict({"suffix": {"size": 3}})
    assert config.metadata_key == CAPTURED_BYTES
    assert config.strategy == Suffix(size=3, remove=False)


def test_invalid_config():
    with pytest.raises(ValueError):
        Config.from_dict({"suffix": {"size": "WRONG"}})


def test_multiple_strategies_rejected():
    with pytest.raises(ValueError, match="Multiple strategies"):
        Config.from_dict({"prefix": {"size": 1}, "suffix": {"size": 1}})


def test_missing_strategy_rejected():
    with pytest.raises(ValueError, match="is required"):
        Config.from_dict({"metadataKey": TOKEN_KEY})


def test_unknown_field_rejected():
    with pytest.raises(ValueError, match="unknown field"):
        Config.from_dict({"suffix": {"size": 3}, "other": 1})


@pytest.mark.parametrize(
    "strategy",
    [Prefix(size=3, remove=True), Suffix(size=5), Regex(".{3}$")],
)
def test_dict_round_trip(strategy):
    config = Config(TOKEN_KEY, strategy)
    assert Config.from_dict(config.to_dict()) == config


@pytest.mark.parametrize(
    "strategy",
    [Prefix(size=3, remove=True), Suffix(size=5), Regex(".{3}$")],
)
def test_proto_round_trip(strategy):
    config = Config(TOKEN_KEY, strategy)
    assert Config.from_proto(config.to_proto()) == config


def test_to_dict_shape():
    config = Config(TOKEN_KEY, Regex(".{3}$"))
    assert config.to_dict() == {"metadataKey": TOKEN_KEY, "regex": {"pattern": ".{3}$"}}


def test_proto_missing_strategy():
    with pytest.raises(ConvertProtoConfigError) as info:
        Config.from_proto({"metadata_key": "foobar"})
    assert info.value.field == "strategy"


def test_proto_missing_metadata_key():
    with pytest.raises(ConvertProtoConfigError) as info:
        Config.from_proto({"strategy": {"prefix": {"size": 1}}})
    assert info.value.field == "metadata_key"


def test_proto_missing_regex():
    with pytest.raises(ConvertProtoConfigError) as info:
        Config.from_proto({"metadata_key": "foobar", "strategy": {"regex": {}}})
    assert info.value.field == "Regex.regex"


def test_proto_invalid_regex():
    with pytest.raises(FilterError):
        Config.from_proto({"metadata_key": "foobar", "strategy": {"regex": {"regex": "("}}})


def test_proto_remove_defaults_to_false():
    config = Config.from_proto({"metadata_key": "foobar", "strategy": {"prefix": {"size": 2}}})
    assert config.strategy == Prefix(size=2, remove=False)


@pytest.mark.parametrize(
    "strategy",
    [Prefix(size=3, remove=True), Suffix(size=5), Regex("abc")],
)
def test_tagged_strategy_round_trip(strategy):
    assert strategy_from_dict(strategy_to_dict(strategy)) == strategy


def test_tagged_strategy_kind():
    assert strategy_to_dict(Suffix(size=3))["kind"] == "SUFFIX"


def test_tagged_strategy_unknown_kind():
    with pytest.raises(ValueError):
        strategy_from_dict({"kind": "MIDDLE", "size": 3})