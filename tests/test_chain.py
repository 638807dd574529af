from dataclasses import dataclass, field
from typing import Any

from udpgate.address import EndpointAddress
from udpgate.chain import FilterChain, FilterInstance
from udpgate.endpoint import Endpoint
from udpgate.filters import Filter, FilterConfig


@dataclass
class ReadContext:
    endpoints: list
    source: EndpointAddress
    contents: bytearray
    metadata: dict = field(default_factory=dict)


@dataclass
class WriteContext:
    endpoint: Endpoint
    source: EndpointAddress
    dest: EndpointAddress
    contents: bytearray
    metadata: dict = field(default_factory=dict)


def _append_metadata(metadata, key):
    if key in metadata:
        metadata[key] = metadata[key] + ":receive"
    else:
        metadata[key] = "receive"


class EchoFilter(Filter):
    NAME = "TestFilter"

    def read(self, ctx):
        ctx.contents += f":odr:{ctx.source}".encode()
        _append_metadata(ctx.metadata, "downstream")
        return True

    def write(self, ctx):
        ctx.contents += f":our:{ctx.source}:{ctx.dest}".encode()
        _append_metadata(ctx.metadata, "upstream")
        return True


class QuietFilter(Filter):
    pass


@dataclass
class Recorder(Filter):
    label: str
    log: list
    passes: bool = True

    def read(self, ctx):
        self.log.append(self.label)
        return self.passes

    def write(self, ctx):
        self.log.append(self.label)
        return self.passes


def endpoints():
    return [Endpoint.parse("127.0.0.1:80"), Endpoint.parse("127.0.0.1:90")]


def instance(f, config: Any = None):
    return FilterInstance(config=config, filter=f)


def test_chain_single_test_filter():
    chain = FilterChain([(EchoFilter.NAME, instance(EchoFilter()))])
    fixture = endpoints()
    ctx = ReadContext(list(fixture), EndpointAddress.parse("127.0.0.1:70"), bytearray(b"hello"))
    assert chain.read(ctx) is True
    assert ctx.endpoints == fixture
    assert bytes(ctx.contents) == b"hello:odr:127.0.0.1:70"
    assert ctx.metadata["downstream"] == "receive"

    wctx = WriteContext(
        fixture[0], fixture[0].address, EndpointAddress.parse("127.0.0.1:70"), bytearray(b"hello")
    )
    assert chain.write(wctx) is True
    assert wctx.metadata["upstream"] == "receive"
    assert bytes(wctx.contents) == b"hello:our:127.0.0.1:80:127.0.0.1:70"


def test_chain_double_test_filter():
    chain = FilterChain(
        [
            (EchoFilter.NAME, instance(EchoFilter())),
            (EchoFilter.NAME, instance(EchoFilter())),
        ]
    )
    fixture = endpoints()
    ctx = ReadContext(list(fixture), EndpointAddress.parse("127.0.0.1:70"), bytearray(b"hello"))
    assert chain.read(ctx) is True
    assert ctx.endpoints == fixture
    assert bytes(ctx.contents) == b"hello:odr:127.0.0.1:70:odr:127.0.0.1:70"
    assert ctx.metadata["downstream"] == "receive:receive"

    wctx = WriteContext(
        fixture[0], fixture[0].address, EndpointAddress.parse("127.0.0.1:70"), bytearray(b"hello")
    )
    assert chain.write(wctx) is True
    assert (
        bytes(wctx.contents)
        == b"hello:our:127.0.0.1:80:127.0.0.1:70:our:127.0.0.1:80:127.0.0.1:70"
    )
    assert wctx.metadata["upstream"] == "receive:receive"


def test_get_configs():
    chain = FilterChain(
        [
            ("TestFilter", instance(EchoFilter())),
            ("TestFilter2", instance(QuietFilter(), {"k1": "v1", "k2": 2})),
        ]
    )
    assert list(chain.configs()) == [
        FilterConfig("TestFilter", None),
        FilterConfig("TestFilter2", {"k1": "v1", "k2": 2}),
    ]


def test_to_list_keeps_null_config():
    chain = FilterChain([("TestFilter", instance(EchoFilter()))])
    assert chain.to_list() == [{"name": "TestFilter", "config": None}]


def test_len_and_index():
    first = instance(EchoFilter())
    chain = FilterChain([("a", first), ("b", instance(QuietFilter()))])
    assert len(chain) == 2
    assert chain[0] == ("a", first)
    assert chain[1][0] == "b"
    assert len(FilterChain()) == 0


def test_read_order_and_write_reverse_order():
    log = []
    chain = FilterChain(
        [("a", instance(Recorder("a", log))), ("b", instance(Recorder("b", log)))]
    )
    assert chain.read(object()) is True
    assert log == ["a", "b"]
    log.clear()
    assert chain.write(object()) is True
    assert log == ["b", "a"]


def test_drop_stops_chain_and_counts():
    log = []
    chain = FilterChain(
        [
            ("a", instance(Recorder("a", log))),
            ("drop", instance(Recorder("drop", log, passes=False))),
            ("c", instance(Recorder("c", log))),
        ]
    )
    assert chain.read(object()) is False
    assert log == ["a", "drop"]
    assert chain.dropped_reads["drop"] == 1
    log.clear()
    assert chain.write(object()) is False
    assert log == ["c", "drop"]
    assert chain.dropped_writes["drop"] == 1
    assert chain.dropped_reads["a"] == 0


def test_empty_chain_passes():
    ctx = ReadContext([], EndpointAddress.parse("127.0.0.1:70"), bytearray(b"x"))
    assert FilterChain().read(ctx) is True
    assert bytes(ctx.contents) == b"x"


def test_equality_compares_names_and_configs():
    lhs = FilterChain([("a", instance(EchoFilter(), {"x": 1}))])
    same = FilterChain([("a", instance(QuietFilter(), {"x": 1}))])
    other_config = FilterChain([("a", instance(EchoFilter(), {"x": 2}))])
    other_name = FilterChain([("b", instance(EchoFilter(), {"x": 1}))])
    assert lhs == same
    assert not lhs == other_config
    assert not lhs == other_name


def test_chain_is_a_filter_and_nests():
    inner = FilterChain([("t", instance(EchoFilter()))])
    outer = FilterChain([("inner", instance(inner)), ("t", instance(EchoFilter()))])
    ctx = ReadContext([], EndpointAddress.parse("127.0.0.1:70"), bytearray(b"hello"))
    assert outer.read(ctx) is True
    assert bytes(ctx.contents) == b"hello:odr:127.0.0.1:70:odr:127.0.0.1:70"