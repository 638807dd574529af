# udpgate

Building blocks for a UDP proxy that routes packets between game clients and
game servers: endpoint addresses, endpoint metadata, localities, packet filter
chains, a capture filter and game server resources.

## Modules

- `udpgate.address`: `EndpointAddress`, a host plus an optional port. The
  host is an `ipaddress` object or a DNS name (`parse_host` decides which).
  `EndpointAddress.parse("host:port")` checks that the string resolves to a
  socket address, looking up names through DNS. `to_socket_addr()` returns an
  `(ip, port)` pair, and `effective_port()` gives 0 when no port was given.
  Addresses order names before IPs and IPv4 before IPv6.
- `udpgate.endpoint`: `Endpoint` pairs an address with `Metadata`, a set of
  binary tokens. `to_dict`/`from_dict` give the serialised form, in which
  tokens are base64 strings nested under the `quilkin.dev` key. Bad metadata
  raises `MetadataError`. Endpoints order by address, and an `Endpoint`
  compares equal to an `EndpointAddress` with the same address.
- `udpgate.locality`: `Locality` (region, zone, sub-zone) and
  `LocalityEndpoints`, a sorted set of endpoints that are unique by address,
  with an optional locality. `LocalitySet` merges entries that share a
  locality.
- `udpgate.slot`: `Slot`, a thread-safe holder for a value that can be
  swapped. It takes an optional `default_factory` for loads while it is empty,
  and an optional watcher that is called on every change (`store`, `remove`,
  `store_if_unset`, `try_replace`, `modify`).
- `udpgate.errors`: `ValidationError` and its subclasses `NotUniqueError`,
  `EmptyListError` and `ValueInvalidError`.
- `udpgate.filters`: the `Filter` base class, whose `read` and `write` return
  True to pass a packet on and False to drop it. Also `StaticFilter` for named
  filters built from a configuration, `FilterConfig`, `FilterError` and
  `MissingConfigError`.
- `udpgate.chain`: `FilterChain` runs `FilterInstance`s in order on `read`
  and in reverse order on `write`, and stops at the first filter that drops
  the packet. Drops are counted per filter name in `dropped_reads` and
  `dropped_writes`.
- `udpgate.capture_strategies`: `Prefix`, `Suffix` and `Regex` capture
  strategies, and `CaptureMetrics`, which counts the packets that were too
  short to capture from.
- `udpgate.capture_config`: `Config` for the capture filter, with its mapping
  form (`from_dict`/`to_dict`) and its binary-message form
  (`from_proto`/`to_proto`). The strategy helpers are `strategy_from_dict` and
  `strategy_to_dict`.
- `udpgate.capture`: `Capture`, the filter that stores captured bytes in the
  packet's metadata.
- `udpgate.config_type`: `ConfigType`, a filter configuration that is either a
  static JSON value or dynamic encoded bytes. `get_json_config` gives the JSON
  form of a parsed configuration.
- `udpgate.agones`: the game server resource (`GameServer`, `GameServerSpec`,
  `GameServerStatus` and related types). `GameServer.to_endpoint()` turns a
  server into an endpoint, reading its tokens from the `quilkin.dev/tokens`
  annotation. `endpoints_from_game_servers` does the same for many servers.

## Installation

```
pip install udpgate
```

To run the tests:

```
pip install "udpgate[test]"
pytest
```

## Examples

Endpoints and localities:

```python
from udpgate.address import EndpointAddress
from udpgate.endpoint import Endpoint, Metadata
from udpgate.locality import Locality, LocalityEndpoints, LocalitySet

address = EndpointAddress.parse("127.0.0.1:7777")
endpoint = Endpoint.with_metadata(address, Metadata(tokens={b"abc"}))

print(endpoint.to_dict())
# {'address': '127.0.0.1:7777', 'metadata': {'quilkin.dev': {'tokens': ['YWJj']}}}

localities = LocalitySet([
    LocalityEndpoints([endpoint]).with_locality(Locality(region="eu")),
])
print(len(localities))  # 1
```

Capturing a token from the end of each packet. Filters work on any context
object that has a `contents` attribute (bytes or a bytearray) and a `metadata`
dict:

```python
from types import SimpleNamespace

from udpgate.capture import Capture
from udpgate.capture_config import Config

capture = Capture.try_from_config(
    Config.from_dict({"metadataKey": "token", "suffix": {"size": 3, "remove": True}})
)

ctx = SimpleNamespace(contents=b"helloabc", metadata={})
assert capture.read(ctx)
print(bytes(ctx.contents))   # b'hello'
print(ctx.metadata)          # {'token/is_present': True, 'token': b'abc'}
```

A packet shorter than the capture size is dropped, `read` returns False, and
the drop is counted in `capture.metrics.packets_dropped_total`.

## What this package does not do

It has no proxy. It opens no sockets, forwards no packets and has no command
to run. It also has no packet context classes of its own, no registry for
building filters by name, and no other filters besides `Capture`. Nothing
watches configuration files or a Kubernetes cluster: `udpgate.agones` only
models game server resources and converts them. You supply the network side
and the contexts that the filters run on.