"""Endpoints grouped by the geographic location they live in."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from udpgate.address import EndpointAddress
from udpgate.endpoint import Endpoint, endpoints_from


@dataclass(frozen=True, order=True)
class Locality:
    """The location of an endpoint."""

    region: str = ""
    zone: str = ""
    sub_zone: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"region": self.region, "zone": self.zone, "sub_zone": self.sub_zone}

    @classmethod
    def from_dict(cls, data: Any) -> Locality:
        """Build from a mapping; missing fields default to empty strings."""
        if not isinstance(data, Mapping):
            raise ValueError("locality must be a mapping")
        values = {}
        for name in ("region", "zone", "sub_zone"):
            value = data.get(name, "")
            if not isinstance(value, str):
                raise ValueError(f"locality field `{name}` must be a string")
            values[name] = value
        return cls(**values)


def _endpoint_set(items: Iterable[Endpoint | EndpointAddress]) -> list[Endpoint]:
    """Sorted endpoints, unique by address; a later duplicate wins."""
    by_address: dict[EndpointAddress, Endpoint] = {}
    for endpoint in endpoints_from(items):
        by_address[endpoint.address] = endpoint
    return sorted(by_address.values())


@dataclass
class LocalityEndpoints:
    """A set of endpoints, unique by address, optionally tied to a locality."""

    endpoints: list[Endpoint] = field(default_factory=list)
    locality: Optional[Locality] = None

    def __post_init__(self) -> None:
        items = self.endpoints
        if isinstance(items, (Endpoint, EndpointAddress)):
            items = [items]
        self.endpoints = _endpoint_set(items)

    def with_locality(self, locality: Optional[Locality]) -> LocalityEndpoints:
        """A copy of these endpoints tied to `locality`."""
        return dataclasses.replace(self, endpoints=list(self.endpoints), locality=locality)

    def remove(self, endpoint: Endpoint | EndpointAddress) -> None:
        """Remove the endpoint with the same address, if present."""
        address = endpoint.address if isinstance(endpoint, Endpoint) else endpoint
        self.endpoints = [e for e in self.endpoints if e.address != address]

    def to_dict(self) -> dict[str, Any]:
        return {
            "locality": None if self.locality is None else self.locality.to_dict(),
            "endpoints": [endpoint.to_dict() for endpoint in self.endpoints],
        }

    @classmethod
    def from_dict(cls, data: Any) -> LocalityEndpoints:
        if not isinstance(data, Mapping):
            raise ValueError("locality endpoints must be a mapping")
        if "endpoints" not in data:
            raise ValueError("missing field `endpoints`")
        endpoints = data["endpoints"]
        if not isinstance(endpoints, list):
            raise ValueError("`endpoints` must be a list")
        locality = data.get("locality")
        return cls(
            [Endpoint.from_dict(item) for item in endpoints],
            None if locality is None else Locality.from_dict(locality),
        )


class LocalitySet:
    """Endpoints grouped by locality; duplicate localities are merged."""

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, localities: Iterable[LocalityEndpoints] = ()) -> None:
        self._map: dict[Optional[Locality], LocalityEndpoints] = {}
        for locality in localities:
            self.insert(locality)

    def insert(self, locality: LocalityEndpoints) -> None:
        """Add a group of endpoints, merging with any group of the same locality."""
        key = locality.locality
        entry = self._map.get(key)
        if entry is None:
            entry = LocalityEndpoints(locality=key)
            self._map[key] = entry
        entry.locality = key
        entry.endpoints = _endpoint_set([*entry.endpoints, *locality.endpoints])

    def remove(self, key: Optional[Locality]) -> Optional[LocalityEndpoints]:
        """Remove and return the group for `key` (None: endpoints with no locality)."""
        return self._map.pop(key, None)

    def clear(self) -> None:
        self._map.clear()

    def __iter__(self) -> Iterator[LocalityEndpoints]:
        return iter(list(self._map.values()))

    def __len__(self) -> int:
        return len(self._map)

    def to_list(self) -> list[dict[str, Any]]:
        return [locality.to_dict() for locality in self._map.values()]

    @classmethod
    def from_list(cls, data: Any) -> LocalitySet:
        if not isinstance(data, list):
            raise ValueError("locality set must be a list")
        return cls(LocalityEndpoints.from_dict(item) for item in data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalitySet):
            return NotImplemented
        return self._map == other._map

    def __repr__(self) -> str:
        return f"LocalitySet({list(self._map.values())!r})"