"""Destination endpoints and the metadata attached to them."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from udpgate.address import EndpointAddress

METADATA_KEY = "quilkin.dev"
"""Key under which endpoint metadata lives in a metadata view."""

_TOKENS = "tokens"
_ENDPOINT_FIELDS = frozenset({"address", "metadata"})


class MetadataError(ValueError):
    """Endpoint metadata could not be decoded."""

    @classmethod
    def invalid_base64(cls, error: Exception) -> MetadataError:
        return cls(f"Invalid bas64 encoded token: `{error}`.")

    @classmethod
    def missing_key(cls, key: str) -> MetadataError:
        return cls(f"Missing required key `{key}`.")

    @classmethod
    def invalid_type(cls, key: str, expected: str) -> MetadataError:
        return cls(f"Invalid type ({expected}) given for `{key}`.")


def _decode_token(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as error:
        raise MetadataError.invalid_base64(error) from error


def _encode_token(token: bytes) -> str:
    return base64.b64encode(token).decode("ascii")


@dataclass(frozen=True)
class Metadata:
    """Metadata specific to endpoints: a set of binary tokens."""

    tokens: frozenset[bytes] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", frozenset(bytes(token) for token in self.tokens))

    def _sorted_tokens(self) -> list[bytes]:
        return sorted(self.tokens)

    def to_dict(self) -> dict[str, Any]:
        """Serialise with tokens as base64 strings, in sorted order."""
        return {_TOKENS: [_encode_token(token) for token in self._sorted_tokens()]}

    @classmethod
    def from_dict(cls, data: Any) -> Metadata:
        """Build from `{"tokens": [<base64 string>, ...]}`."""
        if not isinstance(data, Mapping):
            raise MetadataError("endpoint metadata must be a mapping")
        if _TOKENS not in data:
            raise MetadataError.missing_key(_TOKENS)
        items = data[_TOKENS]
        if not isinstance(items, list):
            raise MetadataError("tokens must be a list of base64 strings")
        if not all(isinstance(item, str) for item in items):
            raise MetadataError("tokens must be a list of base64 strings")
        if len(set(items)) != len(items):
            raise MetadataError("Found duplicate tokens in endpoint metadata.")
        return cls(frozenset(_decode_token(item) for item in items))

    def to_view(self) -> dict[str, Any]:
        """Serialise nested under the metadata key."""
        return {METADATA_KEY: self.to_dict()}

    @classmethod
    def from_view(cls, data: Any) -> Metadata:
        """Build from a metadata view; a missing key gives empty metadata."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise MetadataError("metadata view must be a mapping")
        if METADATA_KEY not in data:
            return cls()
        return cls.from_dict(data[METADATA_KEY])

    def to_struct(self) -> dict[str, Any]:
        """Convert to a struct value whose `tokens` is a list of base64 strings."""
        return {_TOKENS: [_encode_token(token) for token in self._sorted_tokens()]}

    @classmethod
    def from_struct(cls, value: Mapping[str, Any]) -> Metadata:
        """Build from a struct value; `tokens` may be a list or a single string."""
        kind = value.get(_TOKENS)
        if kind is None:
            return cls()
        if isinstance(kind, str):
            return cls(frozenset({_decode_token(kind)}))
        if isinstance(kind, list):
            tokens = set()
            for item in kind:
                if item is None:
                    continue
                if not isinstance(item, str):
                    raise MetadataError.invalid_type("quilkin.dev.tokens", "base64 string")
                tokens.add(_decode_token(item))
            return cls(frozenset(tokens))
        raise MetadataError.missing_key(_TOKENS)


@dataclass(frozen=True)
class Endpoint:
    """A destination endpoint with any associated metadata.

    Endpoints order by address alone, and compare equal to an
    `EndpointAddress` with the same address.
    """

    address: EndpointAddress = EndpointAddress.UNSPECIFIED
    metadata: Metadata = field(default_factory=Metadata)

    @classmethod
    def parse(cls, string: str) -> Endpoint:
        """Parse `host:port` into an endpoint with no metadata."""
        return cls(EndpointAddress.parse(string))

    @classmethod
    def with_metadata(cls, address: EndpointAddress, metadata: Metadata) -> Endpoint:
        """Create an endpoint carrying `metadata`."""
        return cls(address, metadata)

    def to_dict(self) -> dict[str, Any]:
        """Serialise as `{"address": ..., "metadata": {...}}`."""
        return {"address": str(self.address), "metadata": self.metadata.to_view()}

    @classmethod
    def from_dict(cls, data: Any) -> Endpoint:
        """Build from a mapping; unknown fields are rejected."""
        if not isinstance(data, Mapping):
            raise ValueError("endpoint must be a mapping")
        unknown = set(data) - _ENDPOINT_FIELDS
        if unknown:
            raise ValueError(f"unknown endpoint field(s): {', '.join(sorted(map(str, unknown)))}")
        if "address" not in data:
            raise ValueError("missing field `address`")
        address = data["address"]
        if not isinstance(address, str):
            raise ValueError("endpoint address must be a string")
        return cls(EndpointAddress.parse(address), Metadata.from_view(data.get("metadata")))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EndpointAddress):
            return self.address == other
        if isinstance(other, Endpoint):
            return self.address == other.address and self.metadata == other.metadata
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.address, self.metadata))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self.address < other.address


def endpoints_from(items: Iterable[Endpoint | EndpointAddress]) -> list[Endpoint]:
    """Convert addresses to endpoints, leaving endpoints as they are."""
    result = []
    for item in items:
        if isinstance(item, Endpoint):
            result.append(item)
        elif isinstance(item, EndpointAddress):
            result.append(Endpoint(item))
        else:
            raise TypeError(f"expected an Endpoint or EndpointAddress, got {type(item).__name__}")
    return result