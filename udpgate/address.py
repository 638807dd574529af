"""Socket addresses that accept domain names as well as IP addresses."""

from __future__ import annotations

import functools
import ipaddress
import re
import socket
from dataclasses import dataclass
from typing import ClassVar, Union

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Host = Union[str, IpAddress]

_PORT_PATTERN = re.compile(r"\+?[0-9]+")
_BRACKETED_V6 = re.compile(r"\[([^\]]*)\]:(.*)")
_MAX_PORT = 0xFFFF


def _parse_port(text: str) -> int:
    if not _PORT_PATTERN.fullmatch(text):
        raise ValueError(f"invalid port value: {text!r}")
    port = int(text)
    if port > _MAX_PORT:
        raise ValueError(f"port out of range: {text!r}")
    return port


def _parse_ip(text: str) -> IpAddress | None:
    if "%" in text:
        return None
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def parse_host(string: str) -> Host:
    """Parse a host as an IP address, falling back to a domain name."""
    ip = _parse_ip(string)
    return string if ip is None else ip


def _resolve(host: str, port: int) -> tuple[str, int]:
    ip = _parse_ip(host)
    if ip is not None:
        return str(ip), port
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as error:
        raise OSError(f"failed to resolve {host!r}: {error}") from error
    for *_, sockaddr in infos:
        return str(sockaddr[0]), port
    raise OSError("No valid socket address found.")


def _resolve_str(string: str) -> tuple[str, int]:
    """Resolve a `host:port` string into a single socket address."""
    bracketed = _BRACKETED_V6.fullmatch(string)
    if bracketed:
        ip = _parse_ip(bracketed[1])
        if isinstance(ip, ipaddress.IPv6Address):
            try:
                return str(ip), _parse_port(bracketed[2])
            except ValueError as error:
                raise OSError(str(error)) from error
    host, sep, port_text = string.rpartition(":")
    if not sep:
        raise OSError("invalid socket address")
    try:
        port = _parse_port(port_text)
    except ValueError as error:
        raise OSError("invalid port value") from error
    return _resolve(host, port)


@functools.total_ordering
@dataclass(frozen=True)
class EndpointAddress:
    """A socket address whose host may be a domain name or an IP address."""

    host: Host
    port: int | None = None

    UNSPECIFIED: ClassVar[EndpointAddress]
    LOCALHOST: ClassVar[EndpointAddress]

    def __post_init__(self) -> None:
        if self.port is not None and not 0 <= self.port <= _MAX_PORT:
            raise ValueError(f"port out of range: {self.port}")

    @classmethod
    def parse(cls, string: str) -> EndpointAddress:
        """Parse `host:port`, checking that it resolves to an address."""
        try:
            _resolve_str(string)
        except OSError as error:
            raise ValueError(str(error)) from error
        host, sep, port_text = string.partition(":")
        if not sep:
            return cls(parse_host(string), None)
        return cls(parse_host(host), _parse_port(port_text))

    @classmethod
    def from_host_port(cls, host: Host, port: int) -> EndpointAddress:
        """Build an address from a host (name, IP string or IP object) and a port."""
        if isinstance(host, str):
            host = parse_host(host)
        return cls(host, port)

    def effective_port(self) -> int:
        """The port, or 0 when none was given."""
        return 0 if self.port is None else self.port

    def to_socket_addr(self) -> tuple[str, int]:
        """Resolve to an `(ip, port)` pair, looking up names if needed."""
        if self.port is not None:
            if isinstance(self.host, str):
                return _resolve(self.host, self.port)
            return str(self.host), self.port
        if not isinstance(self.host, str):
            raise OSError("no port provided for IP address")
        return _resolve_str(self.host)

    def sort_key(self) -> tuple:
        """Key ordering names before IPs, IPv4 before IPv6, no port first."""
        if isinstance(self.host, str):
            host_key: tuple = (0, self.host, 0, 0)
        else:
            host_key = (1, "", self.host.version, int(self.host))
        port_key = (0, 0) if self.port is None else (1, self.port)
        return host_key + port_key

    def __str__(self) -> str:
        if self.port is None:
            return str(self.host)
        return f"{self.host}:{self.port}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, EndpointAddress):
            return NotImplemented
        return self.sort_key() < other.sort_key()


EndpointAddress.UNSPECIFIED = EndpointAddress(ipaddress.IPv4Address("0.0.0.0"), 0)
EndpointAddress.LOCALHOST = EndpointAddress(ipaddress.IPv4Address("127.0.0.1"), 0)