"""Agones game server resources and their conversion into endpoints."""

from __future__ import annotations

import base64
import binascii
import copy
import enum
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from udpgate.address import EndpointAddress
from udpgate.endpoint import Endpoint, Metadata
from udpgate.locality import LocalityEndpoints

_log = logging.getLogger(__name__)

TOKEN_ANNOTATION = "quilkin.dev/tokens"
API_VERSION = "agones.dev/v1"
KIND = "GameServer"

DEFAULT_PERIOD_SECONDS = 5
DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_INITIAL_DELAY_SECONDS = 5
DEFAULT_SDK_GRPC_PORT = 9357
DEFAULT_SDK_HTTP_PORT = 9358

_MAX_U16 = 0xFFFF
_MIN_I32 = -(2**31)
_MAX_I32 = 2**31 - 1


class GameServerState(str, enum.Enum):
    """The lifecycle state of a game server."""

    PORT_ALLOCATION = "PortAllocation"
    CREATING = "Creating"
    STARTING = "Starting"
    SCHEDULED = "Scheduled"
    REQUEST_READY = "RequestReady"
    READY = "Ready"
    SHUTDOWN = "Shutdown"
    ERROR = "Error"
    UNHEALTHY = "Unhealthy"
    RESERVED = "Reserved"
    ALLOCATED = "Allocated"


class SdkServerLogLevel(str, enum.Enum):
    """Log level of the SDK server sidecar."""

    INFO = "Info"
    DEBUG = "Debug"
    ERROR = "Error"


class PortPolicy(str, enum.Enum):
    """How the host port of a game server port is chosen."""

    STATIC = "Static"
    DYNAMIC = "Dynamic"
    PASSTHROUGH = "Passthrough"


class SchedulingStrategy(str, enum.Enum):
    """How game server pods are spread across a cluster."""

    PACKED = "Packed"
    DISTRIBUTED = "Distributed"


class Protocol(str, enum.Enum):
    """Network protocol of a game server port."""

    UDP = "UDP"
    TCP = "TCP"
    UDP_TCP = "TCPUDP"


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a mapping")
    return data


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    if key not in data:
        raise ValueError(f"{what}: missing field `{key}`")
    return data[key]


def _int(value: Any, key: str, low: int, high: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid type for `{key}`: expected an integer, got {value!r}")
    if not low <= value <= high:
        raise ValueError(f"`{key}` out of range: {value}")
    return value


def _u16(value: Any, key: str) -> int:
    return _int(value, key, 0, _MAX_U16)


def _i32(value: Any, key: str) -> int:
    return _int(value, key, _MIN_I32, _MAX_I32)


def _str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{key}`: expected a string, got {value!r}")
    return value


def _optional_str(value: Any, key: str) -> Optional[str]:
    return None if value is None else _str(value, key)


def _bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"invalid type for `{key}`: expected a boolean, got {value!r}")
    return value


def _enum(cls: type[enum.Enum], value: Any, key: str) -> Any:
    try:
        return cls(value)
    except ValueError:
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"unknown variant `{value}` for `{key}`, expected one of {expected}"
        ) from None


@dataclass
class Health:
    """Health checking settings of a game server."""

    disabled: bool = False
    period_seconds: int = DEFAULT_PERIOD_SECONDS
    failure_threshold: int = DEFAULT_FAILURE_THRESHOLD
    initial_delay_seconds: int = DEFAULT_INITIAL_DELAY_SECONDS


def _health_from_dict(data: Any) -> Health:
    data = _require_mapping(data, "health")
    return Health(
        disabled=_bool(data.get("disabled", False), "disabled"),
        period_seconds=_i32(data.get("periodSeconds", DEFAULT_PERIOD_SECONDS), "periodSeconds"),
        failure_threshold=_i32(
            data.get("failureThreshold", DEFAULT_FAILURE_THRESHOLD), "failureThreshold"
        ),
        initial_delay_seconds=_i32(
            data.get("initialDelaySeconds", DEFAULT_INITIAL_DELAY_SECONDS),
            "initialDelaySeconds",
        ),
    )


def _health_to_dict(health: Health) -> dict[str, Any]:
    return {
        "disabled": health.disabled,
        "periodSeconds": health.period_seconds,
        "failureThreshold": health.failure_threshold,
        "initialDelaySeconds": health.initial_delay_seconds,
    }


@dataclass
class SdkServer:
    """Settings of the SDK server sidecar container."""

    log_level: SdkServerLogLevel = SdkServerLogLevel.INFO
    grpc_port: int = DEFAULT_SDK_GRPC_PORT
    http_port: int = DEFAULT_SDK_HTTP_PORT


def _sdk_server_from_dict(data: Any) -> SdkServer:
    data = _require_mapping(data, "sdkServer")
    return SdkServer(
        log_level=_enum(SdkServerLogLevel, data.get("logLevel", "Info"), "logLevel"),
        grpc_port=_u16(data.get("grpcPort", DEFAULT_SDK_GRPC_PORT), "grpcPort"),
        http_port=_u16(data.get("httpPort", DEFAULT_SDK_HTTP_PORT), "httpPort"),
    )


def _sdk_server_to_dict(sdk: SdkServer) -> dict[str, Any]:
    return {
        "logLevel": sdk.log_level.value,
        "grpcPort": sdk.grpc_port,
        "httpPort": sdk.http_port,
    }


@dataclass
class GameServerPort:
    """A port exposed by a game server."""

    name: str
    container_port: int
    port_policy: PortPolicy = PortPolicy.DYNAMIC
    container: Optional[str] = None
    host_port: Optional[int] = None
    protocol: Protocol = Protocol.UDP


def _port_from_dict(data: Any) -> GameServerPort:
    data = _require_mapping(data, "port")
    host_port = data.get("hostPort")
    return GameServerPort(
        name=_str(_require(data, "name", "port"), "name"),
        container_port=_u16(_require(data, "containerPort", "port"), "containerPort"),
        port_policy=_enum(PortPolicy, data.get("portPolicy", "Dynamic"), "portPolicy"),
        container=_optional_str(data.get("container"), "container"),
        host_port=None if host_port is None else _u16(host_port, "hostPort"),
        protocol=_enum(Protocol, data.get("protocol", "UDP"), "protocol"),
    )


def _port_to_dict(port: GameServerPort) -> dict[str, Any]:
    result: dict[str, Any] = {"name": port.name, "portPolicy": port.port_policy.value}
    if port.container is not None:
        result["container"] = port.container
    result["containerPort"] = port.container_port
    if port.host_port is not None:
        result["hostPort"] = port.host_port
    result["protocol"] = port.protocol.value
    return result


@dataclass
class GameServerStatusPort:
    """A port allocated to a game server."""

    name: str
    port: int


@dataclass
class GameServerStatus:
    """The observed status of a game server."""

    state: GameServerState
    address: str
    node_name: str
    ports: Optional[list[GameServerStatusPort]] = None
    reserved_until: Optional[str] = None


def _status_from_dict(data: Any) -> GameServerStatus:
    data = _require_mapping(data, "status")
    ports = data.get("ports")
    if ports is not None:
        if not isinstance(ports, list):
            raise ValueError("`ports` must be a list")
        ports = [
            GameServerStatusPort(
                name=_str(_require(item, "name", "status port"), "name"),
                port=_u16(_require(item, "port", "status port"), "port"),
            )
            for item in (_require_mapping(entry, "status port") for entry in ports)
        ]
    return GameServerStatus(
        state=_enum(GameServerState, _require(data, "state", "status"), "state"),
        address=_str(_require(data, "address", "status"), "address"),
        node_name=_str(_require(data, "nodeName", "status"), "nodeName"),
        ports=ports,
        reserved_until=_optional_str(data.get("reservedUntil"), "reservedUntil"),
    )


def _status_to_dict(status: GameServerStatus) -> dict[str, Any]:
    return {
        "state": status.state.value,
        "ports": None
        if status.ports is None
        else [{"name": port.name, "port": port.port} for port in status.ports],
        "address": status.address,
        "nodeName": status.node_name,
        "reservedUntil": status.reserved_until,
    }


@dataclass
class GameServerSpec:
    """The desired configuration of a game server.

    `template` is the pod template, kept as its plain mapping form.
    """

    container: Optional[str] = None
    ports: list[GameServerPort] = field(default_factory=list)
    health: Health = field(default_factory=Health)
    scheduling: SchedulingStrategy = SchedulingStrategy.PACKED
    sdk_server: SdkServer = field(default_factory=SdkServer)
    template: dict[str, Any] = field(default_factory=dict)


def _spec_from_dict(data: Any) -> GameServerSpec:
    data = _require_mapping(data, "spec")
    ports = data.get("ports", [])
    if not isinstance(ports, list):
        raise ValueError("`ports` must be a list")
    template = _require_mapping(_require(data, "template", "spec"), "template")
    return GameServerSpec(
        container=_optional_str(data.get("container"), "container"),
        ports=[_port_from_dict(item) for item in ports],
        health=_health_from_dict(_require(data, "health", "spec")),
        scheduling=_enum(
            SchedulingStrategy, _require(data, "scheduling", "spec"), "scheduling"
        ),
        sdk_server=_sdk_server_from_dict(_require(data, "sdkServer", "spec")),
        template=copy.deepcopy(dict(template)),
    )


def _spec_to_dict(spec: GameServerSpec) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if spec.container is not None:
        result["container"] = spec.container
    result["ports"] = [_port_to_dict(port) for port in spec.ports]
    result["health"] = _health_to_dict(spec.health)
    result["scheduling"] = spec.scheduling.value
    result["sdkServer"] = _sdk_server_to_dict(spec.sdk_server)
    result["template"] = copy.deepcopy(spec.template)
    return result


def _decode_tokens(value: str) -> frozenset[bytes]:
    tokens = set()
    for part in value.split(","):
        try:
            tokens.add(base64.b64decode(part, validate=True))
        except (binascii.Error, ValueError):
            continue
    return frozenset(tokens)


@dataclass
class GameServer:
    """An Agones game server resource.

    `metadata` is the object metadata in its plain mapping form.
    """

    metadata: dict[str, Any] = field(default_factory=dict)
    spec: GameServerSpec = field(default_factory=GameServerSpec)
    status: Optional[GameServerStatus] = None

    def is_allocated(self) -> bool:
        """Whether the game server has been allocated to a session."""
        if self.status is None:
            return False
        _log.debug(
            "checking gameserver at %s in state %s", self.status.address, self.status.state.value
        )
        return self.status.state is GameServerState.ALLOCATED

    def to_endpoint(self) -> Endpoint:
        """The endpoint for this server, with tokens from its annotations."""
        if self.status is None:
            raise ValueError("No status found for game server")
        annotations = self.metadata.get("annotations") or {}
        value = annotations.get(TOKEN_ANNOTATION)
        tokens = _decode_tokens(value) if isinstance(value, str) else frozenset()
        port = self.status.ports[0].port if self.status.ports else 0
        address = EndpointAddress.from_host_port(self.status.address, port)
        return Endpoint.with_metadata(address, Metadata(tokens))

    @classmethod
    def from_dict(cls, data: Any) -> GameServer:
        """Build from the resource's mapping form."""
        data = _require_mapping(data, "gameserver")
        metadata = _require_mapping(_require(data, "metadata", "gameserver"), "metadata")
        status = data.get("status")
        return cls(
            metadata=copy.deepcopy(dict(metadata)),
            spec=_spec_from_dict(_require(data, "spec", "gameserver")),
            status=None if status is None else _status_from_dict(status),
        )

    def to_dict(self) -> dict[str, Any]:
        """The resource's mapping form, with API version and kind."""
        return {
            "apiVersion": API_VERSION,
            "kind": KIND,
            "metadata": copy.deepcopy(self.metadata),
            "spec": _spec_to_dict(self.spec),
            "status": None if self.status is None else _status_to_dict(self.status),
        }


def endpoints_from_game_servers(servers: Iterable[GameServer]) -> LocalityEndpoints:
    """Endpoints for all `servers`, with no locality."""
    return LocalityEndpoints([server.to_endpoint() for server in servers])