"""Endpoint addresses, localities, packet filter chains, capture filters and game server resources for a UDP proxy."""

__version__ = "0.1.0"

__all__ = [
    "address",
    "agones",
    "capture",
    "capture_config",
    "capture_strategies",
    "chain",
    "config_type",
    "endpoint",
    "errors",
    "filters",
    "locality",
    "slot",
]