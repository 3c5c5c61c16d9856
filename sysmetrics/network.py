"""Shaping of /proc network counters into per-protocol maps."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

_UINT64 = 1 << 64
_INT64_MAX = (1 << 63) - 1


@dataclass
class NetworkCountersInfo:
    """Counters from /proc/net/snmp and /proc/net/netstat."""

    ip: dict[str, int] = field(default_factory=dict)
    icmp: dict[str, int] = field(default_factory=dict)
    icmp_msg: dict[str, int] = field(default_factory=dict)
    tcp: dict[str, int] = field(default_factory=dict)
    udp: dict[str, int] = field(default_factory=dict)
    udp_lite: dict[str, int] = field(default_factory=dict)
    tcp_ext: dict[str, int] = field(default_factory=dict)
    ip_ext: dict[str, int] = field(default_factory=dict)


def _check_max_conn(key: str, value: int) -> int:
    # MaxConn is a signed integer per RFC 2012; the rest are unsigned counters.
    if key == "MaxConn":
        value %= _UINT64
        return value - _UINT64 if value > _INT64_MAX else value
    return value


def _combine_map(
    first: Mapping[str, int], second: Mapping[str, int], keys: list[str]
) -> dict[str, Any]:
    if not keys or keys[0] == "all":
        return {
            key: _check_max_conn(key, value)
            for source in (first, second)
            for key, value in source.items()
        }
    combined: dict[str, Any] = {}
    for key in keys:
        for source in (first, second):
            if key in source:
                combined[key] = _check_max_conn(key, source[key])
    return combined


def _create_map(raw: NetworkCountersInfo, keys: list[str]) -> dict[str, Any]:
    return {
        "ip": _combine_map(raw.ip_ext, raw.ip, keys),
        "tcp": _combine_map(raw.tcp_ext, raw.tcp, keys),
        "udp": raw.udp,
        "udp_lite": raw.udp_lite,
        "icmp": _combine_map(raw.icmp_msg, raw.icmp, keys),
    }


def map_proc_net_counters_with_filter(
    raw: NetworkCountersInfo, filter: Iterable[str]
) -> dict[str, Any]:
    """Map the counters per protocol, keeping only the named keys.

    A filter that is empty or starts with ``"all"`` keeps every key.
    """
    return _create_map(raw, list(filter))


def map_proc_net_counters(raw: NetworkCountersInfo) -> dict[str, Any]:
    """Map all the counters per protocol."""
    return _create_map(raw, ["all"])