"""Host description mapped to the ECS ``host`` fields."""

from __future__ import annotations

import platform
import socket
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import psutil

_FAMILIES = {
    "debian": "debian",
    "ubuntu": "debian",
    "raspbian": "debian",
    "linuxmint": "debian",
    "rhel": "redhat",
    "centos": "redhat",
    "fedora": "redhat",
    "amzn": "redhat",
    "rocky": "redhat",
    "almalinux": "redhat",
    "ol": "redhat",
    "scientific": "redhat",
    "sles": "suse",
    "opensuse": "suse",
    "opensuse-leap": "suse",
    "opensuse-tumbleweed": "suse",
    "arch": "arch",
    "archarm": "arch",
    "manjaro": "arch",
    "gentoo": "gentoo",
    "alpine": "alpine",
}

_CONTAINER_MARKERS = ("docker", "lxc", "kubepods", "containerd", "libpod")


@dataclass
class OSInfo:
    """Operating system description."""

    type: str = ""
    family: str = ""
    platform: str = ""
    name: str = ""
    version: str = ""
    major: int = 0
    minor: int = 0
    patch: int = 0
    build: str = ""
    codename: str = ""


@dataclass
class HostInfo:
    """Static facts about the host."""

    architecture: str = ""
    hostname: str = ""
    kernel_version: str = ""
    os: OSInfo = field(default_factory=OSInfo)
    unique_id: str = ""
    containerized: bool | None = None
    boot_time: datetime | None = None
    ips: list[str] = field(default_factory=list)
    macs: list[str] = field(default_factory=list)
    timezone: str = ""
    timezone_offset_sec: int = 0


def map_host_info(info: HostInfo, fqdn: str = "") -> dict[str, Any]:
    """Convert host information into an ECS ``host`` document."""
    name = fqdn or info.hostname
    os_map: dict[str, Any] = {
        "platform": info.os.platform,
        "version": info.os.version,
        "family": info.os.family,
        "name": info.os.name,
        "kernel": info.kernel_version,
    }
    host: dict[str, Any] = {
        "name": name.lower(),
        "hostname": info.hostname,
        "architecture": info.architecture,
        "os": os_map,
    }
    if info.unique_id:
        host["id"] = info.unique_id
    if info.containerized is not None:
        host["containerized"] = info.containerized
    if info.os.codename:
        os_map["codename"] = info.os.codename
    if info.os.build:
        os_map["build"] = info.os.build
    if info.os.type:
        os_map["type"] = info.os.type
    return {"host": host}


def _read_text(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read()
    except OSError:
        return None


def _parse_os_release(text: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip("\"'")
    return values


def _version_parts(version: str) -> tuple[int, int, int]:
    parts: list[int] = []
    for piece in version.split(".")[:3]:
        digits = "".join(ch for ch in piece if ch.isdigit())
        if not digits:
            break
        parts.append(int(digits))
    parts += [0] * (3 - len(parts))
    return parts[0], parts[1], parts[2]


def _linux_os() -> OSInfo:
    text = _read_text("/etc/os-release") or _read_text("/usr/lib/os-release") or ""
    release = _parse_os_release(text)
    os_id = release.get("ID", "").lower()
    family = _FAMILIES.get(os_id, "")
    if not family:
        for like in release.get("ID_LIKE", "").lower().split():
            if like in _FAMILIES:
                family = _FAMILIES[like]
                break
    major, minor, patch = _version_parts(release.get("VERSION_ID", ""))
    return OSInfo(
        type="linux",
        family=family,
        platform=os_id,
        name=release.get("NAME", ""),
        version=release.get("VERSION", release.get("VERSION_ID", "")),
        major=major,
        minor=minor,
        patch=patch,
        codename=release.get("VERSION_CODENAME", ""),
    )


def _darwin_os() -> OSInfo:
    version = platform.mac_ver()[0]
    major, minor, patch = _version_parts(version)
    return OSInfo(
        type="macos", family="darwin", platform="darwin", name="macOS",
        version=version, major=major, minor=minor, patch=patch,
    )


def _windows_os() -> OSInfo:
    version = platform.version()
    major, minor, patch = _version_parts(version)
    build = version.split(".")[-1] if version else ""
    return OSInfo(
        type="windows", family="windows", platform="windows",
        name=f"Windows {platform.release()}".strip(), version=version,
        major=major, minor=minor, patch=patch, build=build,
    )


def _generic_os() -> OSInfo:
    system = platform.system().lower()
    version = platform.release()
    major, minor, patch = _version_parts(version)
    return OSInfo(
        type=system, family=system, platform=system, name=platform.system(),
        version=version, major=major, minor=minor, patch=patch,
    )


def _os_info() -> OSInfo:
    if sys.platform.startswith("linux"):
        return _linux_os()
    if sys.platform == "darwin":
        return _darwin_os()
    if sys.platform.startswith("win"):
        return _windows_os()
    return _generic_os()


def _containerized() -> bool | None:
    if not sys.platform.startswith("linux"):
        return None
    cgroup = _read_text("/proc/1/cgroup")
    if cgroup is None:
        return None
    return any(marker in cgroup for marker in _CONTAINER_MARKERS)


def _unique_id() -> str:
    for path in ("/etc/machine-id", "/var/lib/dbus/machine-id"):
        text = _read_text(path)
        if text and text.strip():
            return text.strip()
    return ""


def _addresses() -> tuple[list[str], list[str]]:
    ips: list[str] = []
    macs: list[str] = []
    for addrs in psutil.net_if_addrs().values():
        for addr in addrs:
            if addr.family in (socket.AF_INET, socket.AF_INET6):
                ips.append(addr.address.split("%")[0])
            elif addr.family == psutil.AF_LINK and addr.address:
                mac = addr.address.lower().replace("-", ":")
                if mac != "00:00:00:00:00:00":
                    macs.append(mac)
    return ips, macs


def host_info() -> HostInfo:
    """Collect information about the running host."""
    ips, macs = _addresses()
    offset = -(time.altzone if time.localtime().tm_isdst > 0 else time.timezone)
    return HostInfo(
        architecture=platform.machine(),
        hostname=socket.gethostname(),
        kernel_version=platform.release(),
        os=_os_info(),
        unique_id=_unique_id(),
        containerized=_containerized(),
        boot_time=datetime.fromtimestamp(psutil.boot_time(), tz=timezone.utc),
        ips=ips,
        macs=macs,
        timezone=time.tzname[time.localtime().tm_isdst > 0],
        timezone_offset_sec=offset,
    )


def report_info(fqdn: str = "") -> Callable[[], dict[str, Any]]:
    """Return a reporter producing the host section of monitoring data.

    The reporter yields an empty mapping when host information is unavailable.
    """

    def report() -> dict[str, Any]:
        try:
            info = host_info()
        except OSError:
            return {}
        os_map: dict[str, Any] = {
            "platform": info.os.platform,
            "version": info.os.version,
            "family": info.os.family,
            "name": info.os.name,
            "kernel": info.kernel_version,
        }
        if info.os.codename:
            os_map["codename"] = info.os.codename
        if info.os.build:
            os_map["build"] = info.os.build
        data: dict[str, Any] = {
            "hostname": fqdn or info.hostname,
            "architecture": info.architecture,
            "os": os_map,
        }
        if info.unique_id:
            data["id"] = info.unique_id
        if info.containerized is not None:
            data["containerized"] = info.containerized
        return data

    return report