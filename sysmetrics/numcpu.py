"""Accurate count of the CPUs configured on the host."""

from __future__ import annotations

import logging
import os
import re
import sys

import psutil

_log = logging.getLogger(__name__)

_ONLINE_PATH = "/sys/devices/system/cpu/online"
_PRESENT_PATH = "/sys/devices/system/cpu/present"
_PRESENT_ENV = "LINUX_CPU_COUNT_PRESENT"

_RANGE_RE = re.compile(r"\s*([+-]?\d+)-\s*([+-]?\d+)")


def _parse_cpu_range(cpu_range: str) -> int:
    match = _RANGE_RE.match(cpu_range)
    if match is None:
        raise ValueError(f"error reading from range {cpu_range!r}")
    first, last = int(match.group(1)), int(match.group(2))
    return last - first + 1


def parse_cpu_list(raw: str) -> int:
    """Count the CPUs in a sysfs CPU list such as ``"0-1,3"``."""
    count = 0
    for part in raw.split(","):
        if "-" in part:
            try:
                count += _parse_cpu_range(part)
            except ValueError as err:
                raise ValueError(f"error parsing line {part!r}: {err}") from err
        else:
            count += 1
    return count


def _linux_cpu() -> int | None:
    # Online CPUs by default; "present" CPUs when the variable is set,
    # which only differs when CPU hotplugging is in effect.
    path = _PRESENT_PATH if _PRESENT_ENV in os.environ else _ONLINE_PATH
    try:
        with open(path, encoding="utf-8") as handle:
            raw = handle.read()
    except FileNotFoundError:
        return None
    except OSError as err:
        raise OSError(f"error reading file {path}: {err}") from err
    try:
        return parse_cpu_list(raw)
    except ValueError as err:
        raise ValueError(f"error parsing file {path}: {err}") from err


def _windows_cpu() -> int:
    count = psutil.cpu_count(logical=True)
    if not count:
        raise OSError("received an error while fetching cpu count")
    return count


def _bsd_cpu() -> int | None:
    count = psutil.cpu_count(logical=True)
    return count or None


def get_cpu() -> int | None:
    """Return the system CPU count, or None where the platform has no way to tell.

    Raises OSError or ValueError when the count exists but cannot be read.
    """
    platform = sys.platform
    if platform.startswith("linux"):
        return _linux_cpu()
    if platform.startswith("win"):
        return _windows_cpu()
    if platform.startswith(("freebsd", "openbsd")):
        return _bsd_cpu()
    return None


def _runtime_cpu() -> int:
    affinity = getattr(os, "sched_getaffinity", None)
    if affinity is not None:
        try:
            return len(affinity(0))
        except OSError:
            pass
    return os.cpu_count() or 1


def num_cpu() -> int:
    """Return the CPU count, falling back to the CPUs this process may run on."""
    try:
        count = get_cpu()
    except (OSError, ValueError) as err:
        _log.debug("Error fetching CPU count: %s", err)
        return _runtime_cpu()
    if count is None:
        _log.debug(
            "Accurate CPU counts not available on platform, "
            "falling back to process CPU count for metrics"
        )
        return _runtime_cpu()
    return count