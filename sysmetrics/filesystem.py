"""Mounted filesystems: discovery, filtering and usage statistics."""

from __future__ import annotations

import logging
import math
import os
import shutil
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import psutil

_log = logging.getLogger(__name__)

HostFS = "str | os.PathLike[str] | None"

FSFilter = Callable[["FSStat"], bool]


def _round(value: float, places: int = 4) -> float:
    scale = 10**places
    return math.floor(value * scale + 0.5) / scale


def _is_set(hostfs) -> bool:
    return hostfs is not None and os.fspath(hostfs) not in ("", "/")


def _resolve(hostfs, path: str) -> str:
    """Return ``path`` located under the host filesystem root, if one is set."""
    if not _is_set(hostfs):
        return path
    return os.path.join(os.fspath(hostfs), path.lstrip("/"))


def _is_windows() -> bool:
    return sys.platform.startswith("win")


@dataclass
class UsedVals:
    """The ``used`` disk metrics: fraction and byte count."""

    pct: float | None = None
    bytes: int | None = None

    def is_zero(self) -> bool:
        """True when neither value is known."""
        return self.pct is None and self.bytes is None


@dataclass
class FSStat:
    """Metadata and usage metrics of one mounted filesystem."""

    directory: str = ""
    device: str = ""
    type: str = ""
    options: str = ""
    flags: int | None = None
    total: int | None = None
    free: int | None = None
    avail: int | None = None
    used: UsedVals = field(default_factory=UsedVals)
    files: int | None = None
    free_files: int | None = None

    def get_usage(self) -> None:
        """Fill in the usage metrics of the filesystem mounted at ``directory``."""
        if _is_windows():
            try:
                usage = shutil.disk_usage(self.directory)
            except OSError as err:
                raise OSError(f"GetDiskFreeSpaceEx failed: {err}") from err
            self.total = usage.total
            self.free = usage.free
            self.avail = usage.free
        else:
            try:
                stat = os.statvfs(self.directory)
            except OSError as err:
                raise OSError(f"error in Statfs syscall: {err}") from err
            block = stat.f_frsize or stat.f_bsize
            self.total = stat.f_blocks * block
            self.free = stat.f_bfree * block
            self.avail = stat.f_bavail * block
            self.files = stat.f_files
            self.free_files = stat.f_ffree
        self._fill_metrics()

    def _fill_metrics(self) -> None:
        if self.total is None or self.free is None:
            self.used.bytes = None
        else:
            self.used.bytes = self.total - self.free

        # The percentage base is used + available, not the total.
        used = self.used.bytes or 0
        perc_total = used + (self.avail or 0)
        if perc_total == 0:
            return
        self.used.pct = _round(used / perc_total)


def _mounts_path(hostfs) -> str:
    if _is_set(hostfs):
        return _resolve(hostfs, "/proc/mounts")
    return "/proc/self/mounts"


def _parse_mount_file(path: str, keep: FSFilter) -> list[FSStat]:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            raw = handle.read()
    except OSError as err:
        raise OSError(f"error reading mount file {path}: {err}") from err
    result = []
    for line in raw.split("\n"):
        fields = line.split()
        if len(fields) < 4:
            continue
        fs = FSStat(
            device=fields[0], directory=fields[1], type=fields[2], options=fields[3]
        )
        if keep(fs):
            result.append(fs)
    return result


def _parse_partitions(keep: FSFilter) -> list[FSStat]:
    try:
        partitions = psutil.disk_partitions(all=True)
    except OSError as err:
        raise OSError(f"error listing partitions: {err}") from err
    windows = _is_windows()
    result = []
    for part in partitions:
        if windows:
            fs = FSStat(
                directory=part.mountpoint, device=part.mountpoint, type=part.fstype
            )
            if not fs.type:
                continue
        else:
            fs = FSStat(
                directory=part.mountpoint,
                device=part.device,
                type=part.fstype,
                options=part.opts,
            )
        if keep(fs):
            result.append(fs)
    return result


def _parse_mounts(path: str, keep: FSFilter) -> list[FSStat]:
    if sys.platform.startswith(("linux", "freebsd")):
        return _parse_mount_file(path, keep)
    return _parse_partitions(keep)


def default_ignored_types(hostfs) -> list[str]:
    """Filesystem types marked ``nodev`` in /proc/filesystems, if it exists."""
    path = _resolve(hostfs, "/proc/filesystems")
    types: list[str] = []
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                fields = line.split()
                if len(fields) == 2 and fields[0] == "nodev":
                    types.append(fields[1])
    except OSError:
        pass
    return types


def build_filter_with_list(ignored: Iterable[str]) -> FSFilter:
    """Return a filter rejecting filesystems whose type is in ``ignored``."""
    ignored_types = frozenset(ignored)

    def keep(fs: FSStat) -> bool:
        return fs.type not in ignored_types

    return keep


def _build_default_filters(hostfs) -> FSFilter:
    return build_filter_with_list(default_ignored_types(hostfs))


def filter_duplicates(fs_list: Iterable[FSStat]) -> list[FSStat]:
    """Keep each block device once, at its shortest mount point."""
    devices: dict[str, FSStat] = {}
    filtered: list[FSStat] = []
    for fs in fs_list:
        if not os.path.isabs(fs.device):
            filtered.append(fs)
            continue
        seen = devices.get(fs.device)
        if seen is None or len(fs.directory) < len(seen.directory):
            devices[fs.device] = fs
    filtered.extend(devices.values())
    return filtered


def avoid_file_system(fs: FSStat) -> bool:
    """Return False for mounts that should not be reported."""
    # Relative mount points show up e.g. with network namespaces.
    if not os.path.isabs(fs.directory):
        _log.debug("Filtering filesystem with relative mountpoint %r", fs)
        return False
    if not os.path.isabs(fs.device):
        return True
    if not _is_windows():
        # A directory as device is a bind mount or nullfs of its parent.
        try:
            if os.path.isdir(fs.device):
                return False
        except OSError as err:
            _log.debug("error stating filesystem: %s", err)
    return True


def get_filesystems(hostfs=None, filter: FSFilter | None = None) -> list[FSStat]:
    """List the mounted filesystems that pass ``filter`` and the built-in checks.

    Without a filter, the ``nodev`` types of /proc/filesystems are ignored.
    """
    path = _mounts_path(hostfs)
    user_filter = filter if filter is not None else _build_default_filters(hostfs)

    def keep(fs: FSStat) -> bool:
        return avoid_file_system(fs) and user_filter(fs)

    try:
        mounts = _parse_mounts(path, keep)
    except OSError as err:
        raise OSError(f"error reading mounts: {err}") from err
    return filter_duplicates(mounts)