"""Per-device disk I/O counters and iostat-style rates derived from them."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, field

import psutil

from sysmetrics.numcpu import num_cpu

_UINT64 = 1 << 64
_MAX_UINT32 = 0xFFFFFFFF
_SECTOR_SIZE = 512
_DISKSTATS_PATH = "/proc/diskstats"
_PROC_STAT_PATH = "/proc/stat"


def _round(value: float, places: int = 4) -> float:
    scale = 10**places
    return math.floor(value * scale + 0.5) / scale


def _sub64(current: int, previous: int) -> int:
    """Subtract two unsigned 64-bit counters, wrapping like the kernel does."""
    return (current - previous) % _UINT64


def _fix_32bit_rollover(current: int, previous: int) -> int:
    """Delta of a counter that the kernel keeps as 32 bits and may roll over."""
    if current >= previous:
        return current - previous
    # A previous value beyond 32 bits means a 64-bit wrap; give up on it.
    if previous > _MAX_UINT32:
        return 0
    return _MAX_UINT32 - previous + current


def get_clk_tck() -> int:
    """Clock ticks per second used to interpret CPU time counters."""
    return 100


@dataclass
class IOMetric:
    """Extended per-device statistics, as shown by ``iostat -x``."""

    read_request_merge_count_per_sec: float = 0.0
    write_request_merge_count_per_sec: float = 0.0
    read_request_count_per_sec: float = 0.0
    write_request_count_per_sec: float = 0.0
    read_bytes_per_sec: float = 0.0
    write_bytes_per_sec: float = 0.0
    avg_request_size: float = 0.0
    avg_queue_size: float = 0.0
    avg_await_time: float = 0.0
    avg_read_await_time: float = 0.0
    avg_write_await_time: float = 0.0
    avg_service_time: float = 0.0
    busy_pct: float = 0.0


@dataclass
class IOCounters:
    """Raw cumulative I/O counters of one block device."""

    name: str = ""
    read_count: int = 0
    merged_read_count: int = 0
    write_count: int = 0
    merged_write_count: int = 0
    read_bytes: int = 0
    write_bytes: int = 0
    read_time: int = 0
    write_time: int = 0
    iops_in_progress: int = 0
    io_time: int = 0
    weighted_io: int = 0


def _parse_diskstats(lines, names) -> dict[str, IOCounters]:
    wanted = set(names)
    counters: dict[str, IOCounters] = {}
    for line in lines:
        fields = line.split()
        if len(fields) < 14:
            continue
        name = fields[2]
        if wanted and name not in wanted:
            continue
        try:
            values = [int(value) for value in fields[3:14]]
        except ValueError as err:
            raise ValueError(f"malformed diskstats line for {name}: {err}") from err
        (reads, merged_reads, read_sectors, read_time, writes, merged_writes,
         write_sectors, write_time, in_progress, io_time, weighted_io) = values
        counters[name] = IOCounters(
            name=name,
            read_count=reads,
            merged_read_count=merged_reads,
            write_count=writes,
            merged_write_count=merged_writes,
            read_bytes=read_sectors * _SECTOR_SIZE,
            write_bytes=write_sectors * _SECTOR_SIZE,
            read_time=read_time,
            write_time=write_time,
            iops_in_progress=in_progress,
            io_time=io_time,
            weighted_io=weighted_io,
        )
    return counters


def _psutil_counters(names) -> dict[str, IOCounters]:
    wanted = set(names)
    stats = psutil.disk_io_counters(perdisk=True) or {}
    counters: dict[str, IOCounters] = {}
    for name, stat in stats.items():
        if wanted and name not in wanted:
            continue
        counters[name] = IOCounters(
            name=name,
            read_count=getattr(stat, "read_count", 0),
            merged_read_count=getattr(stat, "read_merged_count", 0),
            write_count=getattr(stat, "write_count", 0),
            merged_write_count=getattr(stat, "write_merged_count", 0),
            read_bytes=getattr(stat, "read_bytes", 0),
            write_bytes=getattr(stat, "write_bytes", 0),
            read_time=getattr(stat, "read_time", 0),
            write_time=getattr(stat, "write_time", 0),
            io_time=getattr(stat, "busy_time", 0),
        )
    return counters


def io_counters(*names: str) -> dict[str, IOCounters]:
    """Return the I/O counters per device, limited to ``names`` when given."""
    if sys.platform.startswith("linux"):
        try:
            with open(_DISKSTATS_PATH, encoding="utf-8") as handle:
                return _parse_diskstats(handle, names)
        except FileNotFoundError:
            pass
    return _psutil_counters(names)


def _read_cpu_total(path: str = _PROC_STAT_PATH) -> int:
    """Sum of the aggregate CPU time counters, in clock ticks."""
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            fields = line.split()
            if fields and fields[0] == "cpu":
                # user nice system idle iowait irq softirq steal
                return sum(int(value) for value in fields[1:9])
    raise OSError(f"no aggregate cpu line in {path}")


@dataclass
class IOStat:
    """Computes disk statistics between two sampling points."""

    last_counters: dict[str, IOCounters] = field(default_factory=dict)
    last_cpu: int = 0
    cur_cpu: int = 0
    platform: str = sys.platform

    @property
    def _supported(self) -> bool:
        return self.platform.startswith("linux")

    def open_sampling(self) -> None:
        """Take the current CPU sample; call right after reading the counters."""
        if self._supported:
            self.cur_cpu = _read_cpu_total()

    def calc_io_statistics(self, counter: IOCounters) -> IOMetric:
        """Return the rates since the previous counter for the same device.

        The first counter seen for a device is stored and yields all zeros.
        """
        if not self._supported:
            raise OSError(f"disk I/O statistics are not available on {self.platform}")

        last = self.last_counters.get(counter.name)
        if last is None:
            self.last_counters[counter.name] = counter
            return IOMetric()

        delta_ms = (
            1000.0 * _sub64(self.cur_cpu, self.last_cpu) / num_cpu() / get_clk_tck()
        )
        if delta_ms <= 0:
            raise ValueError(
                "the delta cpu time between close sampling and open sampling "
                "is less or equal to 0"
            )

        rd_ios = _sub64(counter.read_count, last.read_count)
        rd_merges = _sub64(counter.merged_read_count, last.merged_read_count)
        rd_bytes = _sub64(counter.read_bytes, last.read_bytes)
        rd_ticks = _fix_32bit_rollover(counter.read_time, last.read_time)
        wr_ios = _sub64(counter.write_count, last.write_count)
        wr_merges = _sub64(counter.merged_write_count, last.merged_write_count)
        wr_bytes = _sub64(counter.write_bytes, last.write_bytes)
        wr_ticks = _fix_32bit_rollover(counter.write_time, last.write_time)
        ticks = _fix_32bit_rollover(counter.io_time, last.io_time)
        aveq = _fix_32bit_rollover(counter.weighted_io, last.weighted_io)

        n_ios = (rd_ios + wr_ios) % _UINT64
        n_ticks = (rd_ticks + wr_ticks) % _UINT64
        n_bytes = (rd_bytes + wr_bytes) % _UINT64
        size = wait = svct = 0.0
        if n_ios > 0:
            size = n_bytes / n_ios
            wait = n_ticks / n_ios
            svct = ticks / n_ios

        def per_sec(value: int) -> float:
            return _round(1000.0 * value / delta_ms)

        result = IOMetric(
            read_request_merge_count_per_sec=per_sec(rd_merges),
            write_request_merge_count_per_sec=per_sec(wr_merges),
            read_request_count_per_sec=per_sec(rd_ios),
            write_request_count_per_sec=per_sec(wr_ios),
            read_bytes_per_sec=per_sec(rd_bytes),
            write_bytes_per_sec=per_sec(wr_bytes),
            avg_request_size=_round(size),
            avg_queue_size=_round(aveq / delta_ms),
            avg_await_time=_round(wait),
            avg_service_time=_round(svct),
            busy_pct=min(_round(100.0 * ticks / delta_ms), 100.0),
        )
        if rd_ios > 0:
            result.avg_read_await_time = _round(rd_ticks / rd_ios)
        if wr_ios > 0:
            result.avg_write_await_time = _round(wr_ticks / wr_ios)

        self.last_counters[counter.name] = counter
        return result

    def close_sampling(self) -> None:
        """Keep the current CPU sample as the reference for the next round."""
        self.last_cpu = self.cur_cpu