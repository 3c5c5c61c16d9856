# sysmetrics

A library for collecting system metrics from the running host. The
filesystem and hwmon helpers can also read a host filesystem that is mounted
somewhere else, for example under `/hostfs` inside a container.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `sysmetrics.numcpu`

- `num_cpu()` returns the number of CPUs on the system. On Linux it reads
  `/sys/devices/system/cpu/online`, or `/sys/devices/system/cpu/present` when
  the `LINUX_CPU_COUNT_PRESENT` environment variable is set. On Windows,
  FreeBSD and OpenBSD it asks psutil. If the count cannot be read, or the
  platform has no way to give it, the function returns the number of CPUs the
  process may run on.
- `get_cpu()` returns the platform's count, or `None` where there is no way
  to get it. It raises `OSError` or `ValueError` when a count exists but
  cannot be read.
- `parse_cpu_list(raw)` counts the CPUs in a sysfs list such as `"0-1,3"`
  (three CPUs) or `"2,4-31,32-63"` (61 CPUs).

### `sysmetrics.network`

`NetworkCountersInfo` holds the counters from `/proc/net/snmp` and
`/proc/net/netstat` as plain dictionaries (`ip`, `icmp`, `icmp_msg`, `tcp`,
`udp`, `udp_lite`, `tcp_ext`, `ip_ext`).

- `map_proc_net_counters(raw)` groups them by protocol into `ip`, `tcp`,
  `udp`, `udp_lite` and `icmp`. `ip` merges `ip_ext` with `ip`, `tcp` merges
  `tcp_ext` with `tcp`, and `icmp` merges `icmp_msg` with `icmp`.
- `map_proc_net_counters_with_filter(raw, filter)` keeps only the named keys
  in the merged groups. A filter that is empty or starts with `"all"` keeps
  every key. The `udp` and `udp_lite` groups are never filtered.

`MaxConn` is reported as a signed 64-bit integer. All other counters are left
as they are.

### `sysmetrics.diskio`

- `io_counters(*names)` returns an `IOCounters` for each block device, keyed
  by device name. Pass device names to limit the result to those devices. On
  Linux it reads `/proc/diskstats`; elsewhere it uses psutil.
- `IOStat` computes `iostat -x`-style figures (`IOMetric`) between two
  samples:

  ```python
  from sysmetrics.diskio import IOStat, io_counters

  stat = IOStat()
  # repeat at each collection interval:
  counters = io_counters()
  stat.open_sampling()
  for counter in counters.values():
      metric = stat.calc_io_statistics(counter)
  stat.close_sampling()
  ```

  The first counter seen for a device is stored, and that call returns an
  `IOMetric` of zeros. `calc_io_statistics` raises `ValueError` when no CPU
  time has passed between the two samples. It raises `OSError` on platforms
  other than Linux. Time counters that the kernel keeps as 32 bits are
  corrected for rollover.
- `get_clk_tck()` returns the clock tick rate that is assumed (100).

### `sysmetrics.host`

- `host_info()` gathers a `HostInfo`: architecture, hostname, kernel
  version, `OSInfo`, machine id, whether the host runs in a container, boot
  time, IP and MAC addresses, and time zone.
- `map_host_info(info, fqdn)` renders a `HostInfo` as an ECS-style
  `{"host": {...}}` dictionary. `host.name` is the lower-cased `fqdn` when
  one is given, and the hostname otherwise. The optional fields (`id`,
  `containerized`, `os.codename`, `os.build`, `os.type`) appear only when
  they are known.
- `report_info(fqdn)` returns a callable that produces the host section of a
  monitoring report. The callable returns an empty dictionary when host
  information cannot be read.

### `sysmetrics.filesystem`

- `get_filesystems(hostfs=None, filter=None)` lists the mounted filesystems
  as `FSStat` entries. It skips relative mount points and bind mounts whose
  device is a directory. A block device mounted several times is listed once,
  at its shortest mount point. Without a filter, the types marked `nodev` in
  `/proc/filesystems` are left out (see `default_ignored_types(hostfs)`).
- `build_filter_with_list(ignored)` returns a filter that rejects the given
  filesystem types.
- `filter_duplicates(fs_list)` and `avoid_file_system(fs)` expose the
  individual checks.
- `FSStat.get_usage()` fills in `total`, `free`, `avail`, `files`,
  `free_files` and `used` (`UsedVals` with `bytes` and `pct`). The percentage
  is used bytes over used plus available bytes.

### `sysmetrics.hwmon` (Linux)

- `detect_hwmon(hostfs=None)` finds the devices under `/sys/class/hwmon`,
  each a `Device` with its `Sensor` list. Temperature, voltage and fan sensors
  are recognised (`SensorType.TEMP`, `VOLT`, `FAN`).
- `report_sensors(dev)` reads every sensor of a device into `SensorMetrics`,
  keyed by its label in lower case with underscores. Sensors without a value
  are skipped. Temperatures are converted from millidegrees to degrees
  Celsius.
- `SensorMetrics.to_dict()` nests each value under its unit, for example
  `{"temp": {"celsius": 52}, "max": {"celsius": 81}}`.

## Example

```python
from sysmetrics.numcpu import num_cpu
from sysmetrics.host import host_info, map_host_info

print(num_cpu())
print(map_host_info(host_info(), ""))
```

## What it does not do

This is a library only. It has no command-line tool and does not run as a
collector. It does not schedule sampling, store results or send them
anywhere; the caller decides when to collect and what to do with the data.