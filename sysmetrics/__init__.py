"""System metrics: CPU counts, disk I/O, filesystems, host info, network counters and hwmon sensors."""

__version__ = "0.1.0"
__all__ = ["diskio", "filesystem", "host", "hwmon", "network", "numcpu"]