"""Hardware monitoring sensors exposed under /sys/class/hwmon."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum

BASE_DIR = "/sys/class/hwmon"

_SENSOR_FILE_RE = re.compile(r"(^[a-z]*)([0-9]*)")
_INT_RE = re.compile(r"[+-]?\d+")


class NoMetricError(Exception):
    """A sensor has no readable value; callers may treat this as a soft error."""

    def __init__(self, message: str = "no Metrics exist in this device") -> None:
        super().__init__(message)


class SensorType(Enum):
    """Kind of sensor, with its sysfs file prefix and the unit of its values."""

    TEMP = ("temp", "celsius")
    VOLT = ("in", "millivolts")
    FAN = ("fan", "rpm")

    def __init__(self, file_key: str, units: str) -> None:
        self.file_key = file_key
        self.units = units


_TYPES_BY_KEY = {sensor_type.file_key: sensor_type for sensor_type in SensorType}


@dataclass
class SensorMetrics:
    """Values read from one sensor; ``None`` marks a value that is absent."""

    label: str = ""
    sensor_type: SensorType = SensorType.TEMP
    critical: int | None = None
    max: int | None = None
    lowest: int | None = None
    average: int | None = None
    value: int | None = None

    def to_dict(self) -> dict[str, dict[str, int]]:
        """Nest each present value under its unit; the input is keyed by sensor type."""
        entries = (
            ("critical", self.critical),
            ("max", self.max),
            ("lowest", self.lowest),
            ("average", self.average),
            (self.sensor_type.file_key, self.value),
        )
        return {
            key: {self.sensor_type.units: value}
            for key, value in entries
            if value is not None
        }


MonData = dict[str, SensorMetrics]


def _read_stripped(name: str, path: str) -> str:
    full_path = os.path.join(path, name)
    try:
        with open(full_path, encoding="utf-8", errors="replace") as handle:
            return handle.read().strip()
    except FileNotFoundError:
        raise
    except OSError as err:
        raise OSError(f"error reading file {full_path}: {err}") from err


def _read_int(name: str, path: str) -> int:
    raw = _read_stripped(name, path)
    if _INT_RE.fullmatch(raw) is None:
        raise ValueError(f"error converting value {raw!r}")
    return int(raw)


def _value_for_sensor(name: str, path: str, sensor_type: SensorType) -> int:
    value = _read_int(name, path)
    if sensor_type is SensorType.TEMP:
        # Temperatures are reported in millidegrees.
        value = int(value / 1000)
    return value


def _optional_value(name: str, path: str, sensor_type: SensorType) -> int | None:
    try:
        return _value_for_sensor(name, path, sensor_type)
    except (OSError, ValueError):
        return None


@dataclass(frozen=True)
class Sensor:
    """One metric of a hwmon chip, such as ``temp7_*``."""

    dev_type: SensorType
    sensor_num: int

    def _file_name(self, suffix: str) -> str:
        return f"{self.dev_type.file_key}{self.sensor_num}_{suffix}"

    def fetch(self, path: str) -> SensorMetrics:
        """Read the sensor's label, input and optional limits from ``path``.

        Raises NoMetricError when the sensor has no input file.
        """
        label_name = self._file_name("label")
        try:
            label = _read_stripped(label_name, path)
        except FileNotFoundError:
            label = f"{self.dev_type.file_key}_{self.sensor_num}"
        except OSError as err:
            raise OSError(
                f"error fetching label for {label_name} in {path}: {err}"
            ) from err

        input_name = self._file_name("input")
        try:
            value = _value_for_sensor(input_name, path, self.dev_type)
        except FileNotFoundError as err:
            raise NoMetricError() from err
        except OSError as err:
            raise OSError(
                f"error fetching input for {input_name} in {path}: {err}"
            ) from err
        except ValueError as err:
            raise ValueError(
                f"error fetching input for {input_name} in {path}: {err}"
            ) from err

        return SensorMetrics(
            label=label,
            sensor_type=self.dev_type,
            value=value,
            critical=_optional_value(self._file_name("crit"), path, self.dev_type),
            max=_optional_value(self._file_name("max"), path, self.dev_type),
            lowest=_optional_value(self._file_name("lowest"), path, self.dev_type),
            average=_optional_value(self._file_name("average"), path, self.dev_type),
        )


@dataclass
class Device:
    """A sensor chip, usually linked as /sys/class/hwmon/hwmon*."""

    name: str
    abs_path: str
    sensors: list[Sensor] = field(default_factory=list)


def report_sensors(dev: Device) -> MonData:
    """Fetch every sensor of a device, keyed by its normalised label."""
    metrics: MonData = {}
    for sensor in dev.sensors:
        try:
            data = sensor.fetch(dev.abs_path)
        except NoMetricError:
            continue
        metrics[data.label.replace(" ", "_").lower()] = data
    return metrics


def _find_sensors(path: str) -> list[Sensor]:
    sensors: list[Sensor] = []
    found: set[str] = set()
    try:
        entries = sorted(os.scandir(path), key=lambda entry: entry.name)
    except OSError as err:
        raise OSError(f"error reading from hwmon path {path}: {err}") from err
    for entry in entries:
        if entry.is_dir(follow_symlinks=False) or "_" not in entry.name:
            continue
        match = _SENSOR_FILE_RE.match(entry.name)
        prefix, type_key, number = match.group(0), match.group(1), match.group(2)
        if prefix in found:
            continue
        sensor_type = _TYPES_BY_KEY.get(type_key)
        if sensor_type is None:
            continue
        if not number:
            raise ValueError(f"error parsing int {number!r} in {entry.name}")
        found.add(prefix)
        sensors.append(Sensor(dev_type=sensor_type, sensor_num=int(number)))
    return sensors


def _resolve(hostfs, path: str) -> str:
    if hostfs is None or os.fspath(hostfs) in ("", "/"):
        return path
    return os.path.join(os.fspath(hostfs), path.lstrip("/"))


def detect_hwmon(hostfs=None) -> list[Device]:
    """List the hwmon devices found under the (optionally relocated) sysfs root."""
    full_path = _resolve(hostfs, BASE_DIR)
    if not os.path.lexists(full_path):
        raise FileNotFoundError(f"hwmon path {full_path} does not exist")
    try:
        names = sorted(os.listdir(full_path))
    except OSError as err:
        raise OSError(f"error reading directory {full_path}: {err}") from err

    devices: list[Device] = []
    for entry_name in names:
        name = os.path.join(full_path, entry_name)
        abs_path = name
        if os.path.islink(name):
            try:
                abs_path = os.readlink(name)
            except OSError as err:
                raise OSError(f"error reading path link {name}: {err}") from err
            if not os.path.isabs(abs_path):
                abs_path = os.path.normpath(os.path.join(BASE_DIR, abs_path))
        elif not os.path.lexists(name):
            raise OSError(f"error statting hwinfo path {name}")

        sensors = _find_sensors(abs_path)
        name_path = os.path.join(abs_path, "name")
        try:
            with open(name_path, encoding="utf-8", errors="replace") as handle:
                device_name = handle.read().strip()
        except OSError as err:
            raise OSError(
                f"error reading sensor name file {name_path}: {err}"
            ) from err
        devices.append(Device(name=device_name, abs_path=abs_path, sensors=sensors))

    if not devices:
        raise OSError(f"no hwmon devices found in {full_path}")
    return devices