import os

import pytest

from sysmetrics.hwmon import (
    Device,
    NoMetricError,
    Sensor,
    SensorMetrics,
    SensorType,
    detect_hwmon,
    report_sensors,
)


def _write_device(root, entry, files):
    path = root / "sys" / "class" / "hwmon" / entry
    path.mkdir(parents=True, exist_ok=True)
    for name, content in files.items():
        (path / name).write_text(content + "\n")
    return path


@pytest.fixture
def poweredge(tmp_path):
    files = {
        "name": "coretemp",
        "temp1_label": "Physical id 0",
        "temp1_input": "53000",
        "temp1_max": "81000",
        "temp1_crit": "91000",
    }
    for index, core in enumerate(range(6), start=2):
        files[f"temp{index}_label"] = f"Core {core}"
        files[f"temp{index}_input"] = f"{48 + core}000"
        files[f"temp{index}_max"] = "81000"
        files[f"temp{index}_crit"] = "91000"
    files["uevent"] = ""
    _write_device(tmp_path, "hwmon0", files)
    return tmp_path


@pytest.fixture
def thinkpad(tmp_path):
    _write_device(tmp_path, "hwmon0", {"name": "BAT0", "in0_input": "11943"})
    files = {"name": "thinkpad", "fan1_input": "2200"}
    temps = [45000, 50000, 30000, 40000, 35000, 76000, 0, 41000]
    for number, value in enumerate(temps, start=1):
        files[f"temp{number}_input"] = str(value)
    _write_device(tmp_path, "hwmon1", files)
    return tmp_path


def test_poweredge_example(poweredge):
    results = detect_hwmon(poweredge)
    assert len(results[0].sensors) == 7
    metrics = report_sensors(results[0])
    assert len(metrics) == 7
    assert metrics["core_4"].value == 52
    assert metrics["core_3"].label == "Core 3"
    assert metrics["core_3"].max == 81
    assert results[0].name == "coretemp"


def test_thinkpad_example(thinkpad):
    results = detect_hwmon(thinkpad)
    assert len(results) == 2
    assert len(results[1].sensors) == 9
    metrics = report_sensors(results[1])
    assert metrics["fan_1"].value == 2200
    assert metrics["temp_6"].value == 76
    assert metrics["temp_7"].value == 0
    battery = report_sensors(results[0])
    assert battery["in_0"].value == 11943


def test_sensor_without_input_is_skipped(tmp_path):
    _write_device(
        tmp_path,
        "hwmon0",
        {"name": "chip", "temp1_label": "Ghost", "temp2_input": "20000"},
    )
    device = detect_hwmon(tmp_path)[0]
    assert len(device.sensors) == 2
    assert list(report_sensors(device)) == ["temp_2"]


def test_fetch_raises_no_metric(tmp_path):
    (tmp_path / "temp1_label").write_text("Ghost\n")
    with pytest.raises(NoMetricError):
        Sensor(SensorType.TEMP, 1).fetch(str(tmp_path))


def test_fetch_reads_optional_values(tmp_path):
    (tmp_path / "fan2_input").write_text("1500\n")
    (tmp_path / "fan2_lowest").write_text("900\n")
    (tmp_path / "fan2_average").write_text("1200\n")
    metrics = Sensor(SensorType.FAN, 2).fetch(str(tmp_path))
    assert metrics.label == "fan_2"
    assert metrics.value == 1500
    assert metrics.lowest == 900
    assert metrics.average == 1200
    assert metrics.critical is None
    assert metrics.max is None


def test_fetch_rejects_non_integer_input(tmp_path):
    (tmp_path / "in1_input").write_text("abc\n")
    with pytest.raises(ValueError):
        Sensor(SensorType.VOLT, 1).fetch(str(tmp_path))


def test_to_dict_nests_units_and_renames_value():
    metrics = SensorMetrics(
        label="Core 0", sensor_type=SensorType.TEMP, critical=91, max=81, value=49
    )
    assert metrics.to_dict() == {
        "critical": {"celsius": 91},
        "max": {"celsius": 81},
        "temp": {"celsius": 49},
    }


def test_to_dict_fan_units():
    metrics = SensorMetrics(label="x", sensor_type=SensorType.FAN, value=2200)
    assert metrics.to_dict() == {"fan": {"rpm": 2200}}


def test_missing_hwmon_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        detect_hwmon(tmp_path)


def test_empty_hwmon_dir(tmp_path):
    (tmp_path / "sys" / "class" / "hwmon").mkdir(parents=True)
    with pytest.raises(OSError, match="no hwmon devices"):
        detect_hwmon(tmp_path)


def test_missing_name_file(tmp_path):
    _write_device(tmp_path, "hwmon0", {"temp1_input": "1000"})
    with pytest.raises(OSError, match="name"):
        detect_hwmon(tmp_path)


def test_sensor_file_without_number(tmp_path):
    _write_device(tmp_path, "hwmon0", {"name": "chip", "temp_bad": "1"})
    with pytest.raises(ValueError):
        detect_hwmon(tmp_path)


def test_unsupported_sensor_types_ignored(tmp_path):
    _write_device(
        tmp_path,
        "hwmon0",
        {"name": "chip", "power1_input": "5", "update_interval": "1000", "in3_input": "7"},
    )
    device = detect_hwmon(tmp_path)[0]
    assert device.sensors == [Sensor(SensorType.VOLT, 3)]


def test_absolute_symlink_followed(tmp_path):
    target = tmp_path / "devices" / "chip0"
    target.mkdir(parents=True)
    (target / "name").write_text("acpitz\n")
    (target / "temp1_input").write_text("27800\n")
    hwmon = tmp_path / "sys" / "class" / "hwmon"
    hwmon.mkdir(parents=True)
    os.symlink(target, hwmon / "hwmon0")
    device = detect_hwmon(tmp_path)[0]
    assert device.abs_path == str(target)
    assert device.name == "acpitz"
    assert report_sensors(device)["temp_1"].value == 27


def test_report_sensors_label_key(tmp_path):
    (tmp_path / "temp3_label").write_text("Package id 0\n")
    (tmp_path / "temp3_input").write_text("53000\n")
    device = Device(
        name="coretemp",
        abs_path=str(tmp_path),
        sensors=[Sensor(SensorType.TEMP, 3)],
    )
    metrics = report_sensors(device)
    assert list(metrics) == ["package_id_0"]
    assert metrics["package_id_0"].value == 53