[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sysmetrics"
version = "0.1.0"
description = "System metrics helpers: CPU counts, disk I/O statistics, filesystems, host info, network counters and hwmon sensors."
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["metrics", "monitoring", "system", "diskio", "hwmon", "filesystem", "iostat"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["sysmetrics"]

[tool.pytest.ini_options]
addopts = "-ra"
