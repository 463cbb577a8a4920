[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netsentinel"
version = "0.1.0"
description = "Library for an HTTP backend that collects hosts, active flows and security alerts from an ntopng instance, stores them in SQLite and forwards alerts to Telegram."
requires-python = ">=3.10"
keywords = [
    "ntopng",
    "network-monitoring",
    "traffic",
    "alerts",
    "telegram",
    "sqlite",
    "flask",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: System :: Networking :: Monitoring",
]
dependencies = [
    "flask",
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["netsentinel"]

[tool.hatch.build.targets.sdist]
include = [
    "netsentinel",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
