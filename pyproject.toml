[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "metricore"
version = "0.1.0"
description = "Building blocks for measurement agents: a metric registry, measurement points and buffers, and TOML agent configuration."
requires-python = ">=3.11"
dependencies = [
    "tomli-w",
]
keywords = ["metrics", "measurement", "monitoring", "telemetry", "toml", "configuration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["metricore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
