[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "thermoctl"
version = "0.1.0"
description = "Temperature control building blocks: NTC thermistors, reading filters, a PID controller, an inflection-point autotuner, a small state machine and component interfaces."
requires-python = ">=3.10"
dependencies = []
keywords = ["thermistor", "ntc", "pid", "autotune", "temperature", "state-machine", "control"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
    "Topic :: Scientific/Engineering",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["thermoctl"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
