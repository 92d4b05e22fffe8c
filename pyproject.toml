[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tle94112"
version = "0.1.0"
description = "Register-level driver and DC motor control for the TLE94112 multi-half-bridge IC"
requires-python = ">=3.10"
dependencies = []
keywords = ["tle94112", "half-bridge", "motor", "spi", "embedded", "driver"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tle94112"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
