[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flexdb"
version = "0.1.0"
description = "Storage building blocks for a log-structured key-value store: a block-based write-ahead log, an MVCC revision index and helpers"
requires-python = ">=3.10"
keywords = ["key-value", "wal", "write-ahead-log", "mvcc", "storage", "revision-index"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]
dependencies = [
    "sortedcontainers",
    "cachetools",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flexdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
